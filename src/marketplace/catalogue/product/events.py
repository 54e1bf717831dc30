from protean.fields import Float, Identifier, Integer, String

from marketplace.domain import marketplace


@marketplace.event(part_of="Product")
class ProductCreated:
    __version__ = 1

    product_id = Identifier(required=True)
    name = String(required=True, max_length=200)
    seller_id = Identifier(required=True)
    price = Float(required=True)
    stock = Integer(required=True)


@marketplace.event(part_of="Product")
class StockAdjusted:
    __version__ = 1

    product_id = Identifier(required=True)
    change = Integer(required=True)
    stock = Integer(required=True)


@marketplace.event(part_of="Product")
class ProductDeactivated:
    __version__ = 1

    product_id = Identifier(required=True)
