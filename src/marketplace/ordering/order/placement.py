"""PlaceOrder — check out a list of products.

Each product is loaded, checked for availability and stock, and snapshotted
into the order (name, unit price, seller) so later catalogue edits do not
change what the buyer paid. Cart checkout goes through the same ``place``
routine.
"""

import json

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, Text
from protean.utils.globals import current_domain

from marketplace.catalogue.product.product import Product
from marketplace.config import get_settings
from marketplace.domain import marketplace, logger
from marketplace.ordering.order.order import Order, OrderPricing, ShippingAddress
from marketplace.shared.errors import load


@marketplace.command(part_of="Order")
class PlaceOrder:
    user_id = Identifier(required=True)
    items = Text(required=True)  # JSON array of {product_id, quantity}
    shipping_address = Text()  # JSON object: street, city, state, postal_code, country
    notes = Text()


def _parse_lines(raw):
    lines = json.loads(raw) if raw else []
    if not isinstance(lines, list) or not lines:
        raise ValidationError({"items": ["Order must contain at least one item"]})

    quantities = {}
    for line in lines:
        product_id = line.get("product_id") if isinstance(line, dict) else None
        quantity = line.get("quantity", 1) if isinstance(line, dict) else None
        if not product_id:
            raise ValidationError({"items": ["Each item needs a product_id"]})
        if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity < 1:
            raise ValidationError({"items": ["Quantity must be a positive whole number"]})
        # Repeated products collapse into one line
        quantities[str(product_id)] = quantities.get(str(product_id), 0) + quantity
    return quantities


def place(user_id, quantities, shipping_address=None, notes=None) -> Order:
    """Reserve stock for ``{product_id: quantity}``, price the lines and persist a pending order.

    ``shipping_address`` is a dict of ``ShippingAddress`` fields.
    """
    if not quantities:
        raise ValidationError({"items": ["Order must contain at least one item"]})

    settings = get_settings()
    product_repo = current_domain.repository_for(Product)

    snapshots = []
    for product_id, quantity in quantities.items():
        product = load(product_repo, product_id, "Product")
        product.reserve(quantity)
        product_repo.add(product)
        snapshots.append(
            {
                "product_id": product_id,
                "product_name": product.name,
                "seller_id": product.seller_id,
                "quantity": quantity,
                "unit_price": product.price,
            }
        )

    pricing = OrderPricing.calculate(
        subtotal=sum(s["unit_price"] * s["quantity"] for s in snapshots),
        tax_rate=settings.tax_rate,
        free_shipping_threshold=settings.free_shipping_threshold,
        flat_shipping=settings.flat_shipping,
        currency=settings.currency,
    )

    order = Order.place(
        user_id=user_id,
        items=snapshots,
        pricing=pricing,
        shipping_address=ShippingAddress(**shipping_address) if shipping_address else None,
        notes=notes,
    )
    current_domain.repository_for(Order).add(order)

    logger.info(
        "order_placed",
        order_id=str(order.id),
        order_number=order.order_number,
        user_id=str(user_id),
        grand_total=pricing.grand_total,
    )
    return order


@marketplace.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        order = place(
            command.user_id,
            _parse_lines(command.items),
            shipping_address=json.loads(command.shipping_address) if command.shipping_address else None,
            notes=command.notes,
        )
        return str(order.id)
