"""Cart item management — commands and handler.

Adds and quantity changes are checked against the catalogue: the product
must exist, be active and have enough stock for the whole requested
quantity. Nothing is reserved until checkout.
"""

from protean import handle
from protean.fields import Identifier, Integer
from protean.utils.globals import current_domain

from marketplace.catalogue.product.product import Product
from marketplace.domain import marketplace, logger
from marketplace.ordering.cart.cart import Cart
from marketplace.shared.errors import NotFound, PreconditionFailed, load


@marketplace.command(part_of="Cart")
class AddToCart:
    user_id = Identifier(required=True)
    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)


@marketplace.command(part_of="Cart")
class UpdateCartQuantity:
    user_id = Identifier(required=True)
    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)


@marketplace.command(part_of="Cart")
class RemoveFromCart:
    user_id = Identifier(required=True)
    product_id = Identifier(required=True)


@marketplace.command(part_of="Cart")
class ClearCart:
    user_id = Identifier(required=True)


def _check_available(product_id, quantity):
    product = load(current_domain.repository_for(Product), product_id, "Product")
    if not product.is_active:
        raise PreconditionFailed(f"Product {product.name} is not available")
    if quantity > product.stock:
        raise PreconditionFailed(f"Insufficient stock for {product.name}. Available: {product.stock}")


def _active_cart(repo, user_id) -> Cart:
    cart = repo.active_for(user_id)
    if cart is None:
        raise NotFound("Cart not found")
    return cart


@marketplace.command_handler(part_of=Cart)
class ManageCartItemsHandler:
    @handle(AddToCart)
    def add_to_cart(self, command):
        repo = current_domain.repository_for(Cart)
        cart = repo.open_for(command.user_id)

        _check_available(command.product_id, cart.quantity_of(command.product_id) + command.quantity)
        cart.add_item(str(command.product_id), command.quantity)
        repo.add(cart)

        logger.info(
            "cart_item_added",
            cart_id=str(cart.id),
            product_id=str(command.product_id),
            quantity=command.quantity,
        )
        return str(cart.id)

    @handle(UpdateCartQuantity)
    def update_cart_quantity(self, command):
        repo = current_domain.repository_for(Cart)
        cart = _active_cart(repo, command.user_id)

        _check_available(command.product_id, command.quantity)
        cart.update_quantity(str(command.product_id), command.quantity)
        repo.add(cart)

    @handle(RemoveFromCart)
    def remove_from_cart(self, command):
        repo = current_domain.repository_for(Cart)
        cart = _active_cart(repo, command.user_id)
        cart.remove_item(str(command.product_id))
        repo.add(cart)

    @handle(ClearCart)
    def clear_cart(self, command):
        repo = current_domain.repository_for(Cart)
        cart = repo.active_for(command.user_id)
        if cart is None:
            return
        cart.clear()
        repo.add(cart)
