"""CheckoutCart — turn the caller's active cart into an order.

Stock is reserved, prices are snapshotted and the order is priced exactly as
``PlaceOrder`` does; the cart is then closed against the new order. Both
happen in one unit of work.
"""

import json

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, Text
from protean.utils.globals import current_domain

from marketplace.domain import marketplace, logger
from marketplace.ordering.cart.cart import Cart
from marketplace.ordering.order.placement import place


@marketplace.command(part_of="Cart")
class CheckoutCart:
    user_id = Identifier(required=True)
    shipping_address = Text()  # JSON object: street, city, state, postal_code, country
    notes = Text()


@marketplace.command_handler(part_of=Cart)
class CheckoutCartHandler:
    @handle(CheckoutCart)
    def checkout(self, command):
        repo = current_domain.repository_for(Cart)
        cart = repo.active_for(command.user_id)
        if cart is None or not cart.items:
            raise ValidationError({"items": ["Cart is empty"]})

        order = place(
            command.user_id,
            cart.quantities(),
            shipping_address=json.loads(command.shipping_address) if command.shipping_address else None,
            notes=command.notes,
        )
        cart.check_out(str(order.id))
        repo.add(cart)

        logger.info("cart_checked_out", cart_id=str(cart.id), order_id=str(order.id))
        return str(order.id)
