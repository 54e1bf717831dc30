"""Review eligibility gate.

A buyer may review a product only through an order that is theirs, that
contains the product, and that has been delivered. The checks run in a
fixed order and stop at the first failure, so callers always learn the
most fundamental reason a submission was refused:

    1. the order exists                    → NotFound
    2. the order belongs to the user       → Forbidden
    3. the order contains the product      → NotFound
    4. the order has been delivered        → PreconditionFailed
    5. the rating is a whole number 1–5    → ValidationError
"""

import math
from numbers import Real

from protean.exceptions import ValidationError

from marketplace.ordering.order.order import Order, OrderStatus
from marketplace.shared.errors import NotFound, PreconditionFailed, load
from marketplace.shared.policy import Action, Actor, authorize


def validate_rating(rating) -> int:
    """Return ``rating`` as an int, or raise ``ValidationError``.

    Booleans and fractional numbers are refused even though Python would
    happily treat ``True`` or ``4.0`` as numbers.
    """
    if isinstance(rating, bool) or not isinstance(rating, Real):
        raise ValidationError({"rating": ["Rating must be a whole number between 1 and 5"]})
    if not math.isfinite(rating) or rating != int(rating) or not 1 <= rating <= 5:
        raise ValidationError({"rating": ["Rating must be a whole number between 1 and 5"]})
    return int(rating)


def check_order(order: Order, actor: Actor, product_id, rating) -> int:
    """Apply checks 2–5 to an already loaded order; returns the validated rating."""
    authorize(actor, Action.SUBMIT_REVIEW, owner_id=order.user_id, message="Order does not belong to user")

    if not order.contains_product(product_id):
        raise NotFound("Product not in order")

    if order.status != OrderStatus.DELIVERED.value:
        raise PreconditionFailed("Order must be delivered before review")

    return validate_rating(rating)


def ensure_eligible(order_repository, order_id, actor: Actor, product_id, rating) -> tuple[Order, int]:
    """Run the full gate, loading the order from ``order_repository``."""
    order = load(order_repository, order_id, "Order")
    return order, check_order(order, actor, product_id, rating)
