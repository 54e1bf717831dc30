"""SubmitReview — review a product from a delivered order.

The eligibility gate runs first; after it passes, a user may hold only one
review per product per order.
"""

import json

from protean import handle
from protean.fields import Float, Identifier, String, Text
from protean.utils.globals import current_domain

from marketplace.domain import marketplace, logger
from marketplace.ordering.order.order import Order
from marketplace.reviews.review.eligibility import ensure_eligible
from marketplace.reviews.review.review import Review
from marketplace.shared.errors import PreconditionFailed
from marketplace.shared.policy import Actor


@marketplace.command(part_of="Review")
class SubmitReview:
    user_id = Identifier(required=True)
    user_role = String(max_length=20, default="buyer")
    product_id = Identifier(required=True)
    order_id = Identifier(required=True)
    rating = Float(required=True)  # Whole-number check happens in the gate
    title = String(required=True, max_length=100)
    content = Text(required=True)
    images = Text()  # JSON array of URLs


@marketplace.command_handler(part_of=Review)
class SubmitReviewHandler:
    @handle(SubmitReview)
    def submit_review(self, command):
        actor = Actor(user_id=str(command.user_id), role=command.user_role)
        order, rating = ensure_eligible(
            current_domain.repository_for(Order),
            command.order_id,
            actor,
            command.product_id,
            command.rating,
        )

        repo = current_domain.repository_for(Review)
        if repo.find_existing(actor.user_id, order.id, command.product_id) is not None:
            raise PreconditionFailed("You have already reviewed this product for this order")

        review = Review.submit(
            product_id=command.product_id,
            user_id=actor.user_id,
            order_id=order.id,
            rating=rating,
            title=command.title,
            content=command.content,
            images=json.loads(command.images) if command.images else None,
        )
        repo.add(review)

        logger.info(
            "review_submitted",
            review_id=str(review.id),
            product_id=str(command.product_id),
            order_id=str(order.id),
            rating=rating,
        )
        return str(review.id)
