"""EditReview — the author revises their review."""

from protean import handle
from protean.fields import Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from marketplace.domain import marketplace
from marketplace.reviews.review.eligibility import validate_rating
from marketplace.reviews.review.review import Review
from marketplace.shared.errors import load
from marketplace.shared.policy import Action, Actor, authorize


@marketplace.command(part_of="Review")
class EditReview:
    review_id = Identifier(required=True)
    user_id = Identifier(required=True)
    user_role = String(max_length=20, default="buyer")
    title = String(max_length=100)
    content = Text()
    rating = Integer()


@marketplace.command_handler(part_of=Review)
class EditReviewHandler:
    @handle(EditReview)
    def edit_review(self, command):
        repo = current_domain.repository_for(Review)
        review = load(repo, command.review_id, "Review")

        actor = Actor(user_id=str(command.user_id), role=command.user_role)
        authorize(actor, Action.EDIT_REVIEW, owner_id=review.user_id, message="Review does not belong to user")

        changes = {}
        if command.title is not None:
            changes["title"] = command.title
        if command.content is not None:
            changes["content"] = command.content
        if command.rating is not None:
            changes["rating"] = validate_rating(command.rating)

        review.edit(**changes)
        repo.add(review)
