"""ModerateReview — set a review's moderation status.

Any status may move to any other; moderators use this to correct earlier
decisions as well as to clear the pending queue.
"""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from marketplace.domain import marketplace, logger
from marketplace.reviews.review.review import Review, parse_review_status
from marketplace.shared.errors import load
from marketplace.shared.policy import Action, Actor, authorize


@marketplace.command(part_of="Review")
class ModerateReview:
    review_id = Identifier(required=True)
    status = String(required=True, max_length=20)
    moderator_notes = String(max_length=500)
    actor_id = Identifier(required=True)
    actor_role = String(required=True, max_length=20)


@marketplace.command_handler(part_of=Review)
class ModerateReviewHandler:
    @handle(ModerateReview)
    def moderate_review(self, command):
        actor = Actor(user_id=str(command.actor_id), role=command.actor_role)
        authorize(actor, Action.MODERATE_REVIEW, message="Only moderators can moderate reviews")

        repo = current_domain.repository_for(Review)
        review = load(repo, command.review_id, "Review")

        target = parse_review_status(command.status)
        review.moderate(target.value, moderator_id=actor.user_id, notes=command.moderator_notes)
        repo.add(review)

        logger.info("review_moderated", review_id=str(review.id), status=target.value, moderator_id=actor.user_id)
