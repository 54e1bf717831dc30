"""MarkReviewHelpful — count a helpful or not-helpful vote on a review."""

from protean import handle
from protean.fields import Boolean, Identifier
from protean.utils.globals import current_domain

from marketplace.config import get_settings
from marketplace.domain import marketplace
from marketplace.reviews.review.review import Review
from marketplace.shared.errors import load


@marketplace.command(part_of="Review")
class MarkReviewHelpful:
    review_id = Identifier(required=True)
    user_id = Identifier(required=True)
    is_helpful = Boolean(default=True)


@marketplace.command_handler(part_of=Review)
class MarkReviewHelpfulHandler:
    @handle(MarkReviewHelpful)
    def mark_helpful(self, command):
        repo = current_domain.repository_for(Review)
        review = load(repo, command.review_id, "Review")

        review.mark_helpful(
            user_id=command.user_id,
            is_helpful=command.is_helpful,
            deduplicate=get_settings().deduplicate_votes,
        )
        repo.add(review)
        return {"helpful": review.helpful_count, "not_helpful": review.not_helpful_count}
