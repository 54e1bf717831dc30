"""Read-side queries for reviews.

Approved reviews are public. Pending and rejected ones, and the moderation
fields of any review, are shown only to the author and to moderators.
"""

from protean.utils.globals import current_domain

from marketplace.reviews.review.review import Review, ReviewStatus
from marketplace.shared.errors import NotFound, load
from marketplace.shared.policy import Action, Actor, authorize, is_allowed
from marketplace.utils.db import paginate


def _iso(value):
    return value.isoformat() if value else None


def review_payload(review: Review, include_moderation=True) -> dict:
    payload = {
        "id": str(review.id),
        "product_id": str(review.product_id),
        "user_id": str(review.user_id),
        "order_id": str(review.order_id),
        "rating": review.rating.score,
        "title": review.title,
        "content": review.content,
        "images": [image.url for image in sorted(review.images, key=lambda i: i.display_order or 0)],
        "status": review.status,
        "is_verified": review.is_verified,
        "helpful_count": review.helpful_count,
        "not_helpful_count": review.not_helpful_count,
        "is_edited": review.is_edited,
        "created_at": _iso(review.created_at),
        "updated_at": _iso(review.updated_at),
    }
    if include_moderation:
        payload["moderator_notes"] = review.moderator_notes
        payload["moderated_by"] = str(review.moderated_by) if review.moderated_by else None
        payload["moderated_at"] = _iso(review.moderated_at)
    return payload


def product_reviews(product_id, page=1, limit=10):
    """Approved reviews for a product, newest first."""
    reviews = current_domain.repository_for(Review).for_product(product_id)
    items, meta = paginate(reviews, page, limit)
    return [review_payload(r, include_moderation=False) for r in items], meta


def user_reviews(actor: Actor, page=1, limit=10):
    reviews = current_domain.repository_for(Review).by_user(actor.user_id)
    items, meta = paginate(reviews, page, limit)
    return [review_payload(r) for r in items], meta


def pending_reviews(actor: Actor, page=1, limit=10):
    authorize(actor, Action.MODERATE_REVIEW, message="Only moderators can see the moderation queue")
    reviews = current_domain.repository_for(Review).pending()
    items, meta = paginate(reviews, page, limit)
    return [review_payload(r) for r in items], meta


def get_review(review_id, actor: Actor | None = None) -> dict:
    """A single review as ``actor`` may see it; ``None`` is an anonymous caller.

    Reviews the caller may not see are reported as missing.
    """
    review = load(current_domain.repository_for(Review), review_id, "Review")
    privileged = actor is not None and is_allowed(actor, Action.VIEW_REVIEW, owner_id=review.user_id)
    if review.status != ReviewStatus.APPROVED.value and not privileged:
        raise NotFound("Review not found")
    return review_payload(review, include_moderation=privileged)
