"""Review aggregate (CQRS) — purchase-backed product reviews.

A review can only come into existence through the eligibility gate in
``reviews.review.eligibility``, so every persisted review is tied to a
delivered order owned by its author and is marked verified.

Moderation is corrective rather than a progression: any status may be
changed to any other by a moderator.
    PENDING ⇄ APPROVED ⇄ REJECTED ⇄ PENDING
"""

from datetime import UTC, datetime
from enum import Enum

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import (
    Boolean,
    DateTime,
    HasMany,
    Identifier,
    Integer,
    String,
    Text,
    ValueObject,
)

from marketplace.domain import marketplace
from marketplace.reviews.review.events import (
    HelpfulVoteRecorded,
    ReviewEdited,
    ReviewModerated,
    ReviewSubmitted,
)
from marketplace.shared.errors import PreconditionFailed

# Sentinel for distinguishing "not provided" from None in partial updates
_UNSET = object()

MAX_IMAGES = 5


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class ReviewStatus(Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


def parse_review_status(value) -> ReviewStatus:
    try:
        return ReviewStatus(value)
    except ValueError as exc:
        allowed = ", ".join(s.value for s in ReviewStatus)
        raise ValidationError({"status": [f"Unknown status '{value}'. Expected one of: {allowed}"]}) from exc


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@marketplace.value_object(part_of="Review")
class Rating:
    """A star rating from 1 to 5."""

    score = Integer(required=True)

    @invariant.post
    def score_must_be_in_range(self):
        if self.score is not None and (self.score < 1 or self.score > 5):
            raise ValidationError({"rating": ["Rating must be between 1 and 5"]})


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@marketplace.entity(part_of="Review")
class ReviewImage:
    url = String(required=True, max_length=500)
    display_order = Integer(default=0)

    @invariant.post
    def url_must_be_http(self):
        if self.url and not self.url.lower().startswith(("http://", "https://")):
            raise ValidationError({"images": ["Image URL must be a valid HTTP/HTTPS URL"]})


@marketplace.entity(part_of="Review")
class HelpfulVote:
    """One helpful/not-helpful vote, kept so repeat voters can be recognised."""

    user_id = Identifier(required=True)
    is_helpful = Boolean(required=True)
    voted_at = DateTime(required=True)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@marketplace.aggregate
class Review:
    product_id = Identifier(required=True)
    user_id = Identifier(required=True)
    order_id = Identifier(required=True)

    rating = ValueObject(Rating, required=True)
    title = String(required=True, max_length=100)
    content = Text(required=True)
    images = HasMany(ReviewImage)

    status = String(choices=ReviewStatus, default=ReviewStatus.PENDING.value)
    is_verified = Boolean(default=False)

    votes = HasMany(HelpfulVote)
    helpful_count = Integer(default=0, min_value=0)
    not_helpful_count = Integer(default=0, min_value=0)

    moderator_notes = String(max_length=500)
    moderated_by = Identifier()
    moderated_at = DateTime()

    is_edited = Boolean(default=False)
    edited_at = DateTime()

    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Invariants
    # -------------------------------------------------------------------
    @invariant.post
    def title_must_have_five_characters(self):
        if self.title is not None and len(self.title.strip()) < 5:
            raise ValidationError({"title": ["Title must be at least 5 characters"]})

    @invariant.post
    def content_must_not_be_blank(self):
        if self.content is not None and not self.content.strip():
            raise ValidationError({"content": ["Content cannot be empty"]})

    @invariant.post
    def content_cannot_exceed_limit(self):
        if self.content and len(self.content) > 1000:
            raise ValidationError({"content": ["Content cannot exceed 1000 characters"]})

    @invariant.post
    def images_cannot_exceed_maximum(self):
        if len(self.images) > MAX_IMAGES:
            raise ValidationError({"images": [f"Cannot attach more than {MAX_IMAGES} images to a review"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def submit(cls, product_id, user_id, order_id, rating, title, content, images=None):
        """Create a verified, pending review. Eligibility must already be established."""
        now = datetime.now(UTC)

        review = cls(
            product_id=product_id,
            user_id=user_id,
            order_id=order_id,
            rating=Rating(score=rating),
            title=title,
            content=content,
            status=ReviewStatus.PENDING.value,
            is_verified=True,
            helpful_count=0,
            not_helpful_count=0,
            is_edited=False,
            created_at=now,
            updated_at=now,
        )

        with atomic_change(review):
            for position, url in enumerate(images or []):
                review.add_images(ReviewImage(url=url, display_order=position))

        review.raise_(
            ReviewSubmitted(
                review_id=review.id,
                product_id=product_id,
                user_id=user_id,
                order_id=order_id,
                rating=rating,
                title=title,
                image_count=len(images or []),
                submitted_at=now,
            )
        )
        return review

    # -------------------------------------------------------------------
    # Edit
    # -------------------------------------------------------------------
    def edit(self, title=_UNSET, content=_UNSET, rating=_UNSET):
        """Change the review text or rating. Approved reviews are frozen;
        editing a rejected review sends it back to moderation."""
        current = ReviewStatus(self.status)
        if current == ReviewStatus.APPROVED:
            raise PreconditionFailed("Approved reviews cannot be edited")

        now = datetime.now(UTC)
        with atomic_change(self):
            if title is not _UNSET:
                self.title = title
            if content is not _UNSET:
                self.content = content
            if rating is not _UNSET:
                self.rating = Rating(score=rating)

            self.is_edited = True
            self.edited_at = now
            self.updated_at = now

            if current == ReviewStatus.REJECTED:
                self.status = ReviewStatus.PENDING.value

        self.raise_(
            ReviewEdited(
                review_id=self.id,
                title=self.title,
                content=self.content,
                rating=self.rating.score,
                edited_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Moderation
    # -------------------------------------------------------------------
    def moderate(self, status, moderator_id, notes=None):
        target = parse_review_status(status)
        previous = self.status

        now = datetime.now(UTC)
        with atomic_change(self):
            self.status = target.value
            self.moderator_notes = notes
            self.moderated_by = moderator_id
            self.moderated_at = now
            self.updated_at = now

        self.raise_(
            ReviewModerated(
                review_id=self.id,
                product_id=self.product_id,
                previous_status=previous,
                new_status=target.value,
                moderator_id=moderator_id,
                notes=notes,
                moderated_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Helpfulness
    # -------------------------------------------------------------------
    def has_vote_from(self, user_id) -> bool:
        return any(str(v.user_id) == str(user_id) for v in self.votes)

    def mark_helpful(self, user_id, is_helpful, deduplicate=False):
        """Count one helpful (or not-helpful) vote.

        Every vote is recorded. Repeat votes by the same user are counted
        unless ``deduplicate`` is set, in which case they are refused.
        """
        if deduplicate and self.has_vote_from(user_id):
            raise PreconditionFailed("You have already voted on this review")

        now = datetime.now(UTC)
        self.add_votes(HelpfulVote(user_id=user_id, is_helpful=bool(is_helpful), voted_at=now))

        with atomic_change(self):
            if is_helpful:
                self.helpful_count = self.helpful_count + 1
            else:
                self.not_helpful_count = self.not_helpful_count + 1
            self.updated_at = now

        self.raise_(
            HelpfulVoteRecorded(
                review_id=self.id,
                voter_id=user_id,
                is_helpful=bool(is_helpful),
                helpful_count=self.helpful_count,
                not_helpful_count=self.not_helpful_count,
                voted_at=now,
            )
        )
