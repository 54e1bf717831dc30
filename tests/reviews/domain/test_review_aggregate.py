import pytest
from protean.exceptions import ValidationError

from marketplace.reviews.review.events import (
    HelpfulVoteRecorded,
    ReviewEdited,
    ReviewModerated,
    ReviewSubmitted,
)
from marketplace.reviews.review.review import Rating, Review, ReviewStatus
from marketplace.shared.errors import PreconditionFailed


def _submit(**overrides):
    defaults = {
        "product_id": "prod-1",
        "user_id": "buyer-1",
        "order_id": "order-1",
        "rating": 5,
        "title": "Great",
        "content": "Loved it",
    }
    defaults.update(overrides)
    return Review.submit(**defaults)


class TestRating:
    @pytest.mark.parametrize("score", [1, 5])
    def test_bounds(self, score):
        assert Rating(score=score).score == score

    @pytest.mark.parametrize("score", [0, 6])
    def test_out_of_range(self, score):
        with pytest.raises(ValidationError) as exc:
            Rating(score=score)
        assert "rating" in exc.value.messages


class TestSubmit:
    def test_new_review_is_pending_and_verified(self):
        review = _submit()
        assert review.status == ReviewStatus.PENDING.value
        assert review.is_verified is True
        assert review.helpful_count == 0
        assert review.not_helpful_count == 0
        assert review.created_at is not None
        assert review.updated_at is not None

    def test_submitted_event(self):
        review = _submit(images=["https://cdn.example.com/a.jpg"])
        event = review._events[-1]
        assert isinstance(event, ReviewSubmitted)
        assert event.image_count == 1

    def test_images_kept_in_order(self):
        review = _submit(images=["https://cdn.example.com/a.jpg", "http://cdn.example.com/b.jpg"])
        assert sorted((i.display_order, i.url) for i in review.images)[0][1] == "https://cdn.example.com/a.jpg"

    def test_non_http_image_rejected(self):
        with pytest.raises(ValidationError):
            _submit(images=["ftp://cdn.example.com/a.jpg"])

    def test_too_many_images(self):
        with pytest.raises(ValidationError):
            _submit(images=[f"https://cdn.example.com/{n}.jpg" for n in range(6)])

    def test_title_too_short(self):
        with pytest.raises(ValidationError) as exc:
            _submit(title="Meh")
        assert "title" in exc.value.messages

    def test_blank_content(self):
        with pytest.raises(ValidationError):
            _submit(content="   ")

    def test_content_limit(self):
        with pytest.raises(ValidationError):
            _submit(content="x" * 1001)


class TestEdit:
    def test_edit_pending(self):
        review = _submit()
        review.edit(title="Still great", rating=4)
        assert review.title == "Still great"
        assert review.rating.score == 4
        assert review.content == "Loved it"
        assert review.is_edited
        assert isinstance(review._events[-1], ReviewEdited)

    def test_approved_reviews_are_frozen(self):
        review = _submit()
        review.moderate("approved", moderator_id="admin-1")
        with pytest.raises(PreconditionFailed):
            review.edit(title="Changed my mind")

    def test_editing_rejected_review_requeues_it(self):
        review = _submit()
        review.moderate("rejected", moderator_id="admin-1", notes="Off topic")
        review.edit(content="About the product this time")
        assert review.status == ReviewStatus.PENDING.value


class TestModerate:
    @pytest.mark.parametrize(
        "first, second",
        [
            ("approved", "rejected"),
            ("rejected", "approved"),
            ("approved", "pending"),
            ("rejected", "pending"),
        ],
    )
    def test_any_to_any(self, first, second):
        review = _submit()
        review.moderate(first, moderator_id="admin-1")
        review.moderate(second, moderator_id="admin-1")
        assert review.status == second

    def test_records_moderator(self):
        review = _submit()
        review.moderate("approved", moderator_id="admin-1", notes="Looks good")
        assert str(review.moderated_by) == "admin-1"
        assert review.moderator_notes == "Looks good"
        assert review.moderated_at is not None
        event = review._events[-1]
        assert isinstance(event, ReviewModerated)
        assert event.previous_status == "pending"

    def test_unknown_status(self):
        with pytest.raises(ValidationError):
            _submit().moderate("published", moderator_id="admin-1")


class TestHelpfulness:
    def test_counts_every_vote_by_default(self):
        review = _submit()
        review.mark_helpful(user_id="voter-1", is_helpful=True)
        review.mark_helpful(user_id="voter-1", is_helpful=True)
        assert review.helpful_count == 2
        assert len(review.votes) == 2

    def test_not_helpful(self):
        review = _submit()
        review.mark_helpful(user_id="voter-1", is_helpful=False)
        assert review.not_helpful_count == 1
        assert review.helpful_count == 0
        assert isinstance(review._events[-1], HelpfulVoteRecorded)

    def test_deduplicated_votes(self):
        review = _submit()
        review.mark_helpful(user_id="voter-1", is_helpful=True, deduplicate=True)
        with pytest.raises(PreconditionFailed):
            review.mark_helpful(user_id="voter-1", is_helpful=False, deduplicate=True)
        assert review.has_vote_from("voter-1")
        assert review.helpful_count == 1
        assert review.not_helpful_count == 0
