"""Application tests for moderation, helpfulness votes, edits and statistics."""

import pytest
from protean import current_domain
from protean.exceptions import ValidationError

from marketplace.config import reset_settings
from marketplace.reviews.review.browsing import get_review, pending_reviews, product_reviews, user_reviews
from marketplace.reviews.review.editing import EditReview
from marketplace.reviews.review.helpfulness import MarkReviewHelpful
from marketplace.reviews.review.moderation import ModerateReview
from marketplace.reviews.review.review import Review
from marketplace.reviews.review.statistics import statistics
from marketplace.reviews.review.submission import SubmitReview
from marketplace.shared.errors import Forbidden, NotFound, PreconditionFailed


@pytest.fixture()
def review_id(delivered_order, buyer):
    order_id, product_id = delivered_order
    return current_domain.process(
        SubmitReview(
            user_id=buyer.user_id,
            order_id=order_id,
            product_id=product_id,
            rating=4,
            title="Solid buy",
            content="Does what it says",
        ),
        asynchronous=False,
    )


def _moderate(review_id, status, actor, notes=None):
    current_domain.process(
        ModerateReview(
            review_id=review_id,
            status=status,
            moderator_notes=notes,
            actor_id=actor.user_id,
            actor_role=actor.role,
        ),
        asynchronous=False,
    )


def _vote(review_id, voter, is_helpful=True):
    return current_domain.process(
        MarkReviewHelpful(review_id=review_id, user_id=voter.user_id, is_helpful=is_helpful),
        asynchronous=False,
    )


def _review(review_id):
    return current_domain.repository_for(Review).get(review_id)


class TestModerateReview:
    def test_admin_approves(self, review_id, admin):
        _moderate(review_id, "approved", admin, notes="Fine")
        review = _review(review_id)
        assert review.status == "approved"
        assert str(review.moderated_by) == admin.user_id

    def test_corrective_moves_allowed(self, review_id, admin):
        _moderate(review_id, "approved", admin)
        _moderate(review_id, "rejected", admin)
        _moderate(review_id, "pending", admin)
        assert _review(review_id).status == "pending"

    def test_buyer_cannot_moderate(self, review_id, buyer):
        with pytest.raises(Forbidden):
            _moderate(review_id, "approved", buyer)
        assert _review(review_id).status == "pending"

    def test_missing_review(self, admin):
        with pytest.raises(NotFound, match="Review not found"):
            _moderate("missing", "approved", admin)

    def test_unknown_status(self, review_id, admin):
        with pytest.raises(ValidationError):
            _moderate(review_id, "hidden", admin)

    def test_moderator_roles_are_configurable(self, review_id, seller, monkeypatch):
        monkeypatch.setenv("MARKETPLACE_MODERATOR_ROLES", "admin,seller")
        reset_settings()

        _moderate(review_id, "rejected", seller)
        assert _review(review_id).status == "rejected"


class TestMarkHelpful:
    def test_same_caller_twice_counts_twice(self, review_id, other_buyer):
        _vote(review_id, other_buyer)
        counts = _vote(review_id, other_buyer)
        assert counts == {"helpful": 2, "not_helpful": 0}
        assert _review(review_id).helpful_count == 2

    def test_not_helpful(self, review_id, other_buyer):
        assert _vote(review_id, other_buyer, is_helpful=False) == {"helpful": 0, "not_helpful": 1}

    def test_deduplication_flag(self, review_id, other_buyer, monkeypatch):
        monkeypatch.setenv("MARKETPLACE_DEDUPLICATE_VOTES", "true")
        reset_settings()

        _vote(review_id, other_buyer)
        with pytest.raises(PreconditionFailed, match="already voted"):
            _vote(review_id, other_buyer)
        assert _review(review_id).helpful_count == 1

    def test_missing_review(self, other_buyer):
        with pytest.raises(NotFound):
            _vote("missing", other_buyer)


class TestEditReview:
    def test_author_edits_pending_review(self, review_id, buyer):
        current_domain.process(
            EditReview(review_id=review_id, user_id=buyer.user_id, title="Even better", rating=5),
            asynchronous=False,
        )
        review = _review(review_id)
        assert review.title == "Even better"
        assert review.rating.score == 5
        assert review.is_edited

    def test_other_user_refused(self, review_id, other_buyer):
        with pytest.raises(Forbidden, match="Review does not belong to user"):
            current_domain.process(
                EditReview(review_id=review_id, user_id=other_buyer.user_id, title="Hijacked"),
                asynchronous=False,
            )

    def test_approved_review_frozen(self, review_id, buyer, admin):
        _moderate(review_id, "approved", admin)
        with pytest.raises(PreconditionFailed):
            current_domain.process(
                EditReview(review_id=review_id, user_id=buyer.user_id, content="New words"),
                asynchronous=False,
            )

    def test_rating_validated(self, review_id, buyer):
        with pytest.raises(ValidationError):
            current_domain.process(
                EditReview(review_id=review_id, user_id=buyer.user_id, rating=7),
                asynchronous=False,
            )


class TestReviewQueries:
    def test_statistics_count_only_approved(self, review_id, delivered_order, admin):
        _, product_id = delivered_order
        assert statistics(product_id).total_reviews == 0

        _moderate(review_id, "approved", admin)
        stats = statistics(product_id)
        assert stats.total_reviews == 1
        assert stats.average_rating == 4.0
        assert stats.rating_distribution[4] == 1

    def test_statistics_for_unreviewed_product(self):
        stats = statistics("no-such-product")
        assert stats.average_rating == 0
        assert set(stats.rating_distribution.values()) == {0}

    def test_product_reviews_show_approved_only(self, review_id, delivered_order, admin):
        _, product_id = delivered_order
        assert product_reviews(product_id)[0] == []

        _moderate(review_id, "approved", admin)
        reviews, meta = product_reviews(product_id)
        assert [r["id"] for r in reviews] == [review_id]
        assert meta["total"] == 1

    def test_user_reviews(self, review_id, buyer, other_buyer):
        assert [r["id"] for r in user_reviews(buyer)[0]] == [review_id]
        assert user_reviews(other_buyer)[0] == []

    def test_moderation_queue(self, review_id, admin, buyer):
        assert [r["id"] for r in pending_reviews(admin)[0]] == [review_id]
        with pytest.raises(Forbidden):
            pending_reviews(buyer)


class TestReviewVisibility:
    def test_pending_review_hidden_from_others(self, review_id, other_buyer):
        with pytest.raises(NotFound, match="Review not found"):
            get_review(review_id)
        with pytest.raises(NotFound):
            get_review(review_id, other_buyer)

    def test_author_and_moderator_see_pending_review(self, review_id, buyer, admin):
        assert get_review(review_id, buyer)["status"] == "pending"
        assert get_review(review_id, admin)["id"] == review_id

    def test_rejected_review_hidden_from_public(self, review_id, admin, buyer):
        _moderate(review_id, "rejected", admin, notes="Off topic")
        with pytest.raises(NotFound):
            get_review(review_id)
        assert get_review(review_id, buyer)["moderator_notes"] == "Off topic"

    def test_public_view_of_approved_review_omits_moderation_fields(self, review_id, admin, delivered_order):
        _moderate(review_id, "approved", admin, notes="Internal remark")
        public = get_review(review_id)
        assert public["status"] == "approved"
        assert "moderator_notes" not in public
        assert "moderated_by" not in public

        _, product_id = delivered_order
        listed = product_reviews(product_id)[0][0]
        assert "moderator_notes" not in listed
