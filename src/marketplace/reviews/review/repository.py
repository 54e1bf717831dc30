"""Repository for the Review aggregate."""

from marketplace.domain import marketplace
from marketplace.reviews.review.review import Review, ReviewStatus
from marketplace.utils.db import fetch_all


def _newest_first(reviews):
    return sorted(reviews, key=lambda r: r.created_at.isoformat() if r.created_at else "", reverse=True)


@marketplace.repository(part_of=Review)
class ReviewRepository:
    def find_existing(self, user_id, order_id, product_id) -> Review | None:
        items = (
            self._dao.query.filter(
                user_id=str(user_id),
                order_id=str(order_id),
                product_id=str(product_id),
            )
            .all()
            .items
        )
        return items[0] if items else None

    def for_product(self, product_id, status=ReviewStatus.APPROVED.value) -> list[Review]:
        return _newest_first(fetch_all(self._dao.query.filter(product_id=str(product_id), status=status)))

    def by_user(self, user_id) -> list[Review]:
        return _newest_first(fetch_all(self._dao.query.filter(user_id=str(user_id))))

    def pending(self) -> list[Review]:
        return _newest_first(fetch_all(self._dao.query.filter(status=ReviewStatus.PENDING.value)))
