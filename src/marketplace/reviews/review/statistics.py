"""Per-product review statistics, computed over approved reviews only."""

from dataclasses import asdict, dataclass, field

from protean.utils.globals import current_domain

from marketplace.reviews.review.review import Review


def _empty_distribution():
    return {star: 0 for star in range(1, 6)}


@dataclass
class ReviewStatistics:
    total_reviews: int = 0
    average_rating: float = 0.0
    rating_distribution: dict = field(default_factory=_empty_distribution)
    verified_reviews: int = 0
    helpful_reviews: int = 0

    def to_dict(self):
        return asdict(self)


def summarize(reviews) -> ReviewStatistics:
    """Fold approved reviews into counts, a rounded mean and a 1–5 histogram."""
    stats = ReviewStatistics()
    total_score = 0
    for review in reviews:
        score = review.rating.score
        stats.total_reviews += 1
        stats.rating_distribution[score] += 1
        total_score += score
        if review.is_verified:
            stats.verified_reviews += 1
        if review.helpful_count + review.not_helpful_count > 0:
            stats.helpful_reviews += 1

    if stats.total_reviews:
        stats.average_rating = round(total_score / stats.total_reviews, 1)
    return stats


def statistics(product_id) -> ReviewStatistics:
    return summarize(current_domain.repository_for(Review).for_product(product_id))
