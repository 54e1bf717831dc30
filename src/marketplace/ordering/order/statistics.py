"""Order counts per status and revenue, for one buyer or across the marketplace."""

from dataclasses import asdict, dataclass, field

from protean.utils.globals import current_domain

from marketplace.ordering.order.order import Order, OrderStatus
from marketplace.shared.policy import Action, Actor, authorize
from marketplace.utils.db import fetch_all


def _empty_counts():
    return {status.value: 0 for status in OrderStatus}


@dataclass
class OrderStatistics:
    total: int = 0
    by_status: dict = field(default_factory=_empty_counts)
    total_revenue: float = 0.0

    def to_dict(self):
        return asdict(self)


def summarize(orders) -> OrderStatistics:
    """Count orders per status; revenue sums grand totals of orders that were not cancelled."""
    stats = OrderStatistics()
    revenue = 0.0
    for order in orders:
        stats.total += 1
        stats.by_status[order.status] += 1
        if order.status != OrderStatus.CANCELLED.value and order.pricing:
            revenue += order.pricing.grand_total
    stats.total_revenue = round(revenue, 2)
    return stats


def statistics_for(user_id) -> OrderStatistics:
    repo = current_domain.repository_for(Order)
    return summarize(fetch_all(repo._dao.query.filter(user_id=str(user_id))))


def marketplace_statistics(actor: Actor) -> OrderStatistics:
    authorize(actor, Action.LIST_ALL_ORDERS, message="Only admins can see marketplace order statistics")
    return summarize(fetch_all(current_domain.repository_for(Order)._dao.query))
