"""Vitrine marketplace domain — users, catalogue, orders and verified reviews.

A single Protean domain hosts all four bounded contexts. Reviews read Order
state synchronously at submission time, so the contexts share one unit of
work and one set of providers instead of exchanging integration events.
"""

import structlog
from protean.domain import Domain

marketplace = Domain(name="marketplace")

logger = structlog.get_logger(__name__)
