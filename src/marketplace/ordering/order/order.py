"""Order aggregate (CQRS) — the purchase record reviews are verified against.

Each line item moves through the fulfillment lifecycle on its own; the
order's overall status is derived from its items rather than stored
independently, so the two can never disagree.

State Machine (orders and items alike):
    PENDING → PROCESSING → SHIPPED → DELIVERED
    PENDING | PROCESSING | SHIPPED → CANCELLED
    DELIVERED, CANCELLED → (terminal)

Derived status:
    every item cancelled            → CANCELLED
    otherwise                       → least advanced status among live items
"""

from datetime import UTC, datetime
from enum import Enum
from uuid import uuid4

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import (
    DateTime,
    Float,
    HasMany,
    Identifier,
    Integer,
    String,
    Text,
    ValueObject,
)

from marketplace.domain import marketplace
from marketplace.ordering.order.events import (
    OrderCancelled,
    OrderDelivered,
    OrderItemStatusChanged,
    OrderPlaced,
    OrderStatusChanged,
)
from marketplace.shared.errors import InvalidTransition, NotFound


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


# Forward progression; CANCELLED sits outside it
_PROGRESSION = [
    OrderStatus.PENDING,
    OrderStatus.PROCESSING,
    OrderStatus.SHIPPED,
    OrderStatus.DELIVERED,
]

_VALID_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.PROCESSING, OrderStatus.CANCELLED},
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED, OrderStatus.CANCELLED},
    OrderStatus.DELIVERED: set(),  # Terminal
    OrderStatus.CANCELLED: set(),  # Terminal
}


def parse_status(value) -> OrderStatus:
    try:
        return OrderStatus(value)
    except ValueError as exc:
        allowed = ", ".join(s.value for s in OrderStatus)
        raise ValidationError({"status": [f"Unknown status '{value}'. Expected one of: {allowed}"]}) from exc


def can_transition(current: OrderStatus, target: OrderStatus) -> bool:
    return target in _VALID_TRANSITIONS[current]


def _rank(status: OrderStatus) -> int:
    return _PROGRESSION.index(status)


def derive_status(item_statuses) -> OrderStatus:
    """Overall order status for a collection of item statuses."""
    statuses = [OrderStatus(s) for s in item_statuses]
    live = [s for s in statuses if s != OrderStatus.CANCELLED]
    if not live:
        return OrderStatus.CANCELLED
    return min(live, key=_rank)


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@marketplace.value_object(part_of="Order")
class ShippingAddress:
    """Where the order ships, captured at checkout and never changed afterwards."""

    street = String(required=True, max_length=255)
    city = String(required=True, max_length=100)
    state = String(max_length=100)
    postal_code = String(required=True, max_length=20)
    country = String(required=True, max_length=100)


@marketplace.value_object(part_of="Order")
class OrderPricing:
    """Financial summary of an order, locked at checkout."""

    subtotal = Float(default=0.0, min_value=0.0)
    tax_total = Float(default=0.0, min_value=0.0)
    shipping_cost = Float(default=0.0, min_value=0.0)
    grand_total = Float(default=0.0, min_value=0.0)
    currency = String(max_length=3, default="USD")

    @invariant.post
    def grand_total_adds_up(self):
        expected = round(self.subtotal + self.tax_total + self.shipping_cost, 2)
        if abs(self.grand_total - expected) > 0.01:
            raise ValidationError({"grand_total": ["Grand total must equal subtotal + tax + shipping"]})

    @classmethod
    def calculate(cls, subtotal, tax_rate, free_shipping_threshold, flat_shipping, currency="USD"):
        """Tax is a flat rate on the subtotal; shipping is free at or above the threshold."""
        subtotal = round(subtotal, 2)
        tax = round(subtotal * tax_rate, 2)
        shipping = 0.0 if subtotal >= free_shipping_threshold else round(flat_shipping, 2)
        return cls(
            subtotal=subtotal,
            tax_total=tax,
            shipping_cost=shipping,
            grand_total=round(subtotal + tax + shipping, 2),
            currency=currency,
        )


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@marketplace.entity(part_of="Order")
class OrderItem:
    """A line item: a product snapshot (name, price, seller) and a quantity.

    Each item tracks its own fulfillment status so that one seller can ship
    before another.
    """

    product_id = Identifier(required=True)
    product_name = String(required=True, max_length=200)
    seller_id = Identifier()
    quantity = Integer(required=True, min_value=1)
    unit_price = Float(required=True, min_value=0.0)
    item_status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    tracking_number = String(max_length=100)
    shipped_at = DateTime()
    delivered_at = DateTime()
    cancelled_at = DateTime()

    @property
    def line_total(self):
        return round(self.unit_price * self.quantity, 2)

    @property
    def is_live(self):
        return self.item_status != OrderStatus.CANCELLED.value


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@marketplace.aggregate
class Order:
    order_number = String(required=True, max_length=30, unique=True)
    user_id = Identifier(required=True)
    items = HasMany(OrderItem)
    status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    pricing = ValueObject(OrderPricing)
    shipping_address = ValueObject(ShippingAddress)
    notes = Text()
    tracking_number = String(max_length=100)

    # Fulfillment timestamps
    processed_at = DateTime()
    shipped_at = DateTime()
    delivered_at = DateTime()

    # Cancellation
    cancelled_at = DateTime()
    cancelled_by = Identifier()
    cancel_reason = String(max_length=500)

    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def place(cls, user_id, items, pricing, shipping_address=None, notes=None):
        """Create a pending order.

        ``items`` is a list of dicts with ``product_id``, ``product_name``,
        ``seller_id``, ``quantity`` and ``unit_price``.
        """
        if not items:
            raise ValidationError({"items": ["Order must contain at least one item"]})

        now = datetime.now(UTC)
        order = cls(
            order_number=f"ORD-{now:%Y%m%d}-{uuid4().hex[:8].upper()}",
            user_id=user_id,
            status=OrderStatus.PENDING.value,
            pricing=pricing,
            shipping_address=shipping_address,
            notes=notes,
            created_at=now,
            updated_at=now,
        )
        for item in items:
            order.add_items(
                OrderItem(
                    product_id=item["product_id"],
                    product_name=item["product_name"],
                    seller_id=item.get("seller_id"),
                    quantity=item["quantity"],
                    unit_price=item["unit_price"],
                    item_status=OrderStatus.PENDING.value,
                )
            )

        order.raise_(
            OrderPlaced(
                order_id=order.id,
                order_number=order.order_number,
                user_id=user_id,
                item_count=len(items),
                grand_total=pricing.grand_total if pricing else 0.0,
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    def is_owned_by(self, user_id) -> bool:
        return user_id is not None and str(self.user_id) == str(user_id)

    def contains_product(self, product_id) -> bool:
        return any(str(item.product_id) == str(product_id) for item in self.items)

    def is_reviewable_by(self, user_id) -> bool:
        """True iff the order is delivered and belongs to ``user_id``."""
        return self.status == OrderStatus.DELIVERED.value and self.is_owned_by(user_id)

    def item_for(self, product_id) -> OrderItem:
        item = next((i for i in self.items if str(i.product_id) == str(product_id)), None)
        if item is None:
            raise NotFound("Product not in order")
        return item

    # -------------------------------------------------------------------
    # State transitions
    # -------------------------------------------------------------------
    def _assert_can_transition(self, current, target, subject="order"):
        if not can_transition(current, target):
            raise InvalidTransition(f"Cannot transition {subject} from {current.value} to {target.value}")

    def _advance_item(self, item, target, now, tracking_number=None):
        item.item_status = target.value
        if target == OrderStatus.SHIPPED:
            item.shipped_at = now
            if tracking_number:
                item.tracking_number = tracking_number
        elif target == OrderStatus.DELIVERED:
            item.delivered_at = now
        elif target == OrderStatus.CANCELLED:
            item.cancelled_at = now

    def _sync_status(self, now):
        """Re-derive the overall status from the items and stamp the order on change."""
        previous = OrderStatus(self.status)
        derived = derive_status([item.item_status for item in self.items])
        if derived == previous:
            return previous

        self.status = derived.value
        if derived == OrderStatus.PROCESSING and self.processed_at is None:
            self.processed_at = now
        elif derived == OrderStatus.SHIPPED and self.shipped_at is None:
            self.shipped_at = now
        elif derived == OrderStatus.DELIVERED:
            self.delivered_at = now
        elif derived == OrderStatus.CANCELLED and self.cancelled_at is None:
            self.cancelled_at = now
        return previous

    def _record_change(self, previous, changed_by, now):
        current = OrderStatus(self.status)
        if current == previous:
            return

        self.raise_(
            OrderStatusChanged(
                order_id=self.id,
                previous_status=previous.value,
                new_status=current.value,
                changed_by=changed_by,
                changed_at=now,
            )
        )
        if current == OrderStatus.DELIVERED:
            self.raise_(
                OrderDelivered(
                    order_id=self.id,
                    user_id=self.user_id,
                    product_ids=",".join(str(i.product_id) for i in self.items if i.is_live),
                    delivered_at=self.delivered_at,
                )
            )

    def transition(self, target, changed_by, tracking_number=None):
        """Move the whole order forward one step.

        Live items lagging behind ``target`` are brought up to it. Delivery
        stamps the order and every live item; shipping records the tracking
        number. Use ``cancel`` for cancellation.
        """
        target = parse_status(target)
        if target == OrderStatus.CANCELLED:
            return self.cancel(cancelled_by=changed_by)

        current = OrderStatus(self.status)
        self._assert_can_transition(current, target)

        now = datetime.now(UTC)
        with atomic_change(self):
            for item in self.items:
                if item.is_live and _rank(OrderStatus(item.item_status)) < _rank(target):
                    self._advance_item(item, target, now, tracking_number)
            if target == OrderStatus.SHIPPED and tracking_number:
                self.tracking_number = tracking_number
            self._sync_status(now)
            self.updated_at = now

        self._record_change(current, changed_by, now)

    def cancel(self, cancelled_by, reason=None):
        """Cancel every item. Not possible once any item has been delivered."""
        current = OrderStatus(self.status)
        self._assert_can_transition(current, OrderStatus.CANCELLED)
        if any(item.item_status == OrderStatus.DELIVERED.value for item in self.items):
            raise InvalidTransition("Cannot cancel an order with delivered items")

        now = datetime.now(UTC)
        with atomic_change(self):
            for item in self.items:
                if item.is_live:
                    self._advance_item(item, OrderStatus.CANCELLED, now)
            self._sync_status(now)
            self.cancelled_at = now
            self.cancelled_by = cancelled_by
            self.cancel_reason = reason
            self.updated_at = now

        self._record_change(current, cancelled_by, now)
        self.raise_(
            OrderCancelled(
                order_id=self.id,
                cancelled_by=cancelled_by,
                reason=reason,
                cancelled_at=now,
            )
        )

    def update_item_status(self, product_id, target, changed_by, tracking_number=None):
        """Move a single item; the order status follows from the items."""
        target = parse_status(target)
        item = self.item_for(product_id)
        item_current = OrderStatus(item.item_status)
        self._assert_can_transition(item_current, target, subject="item")

        current = OrderStatus(self.status)
        now = datetime.now(UTC)
        with atomic_change(self):
            self._advance_item(item, target, now, tracking_number)
            self._sync_status(now)
            self.updated_at = now

        self.raise_(
            OrderItemStatusChanged(
                order_id=self.id,
                product_id=product_id,
                previous_status=item_current.value,
                new_status=target.value,
                changed_by=changed_by,
                changed_at=now,
            )
        )
        self._record_change(current, changed_by, now)
