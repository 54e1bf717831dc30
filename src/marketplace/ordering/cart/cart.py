"""Cart aggregate (CQRS) — a buyer's server-side basket that checks out into an Order.

Each user has at most one active cart. Items are keyed by product; adding a
product already in the cart tops up its quantity. Checkout marks the cart
as checked out, and the next add starts a new one.
"""

from datetime import UTC, datetime
from enum import Enum

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, HasMany, Identifier, Integer, String

from marketplace.domain import marketplace
from marketplace.ordering.cart.events import (
    CartCheckedOut,
    CartCleared,
    CartItemAdded,
    CartItemRemoved,
    CartQuantityUpdated,
)
from marketplace.shared.errors import NotFound, PreconditionFailed


class CartStatus(Enum):
    ACTIVE = "active"
    CHECKED_OUT = "checked_out"


@marketplace.entity(part_of="Cart")
class CartItem:
    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)
    added_at = DateTime()


@marketplace.aggregate
class Cart:
    user_id = Identifier(required=True)
    items = HasMany(CartItem)
    status = String(choices=CartStatus, default=CartStatus.ACTIVE.value)
    order_id = Identifier()
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def checked_out_cart_has_an_order(self):
        if self.status == CartStatus.CHECKED_OUT.value and not self.order_id:
            raise ValidationError({"cart": ["A checked-out cart must reference its order"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def open(cls, user_id):
        now = datetime.now(UTC)
        return cls(user_id=user_id, status=CartStatus.ACTIVE.value, created_at=now, updated_at=now)

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    @property
    def is_active(self):
        return self.status == CartStatus.ACTIVE.value

    def item_for(self, product_id) -> CartItem | None:
        return next((i for i in self.items if str(i.product_id) == str(product_id)), None)

    def quantity_of(self, product_id) -> int:
        item = self.item_for(product_id)
        return item.quantity if item else 0

    def quantities(self) -> dict:
        return {str(item.product_id): item.quantity for item in self.items}

    def _assert_active(self):
        if not self.is_active:
            raise PreconditionFailed("Cart has already been checked out")

    def _required_item(self, product_id) -> CartItem:
        item = self.item_for(product_id)
        if item is None:
            raise NotFound("Product not in cart")
        return item

    # -------------------------------------------------------------------
    # Item management
    # -------------------------------------------------------------------
    def add_item(self, product_id, quantity):
        self._assert_active()
        if quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be at least 1"]})

        now = datetime.now(UTC)
        existing = self.item_for(product_id)
        if existing:
            existing.quantity = existing.quantity + quantity
        else:
            self.add_items(CartItem(product_id=product_id, quantity=quantity, added_at=now))
        self.updated_at = now

        self.raise_(CartItemAdded(cart_id=self.id, product_id=product_id, quantity=quantity))

    def update_quantity(self, product_id, quantity):
        self._assert_active()
        if quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be at least 1"]})

        item = self._required_item(product_id)
        previous = item.quantity
        item.quantity = quantity
        self.updated_at = datetime.now(UTC)

        self.raise_(
            CartQuantityUpdated(
                cart_id=self.id,
                product_id=product_id,
                previous_quantity=previous,
                new_quantity=quantity,
            )
        )

    def remove_item(self, product_id):
        self._assert_active()
        self.remove_items(self._required_item(product_id))
        self.updated_at = datetime.now(UTC)

        self.raise_(CartItemRemoved(cart_id=self.id, product_id=product_id))

    def clear(self):
        self._assert_active()
        removed = len(self.items)
        for item in list(self.items):
            self.remove_items(item)
        self.updated_at = datetime.now(UTC)

        self.raise_(CartCleared(cart_id=self.id, items_removed=removed))

    # -------------------------------------------------------------------
    # Checkout
    # -------------------------------------------------------------------
    def check_out(self, order_id):
        self._assert_active()
        if not self.items:
            raise ValidationError({"items": ["Cart is empty"]})

        now = datetime.now(UTC)
        with atomic_change(self):
            self.order_id = order_id
            self.status = CartStatus.CHECKED_OUT.value
            self.updated_at = now

        self.raise_(
            CartCheckedOut(
                cart_id=self.id,
                user_id=self.user_id,
                order_id=order_id,
                checked_out_at=now,
            )
        )
