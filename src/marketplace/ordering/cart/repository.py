"""Repository for the Cart aggregate."""

from marketplace.domain import marketplace
from marketplace.ordering.cart.cart import Cart, CartStatus


@marketplace.repository(part_of=Cart)
class CartRepository:
    def active_for(self, user_id) -> Cart | None:
        items = self._dao.query.filter(user_id=str(user_id), status=CartStatus.ACTIVE.value).all().items
        return items[0] if items else None

    def open_for(self, user_id) -> Cart:
        """The user's active cart, or a new unsaved one."""
        return self.active_for(user_id) or Cart.open(user_id)
