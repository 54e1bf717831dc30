"""Application tests for the cart and checking it out into an order."""

import json

import pytest
from protean import current_domain
from protean.exceptions import ValidationError

from marketplace.catalogue.product.management import DeactivateProduct
from marketplace.catalogue.product.product import Product
from marketplace.ordering.cart.browsing import availability, cart_payload
from marketplace.ordering.cart.cart import Cart, CartStatus
from marketplace.ordering.cart.checkout import CheckoutCart
from marketplace.ordering.cart.items import AddToCart, ClearCart, RemoveFromCart, UpdateCartQuantity
from marketplace.ordering.order.order import Order
from marketplace.shared.errors import NotFound, PreconditionFailed


def _add(user, product_id, quantity=1):
    return current_domain.process(
        AddToCart(user_id=user.user_id, product_id=product_id, quantity=quantity), asynchronous=False
    )


def _checkout(user, **extra):
    return current_domain.process(CheckoutCart(user_id=user.user_id, **extra), asynchronous=False)


def _stock(product_id):
    return current_domain.repository_for(Product).get(product_id).stock


class TestCartItems:
    def test_first_add_opens_a_cart(self, make_product, buyer):
        product_id = make_product()
        cart_id = _add(buyer, product_id, 2)

        cart = current_domain.repository_for(Cart).get(cart_id)
        assert str(cart.user_id) == buyer.user_id
        assert cart.quantities() == {product_id: 2}

    def test_one_active_cart_per_user(self, make_product, buyer):
        first, second = make_product(name="Drum"), make_product(name="Flute")
        assert _add(buyer, first) == _add(buyer, second)

    def test_adding_does_not_reserve_stock(self, make_product, buyer):
        product_id = make_product(stock=5)
        _add(buyer, product_id, 3)
        assert _stock(product_id) == 5

    def test_cannot_add_more_than_stock(self, make_product, buyer):
        product_id = make_product(stock=3)
        _add(buyer, product_id, 2)
        with pytest.raises(PreconditionFailed, match="Insufficient stock"):
            _add(buyer, product_id, 2)

    def test_cannot_add_inactive_product(self, make_product, buyer, seller):
        product_id = make_product()
        current_domain.process(
            DeactivateProduct(product_id=product_id, actor_id=seller.user_id, actor_role=seller.role),
            asynchronous=False,
        )
        with pytest.raises(PreconditionFailed, match="not available"):
            _add(buyer, product_id)

    def test_unknown_product(self, buyer):
        with pytest.raises(NotFound, match="Product not found"):
            _add(buyer, "missing")

    def test_update_remove_and_clear(self, make_product, buyer):
        first, second = make_product(name="Drum"), make_product(name="Flute")
        _add(buyer, first)
        _add(buyer, second)

        current_domain.process(
            UpdateCartQuantity(user_id=buyer.user_id, product_id=first, quantity=4), asynchronous=False
        )
        current_domain.process(RemoveFromCart(user_id=buyer.user_id, product_id=second), asynchronous=False)
        assert current_domain.repository_for(Cart).active_for(buyer.user_id).quantities() == {first: 4}

        current_domain.process(ClearCart(user_id=buyer.user_id), asynchronous=False)
        assert len(current_domain.repository_for(Cart).active_for(buyer.user_id).items) == 0

    def test_update_without_cart(self, make_product, buyer):
        with pytest.raises(NotFound, match="Cart not found"):
            current_domain.process(
                UpdateCartQuantity(user_id=buyer.user_id, product_id=make_product(), quantity=1),
                asynchronous=False,
            )


class TestCartViews:
    def test_payload_prices_lines_at_current_prices(self, make_product, buyer):
        product_id = make_product(name="Clay Pot", price=12.0)
        _add(buyer, product_id, 2)

        data = cart_payload(buyer.user_id)
        assert data["items"][0]["line_total"] == 24.0
        assert data["summary"] == {
            "item_count": 2,
            "subtotal": 24.0,
            "tax": 2.4,
            "shipping": 5.0,
            "total": 31.4,
            "currency": "USD",
        }

    def test_empty_payload_without_cart(self, buyer):
        data = cart_payload(buyer.user_id)
        assert data["items"] == []
        assert data["summary"]["total"] == 0.0

    def test_availability_flags_low_stock_and_inactive(self, make_product, place_order, buyer, other_buyer, seller):
        scarce, retired = make_product(name="Scarce", stock=2), make_product(name="Retired")
        _add(buyer, scarce, 2)
        _add(buyer, retired, 1)

        place_order({scarce: 1}, user=other_buyer)
        current_domain.process(
            DeactivateProduct(product_id=retired, actor_id=seller.user_id, actor_role=seller.role),
            asynchronous=False,
        )

        report = availability(buyer.user_id)
        assert [i["product_id"] for i in report["unavailable_items"]] == [retired]
        assert report["low_stock_items"] == [
            {"product_id": scarce, "product_name": "Scarce", "requested_quantity": 2, "available_stock": 1}
        ]


class TestCheckoutCart:
    def test_creates_order_and_reserves_stock(self, make_product, buyer):
        product_id = make_product(price=20.0, stock=5)
        _add(buyer, product_id, 3)

        order_id = _checkout(buyer, notes="Leave at the door")

        order = current_domain.repository_for(Order).get(order_id)
        assert str(order.user_id) == buyer.user_id
        assert order.items[0].quantity == 3
        assert order.pricing.subtotal == 60.0
        assert order.notes == "Leave at the door"
        assert _stock(product_id) == 2

    def test_cart_is_closed_and_next_add_starts_fresh(self, make_product, buyer):
        product_id = make_product()
        cart_id = _add(buyer, product_id)
        order_id = _checkout(buyer)

        closed = current_domain.repository_for(Cart).get(cart_id)
        assert closed.status == CartStatus.CHECKED_OUT.value
        assert str(closed.order_id) == order_id
        assert current_domain.repository_for(Cart).active_for(buyer.user_id) is None

        assert _add(buyer, product_id) != cart_id

    def test_shipping_address(self, make_product, buyer):
        _add(buyer, make_product())
        address = {"street": "12 Rua A", "city": "Maputo", "postal_code": "1100", "country": "MZ"}
        order_id = _checkout(buyer, shipping_address=json.dumps(address))
        assert current_domain.repository_for(Order).get(order_id).shipping_address.city == "Maputo"

    def test_empty_cart(self, buyer):
        with pytest.raises(ValidationError):
            _checkout(buyer)

    def test_stock_shortfall_leaves_cart_open(self, make_product, place_order, buyer, other_buyer):
        product_id = make_product(stock=2)
        _add(buyer, product_id, 2)
        place_order({product_id: 1}, user=other_buyer)

        with pytest.raises(PreconditionFailed, match="Insufficient stock"):
            _checkout(buyer)
        assert current_domain.repository_for(Cart).active_for(buyer.user_id) is not None
