"""FastAPI routes for the Ordering bounded context."""

import json

from fastapi import APIRouter, Depends
from protean.utils.globals import current_domain

from marketplace.ordering.api.schemas import (
    AddToCartRequest,
    CancelOrderRequest,
    CheckoutRequest,
    PlaceOrderRequest,
    TransitionStatusRequest,
    UpdateCartItemRequest,
)
from marketplace.ordering.cart.browsing import availability, cart_payload
from marketplace.ordering.cart.checkout import CheckoutCart
from marketplace.ordering.cart.items import AddToCart, ClearCart, RemoveFromCart, UpdateCartQuantity
from marketplace.ordering.order.browsing import (
    get_order,
    get_order_by_number,
    list_all_orders,
    list_orders_for,
    order_payload,
)
from marketplace.ordering.order.fulfillment import CancelOrder, TransitionOrderStatus, UpdateItemStatus
from marketplace.ordering.order.placement import PlaceOrder
from marketplace.ordering.order.statistics import marketplace_statistics, statistics_for
from marketplace.shared.http import Envelope, current_actor, ok
from marketplace.shared.policy import Actor

_ENVELOPE = {"response_model": Envelope, "response_model_exclude_none": True}


# ---------------------------------------------------------------------------
# Cart Router
# ---------------------------------------------------------------------------
cart_router = APIRouter(prefix="/cart", tags=["cart"])


@cart_router.get("", **_ENVELOPE)
async def show_cart(actor: Actor = Depends(current_actor)) -> Envelope:
    return ok(cart_payload(actor.user_id))


@cart_router.get("/availability", **_ENVELOPE)
async def cart_availability(actor: Actor = Depends(current_actor)) -> Envelope:
    return ok(availability(actor.user_id))


@cart_router.post("/items", **_ENVELOPE)
async def add_cart_item(body: AddToCartRequest, actor: Actor = Depends(current_actor)) -> Envelope:
    command = AddToCart(user_id=actor.user_id, product_id=body.product_id, quantity=body.quantity)
    current_domain.process(command, asynchronous=False)
    return ok(cart_payload(actor.user_id), "Item added to cart")


@cart_router.put("/items/{product_id}", **_ENVELOPE)
async def update_cart_item(
    product_id: str, body: UpdateCartItemRequest, actor: Actor = Depends(current_actor)
) -> Envelope:
    command = UpdateCartQuantity(user_id=actor.user_id, product_id=product_id, quantity=body.quantity)
    current_domain.process(command, asynchronous=False)
    return ok(cart_payload(actor.user_id), "Cart updated")


@cart_router.delete("/items/{product_id}", **_ENVELOPE)
async def remove_cart_item(product_id: str, actor: Actor = Depends(current_actor)) -> Envelope:
    current_domain.process(RemoveFromCart(user_id=actor.user_id, product_id=product_id), asynchronous=False)
    return ok(cart_payload(actor.user_id), "Item removed from cart")


@cart_router.delete("", **_ENVELOPE)
async def clear_cart(actor: Actor = Depends(current_actor)) -> Envelope:
    current_domain.process(ClearCart(user_id=actor.user_id), asynchronous=False)
    return ok(cart_payload(actor.user_id), "Cart cleared")


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.post("", status_code=201, **_ENVELOPE)
async def place_order(body: PlaceOrderRequest, actor: Actor = Depends(current_actor)) -> Envelope:
    command = PlaceOrder(
        user_id=actor.user_id,
        items=json.dumps([line.model_dump() for line in body.items]),
        shipping_address=body.shipping_address.model_dump_json() if body.shipping_address else None,
        notes=body.notes,
    )
    order_id = current_domain.process(command, asynchronous=False)
    return ok(order_payload(get_order(order_id, actor)), "Order placed")


@order_router.post("/from-cart", status_code=201, **_ENVELOPE)
async def checkout_cart(body: CheckoutRequest, actor: Actor = Depends(current_actor)) -> Envelope:
    command = CheckoutCart(
        user_id=actor.user_id,
        shipping_address=body.shipping_address.model_dump_json() if body.shipping_address else None,
        notes=body.notes,
    )
    order_id = current_domain.process(command, asynchronous=False)
    return ok(order_payload(get_order(order_id, actor)), "Order placed")


@order_router.get("", **_ENVELOPE)
async def my_orders(status: str | None = None, actor: Actor = Depends(current_actor)) -> Envelope:
    return ok([order_payload(o) for o in list_orders_for(actor.user_id, status)])


@order_router.get("/all", **_ENVELOPE)
async def all_orders(status: str | None = None, actor: Actor = Depends(current_actor)) -> Envelope:
    return ok([order_payload(o) for o in list_all_orders(actor, status)])


@order_router.get("/statistics/mine", **_ENVELOPE)
async def my_order_statistics(actor: Actor = Depends(current_actor)) -> Envelope:
    return ok(statistics_for(actor.user_id).to_dict())


@order_router.get("/statistics/all", **_ENVELOPE)
async def all_order_statistics(actor: Actor = Depends(current_actor)) -> Envelope:
    return ok(marketplace_statistics(actor).to_dict())


@order_router.get("/number/{order_number}", **_ENVELOPE)
async def show_order_by_number(order_number: str, actor: Actor = Depends(current_actor)) -> Envelope:
    return ok(order_payload(get_order_by_number(order_number, actor)))


@order_router.get("/{order_id}", **_ENVELOPE)
async def show_order(order_id: str, actor: Actor = Depends(current_actor)) -> Envelope:
    return ok(order_payload(get_order(order_id, actor)))


@order_router.put("/{order_id}/status", **_ENVELOPE)
async def transition_status(
    order_id: str, body: TransitionStatusRequest, actor: Actor = Depends(current_actor)
) -> Envelope:
    command = TransitionOrderStatus(
        order_id=order_id,
        status=body.status,
        tracking_number=body.tracking_number,
        actor_id=actor.user_id,
        actor_role=actor.role,
    )
    current_domain.process(command, asynchronous=False)
    return ok(order_payload(get_order(order_id, actor)), "Order status updated")


@order_router.post("/{order_id}/cancel", **_ENVELOPE)
async def cancel_order(order_id: str, body: CancelOrderRequest, actor: Actor = Depends(current_actor)) -> Envelope:
    command = CancelOrder(
        order_id=order_id,
        reason=body.reason,
        actor_id=actor.user_id,
        actor_role=actor.role,
    )
    current_domain.process(command, asynchronous=False)
    return ok(order_payload(get_order(order_id, actor)), "Order cancelled")


@order_router.put("/{order_id}/items/{product_id}/status", **_ENVELOPE)
async def update_item_status(
    order_id: str,
    product_id: str,
    body: TransitionStatusRequest,
    actor: Actor = Depends(current_actor),
) -> Envelope:
    command = UpdateItemStatus(
        order_id=order_id,
        product_id=product_id,
        status=body.status,
        tracking_number=body.tracking_number,
        actor_id=actor.user_id,
        actor_role=actor.role,
    )
    current_domain.process(command, asynchronous=False)
    return ok(order_payload(get_order(order_id, actor)), "Item status updated")
