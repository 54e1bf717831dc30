"""Read-side queries for orders."""

from protean.utils.globals import current_domain

from marketplace.ordering.order.order import Order, parse_status
from marketplace.shared.errors import NotFound, load
from marketplace.shared.policy import Action, Actor, authorize
from marketplace.utils.db import fetch_all


def _iso(value):
    return value.isoformat() if value else None


def order_payload(order: Order) -> dict:
    pricing = order.pricing
    address = order.shipping_address
    return {
        "id": str(order.id),
        "order_number": order.order_number,
        "user_id": str(order.user_id),
        "status": order.status,
        "items": [
            {
                "product_id": str(item.product_id),
                "product_name": item.product_name,
                "seller_id": str(item.seller_id) if item.seller_id else None,
                "quantity": item.quantity,
                "unit_price": item.unit_price,
                "line_total": item.line_total,
                "status": item.item_status,
                "tracking_number": item.tracking_number,
                "delivered_at": _iso(item.delivered_at),
            }
            for item in order.items
        ],
        "pricing": {
            "subtotal": pricing.subtotal,
            "tax": pricing.tax_total,
            "shipping": pricing.shipping_cost,
            "total": pricing.grand_total,
            "currency": pricing.currency,
        }
        if pricing
        else None,
        "shipping_address": {
            "street": address.street,
            "city": address.city,
            "state": address.state,
            "postal_code": address.postal_code,
            "country": address.country,
        }
        if address
        else None,
        "notes": order.notes,
        "tracking_number": order.tracking_number,
        "delivered_at": _iso(order.delivered_at),
        "cancelled_at": _iso(order.cancelled_at),
        "cancelled_by": str(order.cancelled_by) if order.cancelled_by else None,
        "cancel_reason": order.cancel_reason,
        "created_at": _iso(order.created_at),
    }


def _newest_first(orders):
    return sorted(orders, key=lambda o: o.created_at.isoformat() if o.created_at else "", reverse=True)


def list_orders_for(user_id, status=None) -> list[Order]:
    filters = {"user_id": str(user_id)}
    if status:
        filters["status"] = parse_status(status).value
    repo = current_domain.repository_for(Order)
    return _newest_first(fetch_all(repo._dao.query.filter(**filters)))


def list_all_orders(actor: Actor, status=None) -> list[Order]:
    authorize(actor, Action.LIST_ALL_ORDERS, message="Only admins can list every order")
    repo = current_domain.repository_for(Order)
    queryset = repo._dao.query.filter(status=parse_status(status).value) if status else repo._dao.query
    return _newest_first(fetch_all(queryset))


def get_order(order_id, actor: Actor) -> Order:
    order = load(current_domain.repository_for(Order), order_id, "Order")
    authorize(actor, Action.VIEW_ORDER, owner_id=order.user_id, message="Order does not belong to user")
    return order


def get_order_by_number(order_number, actor: Actor) -> Order:
    repo = current_domain.repository_for(Order)
    matches = repo._dao.query.filter(order_number=order_number).all().items
    if not matches:
        raise NotFound("Order not found")
    order = matches[0]
    authorize(actor, Action.VIEW_ORDER, owner_id=order.user_id, message="Order does not belong to user")
    return order
