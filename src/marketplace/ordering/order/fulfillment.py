"""Order status changes — whole-order transitions, cancellation and per-item updates.

Every handler follows the same sequence: load the order, evaluate the
authorization policy, then let the aggregate check the state machine.
"""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from marketplace.catalogue.product.product import Product
from marketplace.domain import marketplace, logger
from marketplace.ordering.order.order import Order, OrderStatus, parse_status
from marketplace.shared.errors import load
from marketplace.shared.policy import Action, Actor, authorize

_ACTION_FOR_TARGET = {
    OrderStatus.PROCESSING: Action.PROCESS_ORDER,
    OrderStatus.SHIPPED: Action.SHIP_ORDER,
    OrderStatus.DELIVERED: Action.DELIVER_ORDER,
    OrderStatus.CANCELLED: Action.CANCEL_ORDER,
}


def action_for(target: OrderStatus) -> Action:
    # PENDING is never a reachable target
    return _ACTION_FOR_TARGET.get(target, Action.PROCESS_ORDER)


def live_lines(order: Order) -> list[tuple[str, int]]:
    return [(str(item.product_id), item.quantity) for item in order.items if item.is_live]


def restore_stock(lines) -> None:
    """Put the quantities of cancelled lines back into product stock."""
    repo = current_domain.repository_for(Product)
    for product_id, quantity in lines:
        product = load(repo, product_id, "Product")
        product.release(quantity)
        repo.add(product)
        logger.info("stock_restored", product_id=product_id, quantity=quantity, stock=product.stock)


@marketplace.command(part_of="Order")
class TransitionOrderStatus:
    order_id = Identifier(required=True)
    status = String(required=True, max_length=20)
    tracking_number = String(max_length=100)
    actor_id = Identifier(required=True)
    actor_role = String(required=True, max_length=20)


@marketplace.command(part_of="Order")
class CancelOrder:
    order_id = Identifier(required=True)
    reason = String(max_length=500)
    actor_id = Identifier(required=True)
    actor_role = String(required=True, max_length=20)


@marketplace.command(part_of="Order")
class UpdateItemStatus:
    order_id = Identifier(required=True)
    product_id = Identifier(required=True)
    status = String(required=True, max_length=20)
    tracking_number = String(max_length=100)
    actor_id = Identifier(required=True)
    actor_role = String(required=True, max_length=20)


@marketplace.command_handler(part_of=Order)
class OrderFulfillmentHandler:
    @handle(TransitionOrderStatus)
    def transition_order(self, command):
        repo = current_domain.repository_for(Order)
        order = load(repo, command.order_id, "Order")

        target = parse_status(command.status)
        actor = Actor(user_id=str(command.actor_id), role=command.actor_role)
        authorize(actor, action_for(target), owner_id=order.user_id)

        previous = order.status
        if target == OrderStatus.CANCELLED:
            released = live_lines(order)
            order.cancel(cancelled_by=actor.user_id)
            restore_stock(released)
        else:
            order.transition(target, changed_by=actor.user_id, tracking_number=command.tracking_number)
        repo.add(order)

        logger.info(
            "order_status_changed",
            order_id=str(order.id),
            previous_status=previous,
            new_status=order.status,
            actor_id=actor.user_id,
        )

    @handle(CancelOrder)
    def cancel_order(self, command):
        repo = current_domain.repository_for(Order)
        order = load(repo, command.order_id, "Order")

        actor = Actor(user_id=str(command.actor_id), role=command.actor_role)
        authorize(actor, Action.CANCEL_ORDER, owner_id=order.user_id, message="Order does not belong to user")

        released = live_lines(order)
        order.cancel(cancelled_by=actor.user_id, reason=command.reason)
        restore_stock(released)
        repo.add(order)

        logger.info("order_cancelled", order_id=str(order.id), actor_id=actor.user_id, reason=command.reason)

    @handle(UpdateItemStatus)
    def update_item_status(self, command):
        repo = current_domain.repository_for(Order)
        order = load(repo, command.order_id, "Order")

        target = parse_status(command.status)
        actor = Actor(user_id=str(command.actor_id), role=command.actor_role)
        authorize(actor, action_for(target), owner_id=order.user_id)

        order.update_item_status(
            command.product_id,
            target.value,
            changed_by=actor.user_id,
            tracking_number=command.tracking_number,
        )
        if target == OrderStatus.CANCELLED:
            item = order.item_for(command.product_id)
            restore_stock([(str(item.product_id), item.quantity)])
        repo.add(order)

        logger.info(
            "order_item_status_changed",
            order_id=str(order.id),
            product_id=str(command.product_id),
            item_status=target.value,
            order_status=order.status,
        )
