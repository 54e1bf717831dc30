"""Authorization policy: who may perform which action.

Every command handler calls ``authorize`` after loading the aggregate it
acts on. Rules pair a set of roles with an ownership flag; an actor is
allowed when they hold one of the roles, or when the rule admits owners and
the actor owns the resource.
"""

from dataclasses import dataclass
from enum import Enum

from marketplace.config import get_settings
from marketplace.shared.errors import Forbidden


class Role(Enum):
    BUYER = "buyer"
    SELLER = "seller"
    ADMIN = "admin"


class Action(Enum):
    PROCESS_ORDER = "process_order"
    SHIP_ORDER = "ship_order"
    DELIVER_ORDER = "deliver_order"
    CANCEL_ORDER = "cancel_order"
    VIEW_ORDER = "view_order"
    LIST_ALL_ORDERS = "list_all_orders"
    SUBMIT_REVIEW = "submit_review"
    EDIT_REVIEW = "edit_review"
    VIEW_REVIEW = "view_review"
    MODERATE_REVIEW = "moderate_review"
    MANAGE_CATALOGUE = "manage_catalogue"
    SELL_PRODUCT = "sell_product"
    MANAGE_PRODUCT = "manage_product"
    MANAGE_USERS = "manage_users"


@dataclass(frozen=True)
class Actor:
    """The authenticated caller of a command."""

    user_id: str
    role: str


@dataclass(frozen=True)
class Rule:
    roles: frozenset = frozenset()
    owner: bool = False


def _rules():
    settings = get_settings()
    operators = settings.operator_roles
    return {
        Action.PROCESS_ORDER: Rule(roles=operators),
        Action.SHIP_ORDER: Rule(roles=operators),
        Action.DELIVER_ORDER: Rule(roles=operators, owner=True),
        Action.CANCEL_ORDER: Rule(roles=operators, owner=True),
        Action.VIEW_ORDER: Rule(roles=operators, owner=True),
        Action.LIST_ALL_ORDERS: Rule(roles=frozenset({Role.ADMIN.value})),
        Action.SUBMIT_REVIEW: Rule(owner=True),
        Action.EDIT_REVIEW: Rule(owner=True),
        Action.VIEW_REVIEW: Rule(roles=settings.moderator_roles, owner=True),
        Action.MODERATE_REVIEW: Rule(roles=settings.moderator_roles),
        Action.MANAGE_CATALOGUE: Rule(roles=settings.catalogue_roles),
        Action.SELL_PRODUCT: Rule(roles=frozenset({Role.SELLER.value, Role.ADMIN.value})),
        Action.MANAGE_PRODUCT: Rule(roles=frozenset({Role.ADMIN.value}), owner=True),
        Action.MANAGE_USERS: Rule(roles=frozenset({Role.ADMIN.value})),
    }


def is_allowed(actor: Actor, action: Action, owner_id=None) -> bool:
    rule = _rules()[action]
    if actor.role in rule.roles:
        return True
    return rule.owner and owner_id is not None and str(owner_id) == str(actor.user_id)


def authorize(actor: Actor, action: Action, owner_id=None, message=None) -> None:
    """Raise ``Forbidden`` unless ``actor`` may perform ``action``."""
    if not is_allowed(actor, action, owner_id):
        raise Forbidden(message or f"Not allowed to {action.value.replace('_', ' ')}")
