"""Tests for the role/ownership authorization policy."""

import pytest

from marketplace.config import reset_settings
from marketplace.shared.errors import Forbidden
from marketplace.shared.policy import Action, Actor, authorize, is_allowed

BUYER = Actor(user_id="u-buyer", role="buyer")
SELLER = Actor(user_id="u-seller", role="seller")
ADMIN = Actor(user_id="u-admin", role="admin")


class TestOrderActions:
    @pytest.mark.parametrize("action", [Action.PROCESS_ORDER, Action.SHIP_ORDER])
    def test_operators_advance_fulfillment(self, action):
        assert is_allowed(SELLER, action, owner_id="someone-else")
        assert is_allowed(ADMIN, action, owner_id="someone-else")

    @pytest.mark.parametrize("action", [Action.PROCESS_ORDER, Action.SHIP_ORDER])
    def test_owner_cannot_process_or_ship(self, action):
        assert not is_allowed(BUYER, action, owner_id=BUYER.user_id)

    @pytest.mark.parametrize("action", [Action.DELIVER_ORDER, Action.CANCEL_ORDER, Action.VIEW_ORDER])
    def test_owner_may_confirm_cancel_and_view(self, action):
        assert is_allowed(BUYER, action, owner_id=BUYER.user_id)

    @pytest.mark.parametrize("action", [Action.DELIVER_ORDER, Action.CANCEL_ORDER, Action.VIEW_ORDER])
    def test_strangers_are_refused(self, action):
        assert not is_allowed(BUYER, action, owner_id="u-other")

    def test_only_admins_list_every_order(self):
        assert is_allowed(ADMIN, Action.LIST_ALL_ORDERS)
        assert not is_allowed(SELLER, Action.LIST_ALL_ORDERS)


class TestReviewActions:
    def test_submit_requires_ownership_even_for_admins(self):
        assert not is_allowed(ADMIN, Action.SUBMIT_REVIEW, owner_id=BUYER.user_id)
        assert is_allowed(BUYER, Action.SUBMIT_REVIEW, owner_id=BUYER.user_id)

    def test_moderation_defaults_to_admins(self):
        assert is_allowed(ADMIN, Action.MODERATE_REVIEW)
        assert not is_allowed(SELLER, Action.MODERATE_REVIEW)

    def test_missing_owner_never_matches(self):
        assert not is_allowed(BUYER, Action.EDIT_REVIEW, owner_id=None)

    def test_hidden_reviews_visible_to_author_and_moderators(self):
        assert is_allowed(BUYER, Action.VIEW_REVIEW, owner_id=BUYER.user_id)
        assert is_allowed(ADMIN, Action.VIEW_REVIEW, owner_id=BUYER.user_id)
        assert not is_allowed(SELLER, Action.VIEW_REVIEW, owner_id=BUYER.user_id)

    def test_admin_status_comes_from_roles_not_the_actor(self):
        assert not hasattr(ADMIN, "is_admin")
        assert is_allowed(Actor(user_id="u-root", role="admin"), Action.LIST_ALL_ORDERS)


class TestConfiguredRoles:
    def test_moderator_roles_come_from_environment(self, monkeypatch):
        monkeypatch.setenv("MARKETPLACE_MODERATOR_ROLES", "admin, seller")
        reset_settings()

        assert is_allowed(SELLER, Action.MODERATE_REVIEW)

    def test_operator_roles_can_be_narrowed(self, monkeypatch):
        monkeypatch.setenv("MARKETPLACE_OPERATOR_ROLES", "admin")
        reset_settings()

        assert not is_allowed(SELLER, Action.SHIP_ORDER)
        assert is_allowed(ADMIN, Action.SHIP_ORDER)


class TestAuthorize:
    def test_raises_forbidden_with_default_message(self):
        with pytest.raises(Forbidden) as exc:
            authorize(BUYER, Action.MODERATE_REVIEW)
        assert str(exc.value) == "Not allowed to moderate review"
        assert exc.value.status_code == 403

    def test_custom_message(self):
        with pytest.raises(Forbidden, match="Order does not belong to user"):
            authorize(BUYER, Action.VIEW_ORDER, owner_id="u-other", message="Order does not belong to user")

    def test_passes_silently_when_allowed(self):
        assert authorize(ADMIN, Action.MANAGE_USERS) is None
