"""Marketplace business settings read from the environment.

Infrastructure (databases, brokers, event store) is configured in
``domain.toml``; this module holds the knobs the domain rules consult:
which roles may operate orders, moderate reviews or manage the catalogue,
the category depth bound, pricing constants and vote de-duplication.
"""

import os
from dataclasses import dataclass

_settings_instance = None


def _roles(name, default):
    raw = os.environ.get(name, default)
    return frozenset(role.strip().lower() for role in raw.split(",") if role.strip())


def _flag(name, default=False):
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    operator_roles: frozenset
    moderator_roles: frozenset
    catalogue_roles: frozenset
    max_category_level: int
    deduplicate_votes: bool
    tax_rate: float
    free_shipping_threshold: float
    flat_shipping: float
    currency: str

    @classmethod
    def from_env(cls):
        return cls(
            operator_roles=_roles("MARKETPLACE_OPERATOR_ROLES", "admin,seller"),
            moderator_roles=_roles("MARKETPLACE_MODERATOR_ROLES", "admin"),
            catalogue_roles=_roles("MARKETPLACE_CATALOGUE_ROLES", "admin"),
            max_category_level=int(os.environ.get("MARKETPLACE_MAX_CATEGORY_LEVEL", "4")),
            deduplicate_votes=_flag("MARKETPLACE_DEDUPLICATE_VOTES"),
            tax_rate=float(os.environ.get("MARKETPLACE_TAX_RATE", "0.10")),
            free_shipping_threshold=float(os.environ.get("MARKETPLACE_FREE_SHIPPING_THRESHOLD", "50")),
            flat_shipping=float(os.environ.get("MARKETPLACE_FLAT_SHIPPING", "5")),
            currency=os.environ.get("MARKETPLACE_CURRENCY", "USD"),
        )


def get_settings() -> Settings:
    """Return the active settings (singleton).

    Values are read from the environment on first use. Call
    ``reset_settings()`` after changing environment variables.
    """
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings.from_env()
    return _settings_instance


def reset_settings() -> None:
    """Forget cached settings (useful for testing)."""
    global _settings_instance
    _settings_instance = None
