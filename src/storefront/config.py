"""Subsystem settings.

Values come from the ``[custom]`` table of ``domain.toml``; an environment
variable with the same name wins over the file.
"""

import os
from dataclasses import dataclass

from storefront.domain import storefront

_DEFAULTS = {
    "MAX_ITEM_QUANTITY": 100,
    "CART_TTL_DAYS": 30,
    "CHECKOUT_TTL_MINUTES": 30,
    "RESERVATION_GRACE_MINUTES": 5,
    "RESERVE_MAX_ATTEMPTS": 5,
    "RESERVE_BACKOFF_SECONDS": 0.01,
    "LOW_STOCK_THRESHOLD": 5,
    "DEFAULT_CURRENCY": "USD",
    "FREE_SHIPPING_THRESHOLD": 100.0,
}


@dataclass(frozen=True)
class Settings:
    max_item_quantity: int
    cart_ttl_days: int
    checkout_ttl_minutes: int
    reservation_grace_minutes: int
    reserve_max_attempts: int
    reserve_backoff_seconds: float
    low_stock_threshold: int
    default_currency: str
    free_shipping_threshold: float


def _lookup(custom: dict, key: str):
    default = _DEFAULTS[key]
    raw = os.environ.get(key, custom.get(key, default))
    return type(default)(raw)


def get_settings() -> Settings:
    """Read settings fresh on every call so tests can override via env."""
    custom = storefront.config.get("custom") or {}
    return Settings(
        max_item_quantity=_lookup(custom, "MAX_ITEM_QUANTITY"),
        cart_ttl_days=_lookup(custom, "CART_TTL_DAYS"),
        checkout_ttl_minutes=_lookup(custom, "CHECKOUT_TTL_MINUTES"),
        reservation_grace_minutes=_lookup(custom, "RESERVATION_GRACE_MINUTES"),
        reserve_max_attempts=_lookup(custom, "RESERVE_MAX_ATTEMPTS"),
        reserve_backoff_seconds=_lookup(custom, "RESERVE_BACKOFF_SECONDS"),
        low_stock_threshold=_lookup(custom, "LOW_STOCK_THRESHOLD"),
        default_currency=_lookup(custom, "DEFAULT_CURRENCY"),
        free_shipping_threshold=_lookup(custom, "FREE_SHIPPING_THRESHOLD"),
    )
