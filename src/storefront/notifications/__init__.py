"""Notifier factory.

The adapter is chosen by the NOTIFIER_ADAPTER environment variable:
``fake`` (default, records calls) or ``log`` (structured log line).
"""

import os

from storefront.notifications.port import Notifier

_current_notifier: Notifier | None = None


def get_notifier() -> Notifier:
    """Return the configured notifier (singleton)."""
    global _current_notifier
    if _current_notifier is None:
        adapter = os.environ.get("NOTIFIER_ADAPTER", "fake")
        if adapter == "fake":
            from storefront.notifications.fake_adapter import FakeNotifier

            _current_notifier = FakeNotifier()
        elif adapter == "log":
            from storefront.notifications.log_adapter import LogNotifier

            _current_notifier = LogNotifier()
        else:
            raise ValueError(f"Unknown notifier adapter: {adapter}")
    return _current_notifier


def set_notifier(notifier: Notifier) -> None:
    """Override the active notifier (useful for tests)."""
    global _current_notifier
    _current_notifier = notifier


def reset_notifier() -> None:
    """Reset the notifier singleton (useful for testing)."""
    global _current_notifier
    _current_notifier = None
