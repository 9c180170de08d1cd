"""Notification port (abstract interface).

Delivery (email, SMS, push) is an external concern. The storefront only
announces that an order was placed; callers treat every failure here as
non-fatal.
"""

from abc import ABC, abstractmethod


class Notifier(ABC):
    """Abstract order notification interface."""

    @abstractmethod
    def notify_order_created(self, order) -> None:
        """Announce a newly placed order."""
        ...
