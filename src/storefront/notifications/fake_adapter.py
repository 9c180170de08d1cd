"""Recording notifier for development and testing."""

from storefront.notifications.port import Notifier


class FakeNotifier(Notifier):
    """Keeps the ids of announced orders; can be told to fail."""

    def __init__(self) -> None:
        self.should_fail: bool = False
        self.notified: list[str] = []

    def configure(self, should_fail: bool) -> None:
        self.should_fail = should_fail

    def notify_order_created(self, order) -> None:
        if self.should_fail:
            raise ConnectionError("Notification service unavailable")
        self.notified.append(str(order.id))
