"""Notifier that only writes a structured log line per placed order."""

import structlog

from storefront.notifications.port import Notifier

logger = structlog.get_logger(__name__)


class LogNotifier(Notifier):
    def notify_order_created(self, order) -> None:
        logger.info(
            "Order placed",
            order_id=str(order.id),
            order_number=order.order_number,
            email=order.email,
            grand_total=order.grand_total,
        )
