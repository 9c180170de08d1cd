"""Abandoned cart sweep.

Run on a schedule through ``manage.py detect-abandoned-carts``. Active carts
that have had items sitting idle beyond the threshold, or that have outlived
their TTL, are marked Abandoned one by one.
"""

from datetime import timedelta

import structlog
from protean import handle
from protean.exceptions import InvalidOperationError, ValidationError
from protean.fields import DateTime, Integer
from protean.utils.globals import current_domain

from storefront.cart.cart import Cart, CartStatus
from storefront.cart.management import AbandonCart
from storefront.domain import storefront
from storefront.utils.clock import as_utc, utcnow

logger = structlog.get_logger(__name__)


@storefront.command(part_of="Cart")
class DetectAbandonedCarts:
    idle_threshold_hours = Integer(default=24, min_value=1)
    as_of = DateTime()  # Optional: defaults to now
    batch_size = Integer(default=500, min_value=1)


@storefront.command_handler(part_of=Cart)
class DetectAbandonedCartsHandler:
    @handle(DetectAbandonedCarts)
    def detect_abandoned_carts(self, command):
        as_of = as_utc(command.as_of) if command.as_of else utcnow()
        threshold_hours = command.idle_threshold_hours or 24
        cutoff = as_of - timedelta(hours=threshold_hours)

        logger.info(
            "Sweeping idle carts",
            cutoff=cutoff.isoformat(),
            threshold_hours=threshold_hours,
        )

        dao = current_domain.repository_for(Cart)._dao
        batch_size = command.batch_size or 500

        abandoned = {}
        for cart in _active_carts(dao, batch_size, expires_at__lte=as_of):
            abandoned.setdefault(str(cart.id), cart)
            if len(abandoned) >= batch_size:
                break

        # Idle carts without items are kept, so scan past them page by page
        if len(abandoned) < batch_size:
            for cart in _active_carts(dao, batch_size, updated_at__lte=cutoff):
                if cart.items:
                    abandoned.setdefault(str(cart.id), cart)
                if len(abandoned) >= batch_size:
                    break

        if not abandoned:
            logger.info("No abandoned carts found")
            return 0

        abandoned_count = 0
        for cart in abandoned.values():
            try:
                current_domain.process(AbandonCart(cart_id=str(cart.id)), asynchronous=False)
                abandoned_count += 1
                logger.info(
                    "Cart abandoned",
                    cart_id=str(cart.id),
                    owner_type=cart.owner_type,
                    item_count=cart.item_count,
                    last_updated=str(cart.updated_at),
                )
            except (ValidationError, InvalidOperationError) as exc:
                logger.warning("Failed to abandon cart", cart_id=str(cart.id), error=str(exc))

        logger.info("Idle cart sweep finished", abandoned_count=abandoned_count)
        return abandoned_count


def _active_carts(dao, page_size, **criteria):
    """Active carts matching ``criteria``, fetched a page at a time."""
    offset = 0
    while True:
        page = (
            dao.query.filter(status=CartStatus.ACTIVE.value, **criteria)
            .order_by("updated_at")
            .offset(offset)
            .limit(page_size)
            .all()
            .items
        )
        yield from page
        if len(page) < page_size:
            return
        offset += page_size
