"""Reservation expiry — release stock held by checkout sessions past their TTL.

Expiry itself is passive: reads treat a session past ``expires_at`` as
Expired. This sweep is what gives the stock back. It is meant to be run
periodically by an external scheduler (cron, K8s CronJob) through
``manage.py sweep-reservations``.

A session is swept once ``expires_at`` plus a grace period has passed. Reads
and transitions already treat it as Expired from ``expires_at`` on; the grace
period only delays when its stock goes back on sale. Each session is expired
in its own command; a second sweep finds nothing left to release.
"""

from datetime import timedelta

import structlog
from protean import handle
from protean.exceptions import InvalidOperationError, ValidationError
from protean.fields import DateTime, Identifier, Integer
from protean.utils.globals import current_domain

from storefront.checkout.session import OPEN_STATUSES, CheckoutSession
from storefront.config import get_settings
from storefront.domain import storefront
from storefront.inventory import ledger
from storefront.utils.clock import as_utc, utcnow

logger = structlog.get_logger(__name__)


@storefront.command(part_of="CheckoutSession")
class ExpireCheckout:
    checkout_id = Identifier(required=True)


@storefront.command(part_of="CheckoutSession")
class ReleaseExpiredReservations:
    """Expire every open session whose TTL and grace period have elapsed."""

    as_of = DateTime()  # Optional: defaults to now
    grace_minutes = Integer(min_value=0)  # Optional: defaults to RESERVATION_GRACE_MINUTES
    batch_size = Integer(default=500, min_value=1)


@storefront.command_handler(part_of=CheckoutSession)
class ReservationExpiryHandler:
    @handle(ExpireCheckout)
    def expire_checkout(self, command):
        repo = current_domain.repository_for(CheckoutSession)
        session = repo.get(command.checkout_id)

        released = session.expire()
        for variant_id, quantity in released:
            ledger.release(variant_id, quantity)
        repo.add(session)

        logger.info("Checkout expired", checkout_id=str(session.id), released_lines=len(released))
        return len(released)

    @handle(ReleaseExpiredReservations)
    def release_expired_reservations(self, command):
        as_of = as_utc(command.as_of) if command.as_of else utcnow()
        grace_minutes = command.grace_minutes
        if grace_minutes is None:
            grace_minutes = get_settings().reservation_grace_minutes
        cutoff = as_of - timedelta(minutes=grace_minutes)

        logger.info(
            "Sweeping expired checkout sessions",
            cutoff=cutoff.isoformat(),
            grace_minutes=grace_minutes,
        )

        # Only stale rows count against the batch
        repo = current_domain.repository_for(CheckoutSession)
        stale = []
        for status in OPEN_STATUSES:
            stale.extend(
                repo._dao.query.filter(status=status.value, expires_at__lte=cutoff)
                .order_by("expires_at")
                .limit(command.batch_size or 500)
                .all()
                .items
            )

        if not stale:
            logger.info("No expired checkout sessions found")
            return 0

        expired_count = 0
        for session in stale:
            try:
                current_domain.process(ExpireCheckout(checkout_id=str(session.id)), asynchronous=False)
                expired_count += 1
            except (ValidationError, InvalidOperationError) as exc:
                logger.warning("Failed to expire checkout", checkout_id=str(session.id), error=str(exc))

        logger.info("Reservation sweep complete", expired_count=expired_count)
        return expired_count
