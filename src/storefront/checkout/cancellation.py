"""Checkout cancellation — closes an open session and releases its stock."""

import structlog
from protean import handle
from protean.fields import Identifier
from protean.utils.globals import current_domain

from storefront.checkout.session import CheckoutSession
from storefront.domain import storefront
from storefront.inventory import ledger

logger = structlog.get_logger(__name__)


@storefront.command(part_of="CheckoutSession")
class CancelCheckout:
    checkout_id = Identifier(required=True)


@storefront.command_handler(part_of=CheckoutSession)
class CancelCheckoutHandler:
    @handle(CancelCheckout)
    def cancel_checkout(self, command):
        repo = current_domain.repository_for(CheckoutSession)
        session = repo.get(command.checkout_id)

        released = session.cancel()
        for variant_id, quantity in released:
            ledger.release(variant_id, quantity)
        repo.add(session)

        logger.info("Checkout cancelled", checkout_id=str(session.id), released_lines=len(released))
