"""Checkout start — opens a session for a valid cart.

Starting is idempotent: while the cart has an open session, the same session
is returned unchanged. Sessions for the cart that have already outlived
their TTL are expired on the spot, releasing anything they still hold.
"""

import structlog
from protean import handle
from protean.fields import Identifier
from protean.utils.globals import current_domain

from storefront.cart.cart import Cart
from storefront.cart.details import validate_cart
from storefront.checkout.session import OPEN_STATUSES, CheckoutSession, CheckoutStatus
from storefront.config import get_settings
from storefront.domain import storefront
from storefront.errors import BusinessError
from storefront.inventory import ledger

logger = structlog.get_logger(__name__)


@storefront.command(part_of="CheckoutSession")
class StartCheckout:
    cart_id = Identifier(required=True)


def open_sessions_for(cart_id):
    """Sessions for a cart still stored in an open state, expired or not."""
    sessions = (
        current_domain.repository_for(CheckoutSession)._dao.query.filter(cart_id=str(cart_id)).all().items
    )
    return [s for s in sessions if CheckoutStatus(s.status) in OPEN_STATUSES]


@storefront.command_handler(part_of=CheckoutSession)
class StartCheckoutHandler:
    @handle(StartCheckout)
    def start_checkout(self, command):
        repo = current_domain.repository_for(CheckoutSession)

        for session in open_sessions_for(command.cart_id):
            if session.is_open:
                logger.debug("Returning open checkout session", checkout_id=str(session.id))
                return str(session.id)

            for variant_id, quantity in session.expire():
                ledger.release(variant_id, quantity)
            repo.add(session)
            logger.info("Expired stale checkout session", checkout_id=str(session.id))

        cart = current_domain.repository_for(Cart).get(command.cart_id)
        validation = validate_cart(cart.id)
        if not validation.valid:
            raise BusinessError(
                "CART_INVALID",
                "Cart is not ready for checkout",
                issues=sorted(validation.issue_codes()),
            )

        settings = get_settings()
        session = CheckoutSession.start(
            cart_id=cart.id,
            currency=cart.currency,
            ttl_minutes=settings.checkout_ttl_minutes,
        )
        repo.add(session)

        logger.info("Checkout started", checkout_id=str(session.id), cart_id=str(cart.id))
        return str(session.id)
