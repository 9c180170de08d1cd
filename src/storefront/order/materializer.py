"""Order Materializer — turns a paid checkout session into an Order.

Everything happens in the handler's unit of work: the order is written,
every reserved line is committed in the Inventory Ledger, the cart is marked
Completed and the session is marked Completed. If any of it fails the whole
step rolls back, so there is never an order without its stock commits nor a
commit without its order.

Completion is idempotent: a session that is already Completed returns the
order it produced.
"""

import structlog
from protean import handle
from protean.fields import Identifier
from protean.utils.globals import current_domain

from storefront.cart.cart import Cart
from storefront.catalog import get_catalog
from storefront.checkout.session import CheckoutSession, CheckoutStatus
from storefront.domain import storefront
from storefront.errors import BusinessError
from storefront.inventory import ledger
from storefront.order.order import Order
from storefront.payments import get_gateway

logger = structlog.get_logger(__name__)


@storefront.command(part_of="Order")
class CompleteCheckout:
    checkout_id = Identifier(required=True)


@storefront.command_handler(part_of=Order)
class CompleteCheckoutHandler:
    @handle(CompleteCheckout)
    def complete_checkout(self, command):
        session_repo = current_domain.repository_for(CheckoutSession)
        session = session_repo.get(command.checkout_id)

        if CheckoutStatus(session.status) == CheckoutStatus.COMPLETED:
            logger.info(
                "Checkout already completed",
                checkout_id=str(session.id),
                order_id=str(session.order_id),
            )
            return str(session.order_id)

        session.assert_ready_for_completion()
        _require_settled_payment(session)

        cart_repo = current_domain.repository_for(Cart)
        cart = cart_repo.get(session.cart_id)
        _require_unchanged_cart(session, cart)

        catalog = get_catalog()
        variants = {str(item.variant_id): catalog.get_variant(str(item.variant_id)) for item in cart.items}

        order = Order.place(session, cart, variants)
        current_domain.repository_for(Order).add(order)

        for variant_id, quantity in session.reservations:
            ledger.commit(variant_id, quantity)

        cart.complete(order.id)
        cart_repo.add(cart)

        session.complete(order.id)
        session_repo.add(session)

        logger.info(
            "Order placed",
            order_id=str(order.id),
            order_number=order.order_number,
            checkout_id=str(session.id),
            grand_total=order.grand_total,
        )
        return str(order.id)


def _require_settled_payment(session):
    """Refresh the intent from the gateway; only a succeeded payment may complete."""
    intent = get_gateway().retrieve(session.payment_intent_id)
    if intent.failed:
        raise BusinessError(
            "PAYMENT_FAILED",
            intent.failure_reason or "Payment was declined",
            payment_intent_id=intent.intent_id,
        )
    if not intent.succeeded:
        raise BusinessError(
            "PAYMENT_NOT_COMPLETED",
            f"Payment is {intent.status.value}",
            payment_intent_id=intent.intent_id,
        )


def _require_unchanged_cart(session, cart):
    """The cart must still hold exactly the lines and prices that were paid for."""
    paid = sorted((line["variant_id"], line["quantity"], round(line["unit_price"], 2)) for line in session.lines)
    current = sorted((str(item.variant_id), item.quantity, round(item.unit_price_snapshot, 2)) for item in cart.items)
    if paid != current:
        raise BusinessError("CART_MODIFIED", "Cart changed after payment was processed")
