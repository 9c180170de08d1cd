"""Checkout payment step — the only place stock is reserved.

Every tracked cart line is reserved through the Inventory Ledger before the
gateway is called. A line that cannot be reserved releases the lines already
reserved by this call and fails with OutOfStock. A failed authorization
releases all of them and leaves the session in ShippingSet.
"""

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from storefront.cart.cart import Cart
from storefront.cart.details import validate_cart
from storefront.catalog import get_catalog
from storefront.checkout.session import CheckoutSession
from storefront.checkout.shipping import find_method
from storefront.config import get_settings
from storefront.domain import storefront
from storefront.errors import BusinessError
from storefront.inventory import ledger
from storefront.payments import get_gateway

logger = structlog.get_logger(__name__)


@storefront.command(part_of="CheckoutSession")
class ProcessPayment:
    checkout_id = Identifier(required=True)
    payment_method = String(required=True, max_length=50)


@storefront.command_handler(part_of=CheckoutSession)
class ProcessPaymentHandler:
    @handle(ProcessPayment)
    def process_payment(self, command):
        repo = current_domain.repository_for(CheckoutSession)
        session = repo.get(command.checkout_id)
        session.assert_ready_for_payment()

        cart = current_domain.repository_for(Cart).get(session.cart_id)
        validation = validate_cart(cart.id)
        if not validation.valid:
            raise BusinessError(
                "CART_INVALID",
                "Cart is not ready for checkout",
                issues=sorted(validation.issue_codes()),
            )

        # The cart may have changed since the method was chosen
        method = find_method(session.shipping_method_id)
        shipping_cost = method.cost_for(cart.subtotal, get_settings().free_shipping_threshold)
        amount = round(cart.subtotal + shipping_cost, 2)

        lines = _cart_lines(cart)
        reserved = _reserve_all(lines)

        try:
            intent = get_gateway().authorize(amount, session.currency, command.payment_method)
        except Exception:
            _release_all(reserved)
            raise

        if intent.failed:
            _release_all(reserved)
            logger.warning(
                "Payment failed",
                checkout_id=str(session.id),
                payment_intent_id=intent.intent_id,
                reason=intent.failure_reason,
            )
            raise BusinessError(
                "PAYMENT_FAILED",
                intent.failure_reason or "Payment was declined",
                payment_intent_id=intent.intent_id,
            )

        session.record_payment(
            intent,
            method=command.payment_method,
            amount=amount,
            shipping_cost=shipping_cost,
            lines=lines,
        )
        repo.add(session)

        logger.info(
            "Payment processed",
            checkout_id=str(session.id),
            payment_intent_id=intent.intent_id,
            payment_status=intent.status.value,
            amount=amount,
            reserved_lines=len(reserved),
        )
        return intent.intent_id


def _cart_lines(cart):
    """Snapshot of the cart's lines and prices, flagging those whose stock is tracked."""
    catalog = get_catalog()
    lines = []
    for item in cart.items:
        variant = catalog.get_variant(str(item.variant_id))
        tracked = variant.track_inventory and ledger.find(variant.variant_id) is not None
        lines.append(
            {
                "variant_id": str(item.variant_id),
                "quantity": item.quantity,
                "unit_price": item.unit_price_snapshot,
                "tracked": tracked,
            }
        )
    return lines


def _reserve_all(lines):
    reserved = []
    for line in lines:
        if not line["tracked"]:
            continue
        try:
            ledger.reserve(line["variant_id"], line["quantity"])
        except BusinessError:
            _release_all(reserved)
            raise
        reserved.append((line["variant_id"], line["quantity"]))
    return reserved


def _release_all(reserved):
    for variant_id, quantity in reserved:
        ledger.release(variant_id, quantity)
