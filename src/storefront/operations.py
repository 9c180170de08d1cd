"""Storefront operations: the functions an API layer calls.

Each function wraps one command or query. Commands run synchronously
through ``current_domain.process`` inside the active domain context, so
errors raised by handlers reach the caller unchanged:

- ``ObjectNotFoundError`` for a missing cart, item, session, order or variant
- ``ValidationError`` for malformed input
- ``BusinessError`` (with a ``code``) for rule violations, ``OutOfStock``
  among them
"""

import json

import structlog
from protean.utils.globals import current_domain

from storefront.cart.abandonment import DetectAbandonedCarts
from storefront.cart.details import CartDetails, CartValidation
from storefront.cart.details import get_cart_details as _get_cart_details
from storefront.cart.details import validate_cart as _validate_cart
from storefront.cart.items import AddToCart, RemoveFromCart, UpdateCartItem
from storefront.cart.management import CreateCart, SetCartEmail
from storefront.cart.merge import MergeCart
from storefront.cart.owner import Owner
from storefront.checkout.cancellation import CancelCheckout
from storefront.checkout.expiry import ReleaseExpiredReservations
from storefront.checkout.payment import ProcessPayment
from storefront.checkout.queries import CheckoutView, ShippingQuote
from storefront.checkout.queries import get_checkout as _get_checkout
from storefront.checkout.queries import get_shipping_methods as _get_shipping_methods
from storefront.checkout.session import CheckoutSession, CheckoutStatus
from storefront.checkout.start import StartCheckout
from storefront.checkout.steps import SelectShippingMethod, SetCheckoutAddresses
from storefront.inventory.definition import DefineInventory
from storefront.notifications import get_notifier
from storefront.order.materializer import CompleteCheckout
from storefront.order.order import Order
from storefront.order.queries import get_order as _get_order
from storefront.utils.logging import log_context

logger = structlog.get_logger(__name__)


def _process(command):
    return current_domain.process(command, asynchronous=False)


# ---------------------------------------------------------------------------
# Cart
# ---------------------------------------------------------------------------
def create_cart(owner: Owner, currency: str | None = None) -> str:
    """Return the owner's active cart id, opening a cart if they have none."""
    return _process(
        CreateCart(
            owner_type=owner.owner_type.value,
            owner_reference=owner.reference,
            currency=currency,
        )
    )


def add_item(cart_id: str, variant_id: str, quantity: int) -> str:
    return _process(AddToCart(cart_id=cart_id, variant_id=variant_id, quantity=quantity))


def update_item(cart_id: str, item_id: str, quantity: int) -> str | None:
    """Set a line's quantity; zero removes the line and returns None."""
    return _process(UpdateCartItem(cart_id=cart_id, item_id=item_id, quantity=quantity))


def remove_item(cart_id: str, item_id: str) -> None:
    _process(RemoveFromCart(cart_id=cart_id, item_id=item_id))


def get_cart_details(cart_id: str) -> CartDetails:
    return _get_cart_details(cart_id)


def set_cart_email(cart_id: str, email: str) -> None:
    _process(SetCartEmail(cart_id=cart_id, email=email))


def validate_cart(cart_id: str) -> CartValidation:
    return _validate_cart(cart_id)


def merge_cart(guest_cart_id: str, customer_cart_id: str) -> str:
    return _process(MergeCart(guest_cart_id=guest_cart_id, customer_cart_id=customer_cart_id))


def detect_abandoned_carts(idle_threshold_hours: int = 24, as_of=None, batch_size: int = 500) -> int:
    return _process(
        DetectAbandonedCarts(idle_threshold_hours=idle_threshold_hours, as_of=as_of, batch_size=batch_size)
    )


# ---------------------------------------------------------------------------
# Checkout
# ---------------------------------------------------------------------------
def start_checkout(cart_id: str) -> str:
    return _process(StartCheckout(cart_id=cart_id))


def set_addresses(checkout_id: str, shipping: dict, billing: dict | None = None) -> None:
    """Store addresses; ``billing=None`` means billing is the shipping address."""
    _process(
        SetCheckoutAddresses(
            checkout_id=checkout_id,
            shipping_address=json.dumps(shipping),
            billing_address=json.dumps(billing) if billing is not None else None,
        )
    )


def get_shipping_methods(checkout_id: str) -> list[ShippingQuote]:
    return _get_shipping_methods(checkout_id)


def set_shipping_method(checkout_id: str, method_id: str) -> float:
    """Choose a shipping method and return its cost."""
    return _process(SelectShippingMethod(checkout_id=checkout_id, shipping_method_id=method_id))


def process_payment(checkout_id: str, method: str) -> str:
    """Reserve stock and authorize payment. Returns the payment intent id."""
    with log_context(checkout_id=checkout_id):
        return _process(ProcessPayment(checkout_id=checkout_id, payment_method=method))


def complete_checkout(checkout_id: str) -> Order:
    """Materialize the order for a paid session.

    Calling it again for the same session returns the same order. The
    order-created notification is sent once, after the order is stored, and
    a notification failure never undoes the order.
    """
    session = current_domain.repository_for(CheckoutSession).get(checkout_id)
    already_completed = CheckoutStatus(session.status) == CheckoutStatus.COMPLETED

    with log_context(checkout_id=checkout_id, cart_id=session.cart_id):
        order_id = _process(CompleteCheckout(checkout_id=checkout_id))
        order = _get_order(order_id)

        if not already_completed:
            _notify_order_created(order)
    return order


def cancel_checkout(checkout_id: str) -> None:
    with log_context(checkout_id=checkout_id):
        _process(CancelCheckout(checkout_id=checkout_id))


def get_checkout(checkout_id: str) -> CheckoutView:
    return _get_checkout(checkout_id)


def release_expired_reservations(as_of=None, grace_minutes: int | None = None, batch_size: int = 500) -> int:
    return _process(ReleaseExpiredReservations(as_of=as_of, grace_minutes=grace_minutes, batch_size=batch_size))


# ---------------------------------------------------------------------------
# Orders and inventory
# ---------------------------------------------------------------------------
def get_order(order_id: str) -> Order:
    return _get_order(order_id)


def define_inventory(variant_id: str, on_hand: int, allow_backorder: bool = False) -> str:
    return _process(DefineInventory(variant_id=variant_id, on_hand=on_hand, allow_backorder=allow_backorder))


def _notify_order_created(order):
    try:
        get_notifier().notify_order_created(order)
    except Exception as exc:
        logger.warning(
            "Order notification failed",
            order_id=str(order.id),
            error=str(exc),
        )
