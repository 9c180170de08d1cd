"""CheckoutSession aggregate — drives a cart from addresses to a placed order.

State Machine:
    STARTED → ADDRESS_SET → SHIPPING_SET → PAYMENT_SET → COMPLETED
    any open state → CANCELLED (explicit) or EXPIRED (TTL elapsed)

Status only moves forward. Addresses may be re-entered until a shipping
method is chosen, and the shipping method may be changed until payment.
Stock is reserved only when payment is processed; the reserved lines are
recorded on the session so that completion commits exactly those and the
expiry sweep or a cancellation releases exactly those.

Expiry is passive: a session past ``expires_at`` is treated as Expired by
every read and transition, and is only written as Expired by the sweep.
"""

import json
from datetime import timedelta
from enum import Enum

from protean.fields import Boolean, DateTime, Float, Identifier, String, Text, ValueObject

from storefront.checkout.events import (
    CheckoutAddressesSet,
    CheckoutCancelled,
    CheckoutCompleted,
    CheckoutExpired,
    CheckoutPaymentAuthorized,
    CheckoutStarted,
    ShippingMethodSelected,
)
from storefront.domain import storefront
from storefront.errors import BusinessError
from storefront.shared.address import Address
from storefront.utils.clock import has_passed, utcnow


class CheckoutStatus(Enum):
    STARTED = "Started"
    ADDRESS_SET = "AddressSet"
    SHIPPING_SET = "ShippingSet"
    PAYMENT_SET = "PaymentSet"
    COMPLETED = "Completed"
    EXPIRED = "Expired"
    CANCELLED = "Cancelled"


OPEN_STATUSES = {
    CheckoutStatus.STARTED,
    CheckoutStatus.ADDRESS_SET,
    CheckoutStatus.SHIPPING_SET,
    CheckoutStatus.PAYMENT_SET,
}

# Position of each open state along the happy path
_STEP = {
    CheckoutStatus.STARTED: 0,
    CheckoutStatus.ADDRESS_SET: 1,
    CheckoutStatus.SHIPPING_SET: 2,
    CheckoutStatus.PAYMENT_SET: 3,
}


@storefront.aggregate
class CheckoutSession:
    cart_id = Identifier(required=True)
    status = String(choices=CheckoutStatus, default=CheckoutStatus.STARTED.value)
    shipping_address = ValueObject(Address)
    billing_address = ValueObject(Address)
    billing_same_as_shipping = Boolean(default=False)
    shipping_method_id = String(max_length=50)
    shipping_cost = Float(default=0.0)
    currency = String(max_length=3, default="USD")
    amount = Float(default=0.0)
    payment_method = String(max_length=50)
    payment_intent_id = String(max_length=255)
    payment_status = String(max_length=50)
    cart_lines = Text()  # JSON: [{"variant_id", "quantity", "unit_price", "tracked"}] captured at payment
    order_id = Identifier()
    created_at = DateTime()
    updated_at = DateTime()
    expires_at = DateTime()

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def start(cls, cart_id, currency="USD", ttl_minutes=30):
        now = utcnow()
        session = cls(
            cart_id=cart_id,
            status=CheckoutStatus.STARTED.value,
            currency=currency,
            created_at=now,
            updated_at=now,
            expires_at=now + timedelta(minutes=ttl_minutes),
        )
        session.raise_(
            CheckoutStarted(
                checkout_id=str(session.id),
                cart_id=str(cart_id),
                expires_at=session.expires_at,
            )
        )
        return session

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    @property
    def is_expired(self):
        return CheckoutStatus(self.status) in OPEN_STATUSES and has_passed(self.expires_at)

    @property
    def is_open(self):
        return CheckoutStatus(self.status) in OPEN_STATUSES and not self.is_expired

    @property
    def effective_status(self):
        """Status as seen by readers, with passive expiry applied."""
        if self.is_expired:
            return CheckoutStatus.EXPIRED.value
        return self.status

    @property
    def lines(self):
        return json.loads(self.cart_lines) if self.cart_lines else []

    @property
    def reservations(self):
        """Lines whose stock was reserved at payment, as (variant_id, quantity) pairs."""
        return [(line["variant_id"], line["quantity"]) for line in self.lines if line["tracked"]]

    # -------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------
    def set_addresses(self, shipping_address, billing_address=None):
        """Store addresses. Without a billing address, billing is the shipping address."""
        self._assert_open()
        if _step(self.status) > _step(CheckoutStatus.ADDRESS_SET):
            raise BusinessError(
                "INVALID_TRANSITION",
                "Addresses cannot be changed after a shipping method is chosen",
            )

        same_as_shipping = billing_address is None
        self.shipping_address = shipping_address
        self.billing_address = shipping_address if same_as_shipping else billing_address
        self.billing_same_as_shipping = same_as_shipping
        self.status = CheckoutStatus.ADDRESS_SET.value
        self.updated_at = utcnow()

        self.raise_(
            CheckoutAddressesSet(
                checkout_id=str(self.id),
                shipping_country=shipping_address.country,
                billing_same_as_shipping=same_as_shipping,
            )
        )

    def select_shipping_method(self, method_id, cost):
        self._assert_open()
        if _step(self.status) < _step(CheckoutStatus.ADDRESS_SET):
            raise BusinessError("ADDRESS_REQUIRED", "Set the shipping address first")
        if _step(self.status) > _step(CheckoutStatus.SHIPPING_SET):
            raise BusinessError(
                "INVALID_TRANSITION",
                "Shipping method cannot be changed after payment",
            )

        self.shipping_method_id = method_id
        self.shipping_cost = cost
        self.status = CheckoutStatus.SHIPPING_SET.value
        self.updated_at = utcnow()

        self.raise_(
            ShippingMethodSelected(
                checkout_id=str(self.id),
                shipping_method_id=method_id,
                shipping_cost=cost,
            )
        )

    def assert_ready_for_payment(self):
        self._assert_open()
        if _step(self.status) < _step(CheckoutStatus.ADDRESS_SET):
            raise BusinessError("ADDRESS_REQUIRED", "Set the shipping address first")
        if _step(self.status) < _step(CheckoutStatus.SHIPPING_SET):
            raise BusinessError("SHIPPING_METHOD_REQUIRED", "Choose a shipping method first")
        if CheckoutStatus(self.status) == CheckoutStatus.PAYMENT_SET:
            raise BusinessError("INVALID_TRANSITION", "Payment has already been processed")

    def record_payment(self, intent, method, amount, shipping_cost, lines):
        """Move to PaymentSet with an authorized (or pending) intent and the reserved lines."""
        self.assert_ready_for_payment()

        self.payment_method = method
        self.payment_intent_id = intent.intent_id
        self.payment_status = intent.status.value
        self.amount = amount
        self.shipping_cost = shipping_cost
        self.cart_lines = json.dumps(lines)
        self.status = CheckoutStatus.PAYMENT_SET.value
        self.updated_at = utcnow()

        self.raise_(
            CheckoutPaymentAuthorized(
                checkout_id=str(self.id),
                payment_intent_id=intent.intent_id,
                payment_status=intent.status.value,
                amount=amount,
                reserved_line_count=len(self.reservations),
            )
        )

    def assert_ready_for_completion(self):
        self._assert_open()
        if CheckoutStatus(self.status) != CheckoutStatus.PAYMENT_SET:
            raise BusinessError("PAYMENT_REQUIRED", "Payment has not been processed")

    def complete(self, order_id):
        self.assert_ready_for_completion()

        now = utcnow()
        self.order_id = order_id
        self.payment_status = "succeeded"
        self.status = CheckoutStatus.COMPLETED.value
        self.updated_at = now

        self.raise_(
            CheckoutCompleted(
                checkout_id=str(self.id),
                cart_id=str(self.cart_id),
                order_id=str(order_id),
                completed_at=now,
            )
        )

    def cancel(self):
        """Close the session and hand back the reservations to release."""
        self._assert_open()

        released = self.reservations
        now = utcnow()
        self.cart_lines = None
        self.status = CheckoutStatus.CANCELLED.value
        self.updated_at = now

        self.raise_(
            CheckoutCancelled(
                checkout_id=str(self.id),
                released_line_count=len(released),
                cancelled_at=now,
            )
        )
        return released

    def expire(self):
        """Write the passive Expired state and hand back the reservations to release."""
        if CheckoutStatus(self.status) not in OPEN_STATUSES:
            raise BusinessError("CHECKOUT_CLOSED", f"Checkout is {self.status}")

        released = self.reservations
        now = utcnow()
        self.cart_lines = None
        self.status = CheckoutStatus.EXPIRED.value
        self.updated_at = now

        self.raise_(
            CheckoutExpired(
                checkout_id=str(self.id),
                released_line_count=len(released),
                expired_at=now,
            )
        )
        return released

    # -------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------
    def _assert_open(self):
        if CheckoutStatus(self.status) not in OPEN_STATUSES:
            raise BusinessError("CHECKOUT_CLOSED", f"Checkout is {self.status}")
        if self.is_expired:
            raise BusinessError("CHECKOUT_EXPIRED", "Checkout session has expired")


def _step(status):
    return _STEP[CheckoutStatus(status)]
