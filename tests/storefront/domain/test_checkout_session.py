"""Tests for the CheckoutSession state machine."""

from datetime import timedelta

import pytest

from storefront.checkout.session import CheckoutSession, CheckoutStatus
from storefront.errors import BusinessError
from storefront.payments.port import IntentStatus, PaymentIntent
from storefront.shared.address import Address
from storefront.utils.clock import utcnow

ADDRESS = {
    "name": "Jane Doe",
    "line1": "1 Main St",
    "city": "Springfield",
    "postal_code": "12345",
    "country": "US",
}


def _session():
    return CheckoutSession.start(cart_id="cart-001", ttl_minutes=30)


def _intent(status=IntentStatus.SUCCEEDED):
    return PaymentIntent(intent_id="pi_001", status=status, amount=10.0, currency="USD")


def _at_shipping_set():
    session = _session()
    session.set_addresses(Address(**ADDRESS))
    session.select_shipping_method("standard", 5.99)
    return session


def _at_payment_set(lines=None):
    session = _at_shipping_set()
    session.record_payment(
        _intent(),
        method="card",
        amount=15.99,
        shipping_cost=5.99,
        lines=lines or [{"variant_id": "var-001", "quantity": 2, "unit_price": 10.0, "tracked": True}],
    )
    return session


def _code(callable_, *args, **kwargs):
    with pytest.raises(BusinessError) as exc:
        callable_(*args, **kwargs)
    return exc.value.code


class TestStart:
    def test_start_is_open_with_ttl(self):
        session = _session()
        assert session.status == CheckoutStatus.STARTED.value
        assert session.is_open
        assert session.expires_at - session.created_at == timedelta(minutes=30)


class TestForwardTransitions:
    def test_addresses_default_billing_to_shipping(self):
        session = _session()
        session.set_addresses(Address(**ADDRESS))
        assert session.status == CheckoutStatus.ADDRESS_SET.value
        assert session.billing_same_as_shipping is True
        assert session.billing_address == session.shipping_address

    def test_separate_billing_address(self):
        session = _session()
        billing = Address(**{**ADDRESS, "name": "Accounts Payable"})
        session.set_addresses(Address(**ADDRESS), billing)
        assert session.billing_same_as_shipping is False
        assert session.billing_address.name == "Accounts Payable"

    def test_shipping_method_moves_to_shipping_set(self):
        session = _at_shipping_set()
        assert session.status == CheckoutStatus.SHIPPING_SET.value
        assert session.shipping_cost == 5.99

    def test_shipping_method_may_be_changed_before_payment(self):
        session = _at_shipping_set()
        session.select_shipping_method("express", 14.99)
        assert session.status == CheckoutStatus.SHIPPING_SET.value
        assert session.shipping_method_id == "express"

    def test_record_payment_keeps_reserved_lines(self):
        session = _at_payment_set(
            [
                {"variant_id": "var-001", "quantity": 2, "unit_price": 10.0, "tracked": True},
                {"variant_id": "var-002", "quantity": 1, "unit_price": 5.0, "tracked": False},
            ]
        )
        assert session.status == CheckoutStatus.PAYMENT_SET.value
        assert session.reservations == [("var-001", 2)]
        assert session.payment_status == "succeeded"

    def test_complete(self):
        session = _at_payment_set()
        session.complete("ord-001")
        assert session.status == CheckoutStatus.COMPLETED.value
        assert str(session.order_id) == "ord-001"


class TestOutOfOrderTransitions:
    def test_shipping_before_address(self):
        assert _code(_session().select_shipping_method, "standard", 5.99) == "ADDRESS_REQUIRED"

    def test_payment_before_address(self):
        assert _code(_session().assert_ready_for_payment) == "ADDRESS_REQUIRED"

    def test_payment_before_shipping(self):
        session = _session()
        session.set_addresses(Address(**ADDRESS))
        assert _code(session.assert_ready_for_payment) == "SHIPPING_METHOD_REQUIRED"

    def test_completion_before_payment(self):
        assert _code(_at_shipping_set().assert_ready_for_completion) == "PAYMENT_REQUIRED"

    def test_addresses_cannot_move_status_backward(self):
        session = _at_shipping_set()
        assert _code(session.set_addresses, Address(**ADDRESS)) == "INVALID_TRANSITION"
        assert session.status == CheckoutStatus.SHIPPING_SET.value

    def test_second_payment_rejected(self):
        assert _code(_at_payment_set().assert_ready_for_payment) == "INVALID_TRANSITION"

    def test_completed_session_is_closed(self):
        session = _at_payment_set()
        session.complete("ord-001")
        assert _code(session.cancel) == "CHECKOUT_CLOSED"


class TestExpiry:
    def test_expired_session_reads_as_expired(self):
        session = _session()
        session.expires_at = utcnow() - timedelta(seconds=1)
        assert session.is_expired
        assert session.effective_status == CheckoutStatus.EXPIRED.value
        assert session.status == CheckoutStatus.STARTED.value

    def test_transitions_refused_after_expiry(self):
        session = _session()
        session.expires_at = utcnow() - timedelta(seconds=1)
        assert _code(session.set_addresses, Address(**ADDRESS)) == "CHECKOUT_EXPIRED"

    def test_expire_hands_back_reservations(self):
        session = _at_payment_set()
        released = session.expire()
        assert released == [("var-001", 2)]
        assert session.status == CheckoutStatus.EXPIRED.value
        assert session.reservations == []

    def test_expire_twice_is_refused(self):
        session = _session()
        session.expire()
        assert _code(session.expire) == "CHECKOUT_CLOSED"


class TestCancel:
    def test_cancel_hands_back_reservations(self):
        session = _at_payment_set()
        assert session.cancel() == [("var-001", 2)]
        assert session.status == CheckoutStatus.CANCELLED.value
