"""Application tests for turning a paid checkout into an order."""

import pytest
from protean import current_domain
from protean.exceptions import ObjectNotFoundError

from storefront.cart.cart import Cart, CartStatus
from storefront.checkout.session import CheckoutStatus
from storefront.errors import BusinessError, LedgerIntegrityError
from storefront.inventory import ledger
from storefront.operations import (
    add_item,
    complete_checkout,
    get_checkout,
    get_order,
    process_payment,
    set_addresses,
    set_shipping_method,
    start_checkout,
    update_item,
)
from storefront.order.order import Order
from storefront.order.queries import get_order_for_checkout
from storefront.payments.port import IntentStatus


@pytest.fixture
def paid_checkout(ready_cart, address):
    checkout_id = start_checkout(ready_cart)
    set_addresses(checkout_id, address)
    set_shipping_method(checkout_id, "express")
    process_payment(checkout_id, "card")
    return checkout_id


def _orders():
    return current_domain.repository_for(Order)._dao.query.all().items


class TestCompleteCheckout:
    def test_order_snapshot(self, paid_checkout, address):
        order = complete_checkout(paid_checkout)

        assert order.order_number.startswith("ORD-")
        assert order.subtotal == 115.0
        assert order.shipping_cost == 14.99
        assert order.grand_total == 129.99
        assert order.email == "jane@example.com"
        assert order.owner_type == "Anonymous"
        assert order.shipping_address.city == address["city"]
        assert {i.sku for i in order.items} == {"TS-L-BLU", "MUG-WHT"}

    def test_catalog_changes_do_not_alter_placed_order(self, paid_checkout, shirt, catalog):
        order = complete_checkout(paid_checkout)
        catalog.set_price(shirt, 99.0)

        stored = get_order(order.id)
        shirt_line = next(i for i in stored.items if str(i.variant_id) == shirt)
        assert shirt_line.unit_price == 50.0

    def test_completing_twice_returns_the_same_order(self, paid_checkout, shirt, mug):
        first = complete_checkout(paid_checkout)
        second = complete_checkout(paid_checkout)

        assert second.id == first.id
        assert len(_orders()) == 1
        assert (ledger.stock_level(shirt).on_hand, ledger.stock_level(mug).on_hand) == (8, 19)

    def test_lookup_by_checkout(self, paid_checkout):
        order = complete_checkout(paid_checkout)
        assert get_order_for_checkout(paid_checkout).id == order.id
        assert get_checkout(paid_checkout).order_id == str(order.id)

    def test_lookup_unknown_order(self):
        with pytest.raises(ObjectNotFoundError):
            get_order("ord-missing")

    def test_requires_payment(self, ready_cart, address):
        checkout_id = start_checkout(ready_cart)
        set_addresses(checkout_id, address)
        set_shipping_method(checkout_id, "standard")

        with pytest.raises(BusinessError) as exc:
            complete_checkout(checkout_id)
        assert exc.value.code == "PAYMENT_REQUIRED"


class TestPendingPayment:
    def test_pending_intent_blocks_completion_until_settled(self, ready_cart, address, gateway):
        checkout_id = start_checkout(ready_cart)
        set_addresses(checkout_id, address)
        set_shipping_method(checkout_id, "standard")
        gateway.configure(IntentStatus.PENDING)
        intent_id = process_payment(checkout_id, "bank_transfer")

        assert get_checkout(checkout_id).status == CheckoutStatus.PAYMENT_SET.value
        with pytest.raises(BusinessError) as exc:
            complete_checkout(checkout_id)
        assert exc.value.code == "PAYMENT_NOT_COMPLETED"
        assert _orders() == []

        gateway.settle(intent_id, IntentStatus.SUCCEEDED)
        order = complete_checkout(checkout_id)
        assert order.payment_intent_id == intent_id

    def test_intent_failing_after_authorization(self, paid_checkout, gateway):
        gateway.settle(get_checkout(paid_checkout).payment_intent_id, IntentStatus.FAILED)

        with pytest.raises(BusinessError) as exc:
            complete_checkout(paid_checkout)
        assert exc.value.code == "PAYMENT_FAILED"


class TestAtomicity:
    def test_failed_commit_rolls_back_everything(self, paid_checkout, ready_cart, shirt, mug, monkeypatch):
        real_commit = ledger.commit
        committed = []

        def commit_then_fail(variant_id, quantity):
            if committed:
                raise LedgerIntegrityError("simulated failure")
            committed.append(variant_id)
            return real_commit(variant_id, quantity)

        monkeypatch.setattr(ledger, "commit", commit_then_fail)

        with pytest.raises(LedgerIntegrityError):
            complete_checkout(paid_checkout)

        assert _orders() == []
        assert current_domain.repository_for(Cart).get(ready_cart).status == CartStatus.ACTIVE.value
        assert get_checkout(paid_checkout).status == CheckoutStatus.PAYMENT_SET.value
        assert (ledger.stock_level(shirt).on_hand, ledger.stock_level(shirt).reserved) == (10, 2)
        assert (ledger.stock_level(mug).on_hand, ledger.stock_level(mug).reserved) == (20, 1)

    def test_cart_changed_after_payment(self, paid_checkout, ready_cart, catalog):
        catalog.add_variant("var-gift", 5.0, track_inventory=False)
        add_item(ready_cart, "var-gift", 1)

        with pytest.raises(BusinessError) as exc:
            complete_checkout(paid_checkout)
        assert exc.value.code == "CART_MODIFIED"
        assert _orders() == []

    def test_price_refreshed_after_payment(self, paid_checkout, ready_cart, shirt, catalog):
        cart = current_domain.repository_for(Cart).get(ready_cart)
        line = cart.item_for_variant(shirt)
        catalog.set_price(shirt, 80.0)
        update_item(ready_cart, line.id, line.quantity)

        with pytest.raises(BusinessError) as exc:
            complete_checkout(paid_checkout)
        assert exc.value.code == "CART_MODIFIED"
        assert _orders() == []
        assert ledger.stock_level(shirt).reserved == 2

    def test_order_total_matches_amount_charged(self, paid_checkout):
        order = complete_checkout(paid_checkout)
        assert order.grand_total == get_checkout(paid_checkout).amount


class TestNotification:
    def test_notified_once(self, paid_checkout, notifier):
        order = complete_checkout(paid_checkout)
        complete_checkout(paid_checkout)
        assert notifier.notified == [str(order.id)]

    def test_notification_failure_keeps_the_order(self, paid_checkout, notifier):
        notifier.configure(should_fail=True)

        order = complete_checkout(paid_checkout)

        assert get_order(order.id).order_number == order.order_number
        assert get_checkout(paid_checkout).status == CheckoutStatus.COMPLETED.value
