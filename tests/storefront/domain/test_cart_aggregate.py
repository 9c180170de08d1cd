"""Tests for the Cart aggregate: lines, snapshots, lifecycle."""

from datetime import timedelta

import pytest
from protean.exceptions import ObjectNotFoundError, ValidationError

from storefront.cart.cart import Cart, CartStatus
from storefront.cart.events import CartCreated, CartItemAdded, CartMerged
from storefront.cart.owner import Anonymous, Identified
from storefront.errors import BusinessError
from storefront.utils.clock import utcnow

MAX = 100


def _cart(owner=None):
    return Cart.create(owner=owner or Anonymous(session_id="sess-001"))


class TestCartCreation:
    def test_create_is_active_and_empty(self):
        cart = _cart()
        assert cart.status == CartStatus.ACTIVE.value
        assert len(cart.items) == 0
        assert cart.subtotal == 0

    def test_create_records_owner(self):
        cart = _cart(Identified(customer_id="cust-001"))
        assert cart.owner == Identified(customer_id="cust-001")

    def test_create_sets_expiry_from_ttl(self):
        cart = Cart.create(owner=Anonymous(session_id="s"), ttl_days=7)
        assert cart.expires_at - cart.created_at == timedelta(days=7)

    def test_create_raises_event(self):
        cart = _cart()
        assert isinstance(cart._events[0], CartCreated)


class TestAddItem:
    def test_new_line_snapshots_price(self):
        cart = _cart()
        item = cart.add_item("var-001", 2, unit_price=50.0, max_quantity=MAX)
        assert item.unit_price_snapshot == 50.0
        assert cart.subtotal == 100.0
        assert cart.item_count == 2

    def test_same_variant_increases_quantity_keeping_snapshot(self):
        cart = _cart()
        cart.add_item("var-001", 2, unit_price=50.0, max_quantity=MAX)
        cart.add_item("var-001", 3, unit_price=60.0, max_quantity=MAX)

        assert len(cart.items) == 1
        assert cart.items[0].quantity == 5
        assert cart.items[0].unit_price_snapshot == 50.0

    def test_repeated_adds_never_duplicate_a_variant(self):
        cart = _cart()
        for _ in range(5):
            cart.add_item("var-001", 1, unit_price=10.0, max_quantity=MAX)
            cart.add_item("var-002", 1, unit_price=20.0, max_quantity=MAX)

        variant_ids = sorted(str(i.variant_id) for i in cart.items)
        assert variant_ids == ["var-001", "var-002"]

    def test_quantity_above_maximum_rejected(self):
        cart = _cart()
        with pytest.raises(ValidationError):
            cart.add_item("var-001", 101, unit_price=1.0, max_quantity=MAX)

    def test_combined_quantity_above_maximum_rejected(self):
        cart = _cart()
        cart.add_item("var-001", 60, unit_price=1.0, max_quantity=MAX)
        with pytest.raises(ValidationError):
            cart.add_item("var-001", 41, unit_price=1.0, max_quantity=MAX)
        assert cart.items[0].quantity == 60

    def test_add_raises_event(self):
        cart = _cart()
        cart.add_item("var-001", 2, unit_price=5.0, max_quantity=MAX)
        event = cart._events[-1]
        assert isinstance(event, CartItemAdded)
        assert event.new_quantity == 2

    def test_add_refreshes_expiry(self):
        cart = _cart()
        cart.expires_at = utcnow() + timedelta(hours=1)
        cart.add_item("var-001", 1, unit_price=5.0, max_quantity=MAX, ttl_days=30)
        assert cart.expires_at > utcnow() + timedelta(days=29)


class TestUpdateAndRemove:
    def test_update_sets_quantity_and_refreshes_snapshot(self):
        cart = _cart()
        item = cart.add_item("var-001", 2, unit_price=50.0, max_quantity=MAX)
        cart.update_item(item.id, 3, unit_price=60.0, max_quantity=MAX)

        assert cart.items[0].quantity == 3
        assert cart.items[0].unit_price_snapshot == 60.0
        assert cart.subtotal == 180.0

    def test_update_to_zero_removes_line(self):
        cart = _cart()
        item = cart.add_item("var-001", 2, unit_price=50.0, max_quantity=MAX)
        cart.update_item(item.id, 0, unit_price=50.0, max_quantity=MAX)
        assert len(cart.items) == 0

    def test_remove_missing_item_not_found(self):
        cart = _cart()
        with pytest.raises(ObjectNotFoundError):
            cart.remove_item("missing")


class TestLifecycle:
    def test_complete_requires_items(self):
        cart = _cart()
        with pytest.raises(BusinessError) as exc:
            cart.complete("ord-001")
        assert exc.value.code == "CART_EMPTY"

    def test_completed_cart_rejects_mutation(self):
        cart = _cart()
        cart.add_item("var-001", 1, unit_price=5.0, max_quantity=MAX)
        cart.complete("ord-001")

        assert cart.status == CartStatus.COMPLETED.value
        with pytest.raises(BusinessError) as exc:
            cart.add_item("var-002", 1, unit_price=5.0, max_quantity=MAX)
        assert exc.value.code == "CART_NOT_ACTIVE"

    def test_expired_cart_rejects_mutation(self):
        cart = _cart()
        cart.expires_at = utcnow() - timedelta(minutes=1)

        assert not cart.is_active
        with pytest.raises(BusinessError) as exc:
            cart.add_item("var-001", 1, unit_price=5.0, max_quantity=MAX)
        assert exc.value.code == "CART_EXPIRED"

    def test_abandon(self):
        cart = _cart()
        cart.abandon()
        assert cart.status == CartStatus.ABANDONED.value


class TestAbsorb:
    def test_sums_shared_variants_and_copies_others(self):
        guest = _cart()
        guest.add_item("var-001", 2, unit_price=10.0, max_quantity=MAX)
        guest.add_item("var-002", 1, unit_price=30.0, max_quantity=MAX)

        customer = _cart(Identified(customer_id="cust-001"))
        customer.add_item("var-001", 3, unit_price=9.0, max_quantity=MAX)

        customer.absorb(guest.items)

        quantities = {str(i.variant_id): i.quantity for i in customer.items}
        assert quantities == {"var-001": 5, "var-002": 1}
        assert customer.item_for_variant("var-001").unit_price_snapshot == 9.0
        assert customer.item_for_variant("var-002").unit_price_snapshot == 30.0

    def test_absorb_ignores_the_per_item_maximum(self):
        guest = _cart()
        guest.add_item("var-001", 80, unit_price=1.0, max_quantity=MAX)
        customer = _cart(Identified(customer_id="cust-001"))
        customer.add_item("var-001", 80, unit_price=1.0, max_quantity=MAX)

        customer.absorb(guest.items)
        assert customer.items[0].quantity == 160

    def test_mark_merged(self):
        guest = _cart()
        guest.mark_merged("cart-999", items_merged_count=0)
        assert guest.status == CartStatus.MERGED.value
        assert str(guest.merged_into) == "cart-999"
        assert isinstance(guest._events[-1], CartMerged)
