"""Cart aggregate (CQRS) — a mutable basket that becomes an Order at checkout.

The cart holds line items with the price seen when each line was added. It
never holds inventory: stock is only reserved at the payment step of
checkout. A cart is owned by an anonymous session or by a customer, and a
guest cart can be folded into a customer's cart on sign-in.

Lifecycle:
    ACTIVE → COMPLETED (order placed)
    ACTIVE → MERGED    (folded into a customer cart, kept for audit)
    ACTIVE → ABANDONED (idle past the abandonment threshold)
"""

from datetime import timedelta
from enum import Enum

from protean import invariant
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String

from storefront.cart.email import validate_email
from storefront.cart.events import (
    CartAbandoned,
    CartCompleted,
    CartCreated,
    CartEmailSet,
    CartItemAdded,
    CartItemRemoved,
    CartItemUpdated,
    CartMerged,
)
from storefront.cart.owner import Owner, OwnerType, owner_from
from storefront.domain import storefront
from storefront.errors import BusinessError
from storefront.utils.clock import has_passed, utcnow


class CartStatus(Enum):
    ACTIVE = "Active"
    MERGED = "Merged"
    COMPLETED = "Completed"
    ABANDONED = "Abandoned"


@storefront.entity(part_of="Cart")
class CartItem:
    variant_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)
    unit_price_snapshot = Float(required=True, min_value=0.0)
    added_at = DateTime()

    @property
    def line_total(self):
        return round(self.quantity * self.unit_price_snapshot, 2)


@storefront.aggregate
class Cart:
    owner_type = String(required=True, choices=OwnerType)
    owner_reference = String(required=True, max_length=255)
    items = HasMany(CartItem)
    email = String(max_length=254)
    currency = String(max_length=3, default="USD")
    status = String(choices=CartStatus, default=CartStatus.ACTIVE.value)
    merged_into = Identifier()
    created_at = DateTime()
    updated_at = DateTime()
    expires_at = DateTime()

    @invariant.post
    def one_line_per_variant(self):
        variant_ids = [str(item.variant_id) for item in self.items]
        if len(variant_ids) != len(set(variant_ids)):
            raise ValidationError({"items": ["A variant can appear only once in a cart"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(cls, owner: Owner, currency="USD", ttl_days=30):
        now = utcnow()
        cart = cls(
            owner_type=owner.owner_type.value,
            owner_reference=owner.reference,
            currency=currency,
            status=CartStatus.ACTIVE.value,
            created_at=now,
            updated_at=now,
            expires_at=now + timedelta(days=ttl_days),
        )
        cart.raise_(
            CartCreated(
                cart_id=str(cart.id),
                owner_type=cart.owner_type,
                owner_reference=cart.owner_reference,
                currency=cart.currency,
                created_at=now,
            )
        )
        return cart

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    @property
    def owner(self) -> Owner:
        return owner_from(self.owner_type, self.owner_reference)

    @property
    def is_active(self):
        return CartStatus(self.status) == CartStatus.ACTIVE and not self.is_expired

    @property
    def is_expired(self):
        return has_passed(self.expires_at)

    @property
    def item_count(self):
        return sum(item.quantity for item in self.items)

    @property
    def subtotal(self):
        return round(sum(item.quantity * item.unit_price_snapshot for item in self.items), 2)

    def item_for_variant(self, variant_id):
        return next((i for i in self.items if str(i.variant_id) == str(variant_id)), None)

    def get_item(self, item_id):
        item = next((i for i in self.items if str(i.id) == str(item_id)), None)
        if item is None:
            raise ObjectNotFoundError({"_entity": f"Item {item_id} not found in cart {self.id}"})
        return item

    # -------------------------------------------------------------------
    # Item management
    # -------------------------------------------------------------------
    def add_item(self, variant_id, quantity, unit_price, max_quantity, ttl_days=30):
        """Add a variant, or increase the quantity of its existing line.

        An existing line keeps its original price snapshot.
        """
        self._assert_active()
        _check_quantity(quantity, max_quantity)

        now = utcnow()
        existing = self.item_for_variant(variant_id)

        if existing:
            new_quantity = existing.quantity + quantity
            _check_quantity(new_quantity, max_quantity)
            existing.quantity = new_quantity
            item = existing
        else:
            item = CartItem(
                variant_id=variant_id,
                quantity=quantity,
                unit_price_snapshot=unit_price,
                added_at=now,
            )
            self.add_items(item)
            new_quantity = quantity

        self._touch(now, ttl_days)

        self.raise_(
            CartItemAdded(
                cart_id=str(self.id),
                item_id=str(item.id),
                variant_id=str(variant_id),
                quantity=quantity,
                new_quantity=new_quantity,
                unit_price_snapshot=item.unit_price_snapshot,
            )
        )
        return item

    def update_item(self, item_id, quantity, unit_price, max_quantity, ttl_days=30):
        """Set a line's quantity and refresh its price snapshot. Zero removes the line."""
        self._assert_active()
        if quantity == 0:
            return self.remove_item(item_id, ttl_days=ttl_days)

        _check_quantity(quantity, max_quantity)
        item = self.get_item(item_id)

        previous_quantity = item.quantity
        item.quantity = quantity
        item.unit_price_snapshot = unit_price
        self._touch(utcnow(), ttl_days)

        self.raise_(
            CartItemUpdated(
                cart_id=str(self.id),
                item_id=str(item_id),
                previous_quantity=previous_quantity,
                new_quantity=quantity,
                unit_price_snapshot=unit_price,
            )
        )
        return item

    def remove_item(self, item_id, ttl_days=30):
        self._assert_active()
        item = self.get_item(item_id)

        self.remove_items(item)
        self._touch(utcnow(), ttl_days)

        self.raise_(
            CartItemRemoved(
                cart_id=str(self.id),
                item_id=str(item_id),
                variant_id=str(item.variant_id),
            )
        )
        return None

    def set_email(self, email):
        self._assert_active()
        self.email = validate_email(email)
        self.updated_at = utcnow()

        self.raise_(CartEmailSet(cart_id=str(self.id), email=self.email))

    # -------------------------------------------------------------------
    # Merging (guest → customer)
    # -------------------------------------------------------------------
    def absorb(self, guest_items):
        """Fold guest lines into this cart.

        Shared variants have their quantities summed (keeping this cart's
        snapshot); other lines are copied with the guest's snapshot and the
        current timestamp. No quantity or stock cap applies here: both are
        re-checked when checkout starts.
        """
        self._assert_active()
        now = utcnow()

        for guest_item in guest_items:
            existing = self.item_for_variant(guest_item.variant_id)
            if existing:
                existing.quantity += guest_item.quantity
            else:
                self.add_items(
                    CartItem(
                        variant_id=guest_item.variant_id,
                        quantity=guest_item.quantity,
                        unit_price_snapshot=guest_item.unit_price_snapshot,
                        added_at=now,
                    )
                )

        self.updated_at = now

    def mark_merged(self, into_cart_id, items_merged_count):
        if CartStatus(self.status) != CartStatus.ACTIVE:
            raise BusinessError("CART_NOT_ACTIVE", "Only active carts can be merged")

        self.status = CartStatus.MERGED.value
        self.merged_into = into_cart_id
        self.updated_at = utcnow()

        self.raise_(
            CartMerged(
                cart_id=str(self.id),
                merged_into_cart_id=str(into_cart_id),
                items_merged_count=items_merged_count,
            )
        )

    # -------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------
    def complete(self, order_id):
        if CartStatus(self.status) != CartStatus.ACTIVE:
            raise BusinessError("CART_NOT_ACTIVE", "Only active carts can be completed")
        if not self.items:
            raise BusinessError("CART_EMPTY", "Cannot complete an empty cart")

        self.status = CartStatus.COMPLETED.value
        self.updated_at = utcnow()

        self.raise_(CartCompleted(cart_id=str(self.id), order_id=str(order_id)))

    def abandon(self):
        if CartStatus(self.status) != CartStatus.ACTIVE:
            raise BusinessError("CART_NOT_ACTIVE", "Only active carts can be abandoned")

        now = utcnow()
        self.status = CartStatus.ABANDONED.value
        self.updated_at = now

        self.raise_(CartAbandoned(cart_id=str(self.id), abandoned_at=now))

    # -------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------
    def _assert_active(self):
        if CartStatus(self.status) != CartStatus.ACTIVE:
            raise BusinessError("CART_NOT_ACTIVE", f"Cart is {self.status}")
        if self.is_expired:
            raise BusinessError("CART_EXPIRED", "Cart has expired")

    def _touch(self, now, ttl_days):
        self.updated_at = now
        self.expires_at = now + timedelta(days=ttl_days)


def _check_quantity(quantity, max_quantity):
    if quantity is None or quantity < 1:
        raise ValidationError({"quantity": ["Quantity must be at least 1"]})
    if quantity > max_quantity:
        raise ValidationError({"quantity": [f"Quantity cannot exceed {max_quantity} per item"]})
