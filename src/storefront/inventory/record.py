"""InventoryRecord aggregate — on-hand and reserved counters for one variant.

Stock Level Model:
    on_hand:   Physical count recorded for the variant
    reserved:  Held by in-progress checkouts (not yet committed to an order)
    available: on_hand - reserved (what can still be reserved)

The counters are only ever changed through the Inventory Ledger
(``storefront.inventory.ledger``), which persists every change as a
conditional update. The methods here hold the rules; the ledger holds the
concurrency control.
"""

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Identifier, Integer

from storefront.domain import storefront
from storefront.errors import LedgerIntegrityError, OutOfStock
from storefront.inventory.events import InventoryDefined
from storefront.utils.clock import utcnow


@storefront.aggregate
class InventoryRecord:
    """Authoritative stock counters for a single product variant."""

    variant_id = Identifier(identifier=True, required=True)
    on_hand = Integer(required=True, min_value=0, default=0)
    reserved = Integer(required=True, min_value=0, default=0)
    allow_backorder = Boolean(default=False)
    created_at = DateTime()

    @invariant.post
    def reserved_cannot_exceed_on_hand(self):
        if not self.allow_backorder and (self.reserved or 0) > (self.on_hand or 0):
            raise ValidationError({"reserved": ["Reserved quantity cannot exceed on-hand quantity"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def define(cls, variant_id, on_hand=0, allow_backorder=False):
        if on_hand < 0:
            raise ValidationError({"on_hand": ["On-hand quantity cannot be negative"]})

        record = cls(
            variant_id=variant_id,
            on_hand=on_hand,
            reserved=0,
            allow_backorder=allow_backorder,
            created_at=utcnow(),
        )
        record.raise_(
            InventoryDefined(
                variant_id=str(variant_id),
                on_hand=on_hand,
                allow_backorder=allow_backorder,
                defined_at=record.created_at,
            )
        )
        return record

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    @property
    def available(self):
        return max((self.on_hand or 0) - (self.reserved or 0), 0)

    def can_reserve(self, quantity):
        return self.allow_backorder or (self.reserved + quantity) <= self.on_hand

    # -------------------------------------------------------------------
    # Counter transitions
    # -------------------------------------------------------------------
    def reserve(self, quantity):
        _require_positive(quantity)
        if not self.can_reserve(quantity):
            raise OutOfStock(self.variant_id, requested=quantity, available=self.available)
        self.reserved += quantity

    def release(self, quantity):
        """Return reserved stock. Floored at zero so a retried release is harmless."""
        _require_positive(quantity)
        self.reserved = max(self.reserved - quantity, 0)

    def commit(self, quantity):
        """Convert a reservation into a sale: both counters drop by ``quantity``."""
        _require_positive(quantity)
        if self.reserved < quantity:
            raise LedgerIntegrityError(
                f"Cannot commit {quantity} of variant {self.variant_id}: only {self.reserved} reserved"
            )

        with atomic_change(self):
            self.reserved -= quantity
            if self.allow_backorder:
                # Backordered units beyond on-hand do not drive the count negative
                self.on_hand = max(self.on_hand - quantity, 0)
            else:
                self.on_hand -= quantity


def _require_positive(quantity):
    if quantity is None or quantity <= 0:
        raise ValidationError({"quantity": ["Quantity must be positive"]})
