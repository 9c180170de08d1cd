"""Advisory stock checks for carts.

These read the Inventory Ledger's counters without reserving anything. They
warn shoppers early; the binding check happens when stock is reserved at
the payment step.
"""

from storefront.config import get_settings
from storefront.errors import OutOfStock
from storefront.inventory import ledger

OUT_OF_STOCK = "out_of_stock"
LOW_STOCK = "low_stock"


def assess(variant, quantity):
    """Return ``out_of_stock``, ``low_stock`` or None for ``quantity`` units of a variant."""
    if not variant.track_inventory:
        return None

    level = ledger.stock_level(variant.variant_id)
    allow_backorder = variant.allow_backorder or (level is not None and level.allow_backorder)
    if allow_backorder:
        return None

    available = level.available if level is not None else 0
    if available < quantity:
        return OUT_OF_STOCK
    if available <= get_settings().low_stock_threshold:
        return LOW_STOCK
    return None


def ensure_available(variant, quantity):
    """Raise OutOfStock when even the advisory read shows too little stock."""
    if assess(variant, quantity) == OUT_OF_STOCK:
        level = ledger.stock_level(variant.variant_id)
        raise OutOfStock(
            variant.variant_id,
            requested=quantity,
            available=level.available if level is not None else 0,
        )
