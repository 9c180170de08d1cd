"""Catalog port (abstract interface).

The storefront only needs a read view of sellable variants: current price,
display names for order snapshots, and stock-tracking flags. Product and
category management live behind this interface and are not part of this
subsystem.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

# Flexible variant attributes (size, colour, ...). Opaque to the storefront:
# carried through, never inspected by cart, inventory or checkout rules.
Attributes = dict[str, str | int | float | bool]


@dataclass(frozen=True)
class Variant:
    """A sellable product variant as seen by the storefront."""

    variant_id: str
    unit_price: float
    product_name: str
    variant_name: str
    sku: str
    track_inventory: bool = True
    allow_backorder: bool = False
    attributes: Attributes = field(default_factory=dict)


class Catalog(ABC):
    """Abstract catalog interface."""

    @abstractmethod
    def get_variant(self, variant_id: str) -> Variant:
        """Return the variant, or raise ObjectNotFoundError if it does not exist."""
        ...
