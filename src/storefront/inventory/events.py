"""Domain events for the InventoryRecord aggregate."""

from protean.fields import Boolean, DateTime, Identifier, Integer

from storefront.domain import storefront


@storefront.event(part_of="InventoryRecord")
class InventoryDefined:
    """Stock tracking started for a product variant."""

    __version__ = 1

    variant_id = Identifier(required=True)
    on_hand = Integer(required=True)
    allow_backorder = Boolean(default=False)
    defined_at = DateTime(required=True)
