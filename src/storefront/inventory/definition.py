"""Inventory definition — command and handler.

An InventoryRecord is created once, when a variant is defined, and is never
deleted.
"""

from protean import handle
from protean.fields import Boolean, Identifier, Integer
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.errors import ConflictError
from storefront.inventory.record import InventoryRecord


@storefront.command(part_of="InventoryRecord")
class DefineInventory:
    variant_id = Identifier(required=True)
    on_hand = Integer(required=True, min_value=0)
    allow_backorder = Boolean(default=False)


@storefront.command_handler(part_of=InventoryRecord)
class DefineInventoryHandler:
    @handle(DefineInventory)
    def define_inventory(self, command):
        repo = current_domain.repository_for(InventoryRecord)

        existing = repo._dao.query.filter(variant_id=str(command.variant_id)).all()
        if existing.items:
            raise ConflictError("variant_id", f"Inventory already defined for variant {command.variant_id}")

        record = InventoryRecord.define(
            variant_id=command.variant_id,
            on_hand=command.on_hand,
            allow_backorder=bool(command.allow_backorder),
        )
        repo.add(record)
        return str(record.variant_id)
