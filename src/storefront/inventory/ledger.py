"""Inventory Ledger — atomic reserve / release / commit on InventoryRecords.

Every counter change is written as a single conditional update through the DAO: the row is
only updated if its counters still hold the values that were read. The
affected-row count tells whether the write won; a lost race is retried with
a short exponential backoff, bounded by ``RESERVE_MAX_ATTEMPTS``. There is
never a plain read-then-write, so two checkouts racing for the last units of
a variant cannot both succeed.

The ledger does not open a unit of work of its own. Called from a command
handler, its writes join the handler's transaction.
"""

import time
from dataclasses import dataclass

import structlog
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain
from protean.utils.query import Q

from storefront.config import get_settings
from storefront.errors import BusinessError, OutOfStock
from storefront.inventory.record import InventoryRecord

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class StockLevel:
    """Point-in-time view of a variant's counters. Reading one reserves nothing."""

    variant_id: str
    on_hand: int
    reserved: int
    available: int
    allow_backorder: bool


def find(variant_id) -> InventoryRecord | None:
    """Return the stored record for a variant, or None if stock is not tracked."""
    repo = current_domain.repository_for(InventoryRecord)
    return repo._dao.query.filter(variant_id=str(variant_id)).all().first


def stock_level(variant_id) -> StockLevel | None:
    """Advisory read used for cart warnings and validation."""
    record = find(variant_id)
    if record is None:
        return None
    return _level(record)


def reserve(variant_id, quantity) -> StockLevel:
    """Claim ``quantity`` units for a checkout.

    Raises:
        OutOfStock: not enough unreserved stock (and no backorder), or the
            row stayed contended through every retry.
    """

    def _exhausted():
        logger.warning("Reservation abandoned after contention", variant_id=str(variant_id), quantity=quantity)
        raise OutOfStock(variant_id, requested=quantity)

    level = _apply(variant_id, lambda record: record.reserve(quantity), _exhausted)
    logger.info("Stock reserved", variant_id=str(variant_id), quantity=quantity, reserved=level.reserved)
    return level


def release(variant_id, quantity) -> StockLevel:
    """Return ``quantity`` reserved units. Releasing more than is held floors at zero."""
    level = _apply(variant_id, lambda record: record.release(quantity), _contended(variant_id))
    logger.info("Reservation released", variant_id=str(variant_id), quantity=quantity, reserved=level.reserved)
    return level


def commit(variant_id, quantity) -> StockLevel:
    """Turn reserved units into sold units.

    Raises:
        LedgerIntegrityError: fewer units are reserved than are being committed.
    """
    level = _apply(variant_id, lambda record: record.commit(quantity), _contended(variant_id))
    logger.info(
        "Stock committed",
        variant_id=str(variant_id),
        quantity=quantity,
        on_hand=level.on_hand,
        reserved=level.reserved,
    )
    return level


# ---------------------------------------------------------------------------
# Internals
# ---------------------------------------------------------------------------
def _apply(variant_id, transition, on_exhausted) -> StockLevel:
    settings = get_settings()
    attempts = max(settings.reserve_max_attempts, 1)

    for attempt in range(1, attempts + 1):
        record = find(variant_id)
        if record is None:
            raise ObjectNotFoundError({"_entity": f"InventoryRecord for variant {variant_id} not found"})

        observed = (record.on_hand, record.reserved)
        transition(record)
        if (record.on_hand, record.reserved) == observed:
            return _level(record)

        if _compare_and_set(variant_id, observed, (record.on_hand, record.reserved)):
            return _level(record)

        logger.debug("Inventory row contended, retrying", variant_id=str(variant_id), attempt=attempt)
        if attempt < attempts:
            time.sleep(settings.reserve_backoff_seconds * (2 ** (attempt - 1)))

    return on_exhausted()


def _compare_and_set(variant_id, observed, new) -> bool:
    """Write ``new`` counters only if the row still holds ``observed``."""
    on_hand, reserved = observed
    new_on_hand, new_reserved = new

    repo = current_domain.repository_for(InventoryRecord)
    updated = repo._dao._update_all(
        Q(variant_id=str(variant_id), on_hand=on_hand, reserved=reserved),
        on_hand=new_on_hand,
        reserved=new_reserved,
    )
    return updated == 1


def _contended(variant_id):
    def _raise():
        raise BusinessError("INVENTORY_CONTENDED", f"Inventory for variant {variant_id} is busy, try again")

    return _raise


def _level(record) -> StockLevel:
    return StockLevel(
        variant_id=str(record.variant_id),
        on_hand=record.on_hand,
        reserved=record.reserved,
        available=record.available,
        allow_backorder=bool(record.allow_backorder),
    )
