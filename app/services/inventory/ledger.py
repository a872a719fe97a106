"""Per-(product, club) stock records and their status classification.

A record holds two independent balances: whole sealed units and a
preparation sub-record (open containers and the portions left across them).
Balances are only ever changed by the mutation engine; this module creates
and reads records and classifies them against the account's ideal stock.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.models.inventory import InventoryRecord, Product, ProductForm
from app.services.inventory.errors import ProductNotFound, RecordNotFound

logger = logging.getLogger(__name__)


class StockStatus(str, Enum):
    CRITICAL = "critical"
    LOW = "low"
    NORMAL = "normal"


@dataclass(frozen=True)
class LedgerLookup:
    record: InventoryRecord
    created: bool


@dataclass(frozen=True)
class RecordStatus:
    sealed: StockStatus | None
    preparation: StockStatus | None

    @property
    def worst(self) -> StockStatus:
        ranked = [s for s in (self.sealed, self.preparation) if s is not None]
        if StockStatus.CRITICAL in ranked:
            return StockStatus.CRITICAL
        if StockStatus.LOW in ranked:
            return StockStatus.LOW
        return StockStatus.NORMAL


def compute_status(current_stock: int, ideal_stock: int) -> StockStatus:
    if current_stock <= 0:
        return StockStatus.CRITICAL
    if current_stock < ideal_stock:
        return StockStatus.LOW
    return StockStatus.NORMAL


def record_status(record: InventoryRecord, form: ProductForm, ideal_stock: int) -> RecordStatus:
    """Classify each axis that applies to the product's sellable form."""
    sealed = None
    preparation = None
    if form in (ProductForm.SEALED, ProductForm.BOTH):
        sealed = compute_status(record.sealed, ideal_stock)
    if form in (ProductForm.PREPARED, ProductForm.BOTH):
        preparation = compute_status(record.current_portions, ideal_stock)
    return RecordStatus(sealed=sealed, preparation=preparation)


def _select_record(product_id: int, club_id: int, *, lock: bool):
    query = select(InventoryRecord).where(
        InventoryRecord.product_id == product_id,
        InventoryRecord.club_id == club_id,
    )
    if lock:
        # A locked read must overwrite any copy already in the identity map.
        query = query.with_for_update().execution_options(populate_existing=True)
    return query


def get_record(db: Session, product_id: int, club_id: int, *, lock: bool = False) -> InventoryRecord:
    record = db.scalar(_select_record(product_id, club_id, lock=lock))
    if not record:
        raise RecordNotFound(product_id, club_id)
    return record


def get_or_create(db: Session, product_id: int, club_id: int, *, lock: bool = False) -> LedgerLookup:
    """Return the record for the pair, creating a zeroed one if absent.

    The new record's portions_per_unit is copied from the catalog once and
    never re-synced. Creation only flushes; the caller owns the commit. When
    another writer inserts the same pair first, the session is rolled back
    and the winner's row is returned, so call this at the start of a unit of
    work.
    """
    record = db.scalar(_select_record(product_id, club_id, lock=lock))
    if record:
        return LedgerLookup(record=record, created=False)

    product = db.get(Product, product_id)
    if not product:
        raise ProductNotFound(product_id)

    record = InventoryRecord(
        product_id=product_id,
        club_id=club_id,
        sealed=0,
        prep_units=0,
        portions_per_unit=product.portions or 0,
        current_portions=0,
        portion_price=product.portion_price,
        portion_size=product.portion_size,
        updated_at=datetime.utcnow(),
    )
    db.add(record)
    try:
        db.flush()
    except IntegrityError:
        db.rollback()
        logger.info("inventory record for product=%s club=%s created concurrently", product_id, club_id)
        record = db.scalar(_select_record(product_id, club_id, lock=lock))
        if not record:
            raise
        return LedgerLookup(record=record, created=False)

    logger.debug("initialized inventory record product=%s club=%s", product_id, club_id)
    return LedgerLookup(record=record, created=True)
