"""The single write path for inventory balances.

Every stock change goes through :func:`apply_movement`, which appends a
movement and updates the cached balance of the (product, club) record in
one commit. The cached balance can always be recomputed by replaying the
movement log with the same effect table (:func:`rebuild_from_log`).
"""

import itertools
import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Iterable

from sqlalchemy.orm import Session

from app.core.config import settings
from app.models.inventory import InventoryRecord, Movement, MovementType, MovementUnit
from app.services.inventory import ledger, movements
from app.services.inventory.errors import InsufficientStock

logger = logging.getLogger(__name__)


class Effect(str, Enum):
    INCREASE = "increase"
    DECREASE = "decrease"


EFFECTS: dict[tuple[MovementType, MovementUnit], Effect] = {
    (MovementType.PURCHASE, MovementUnit.SEALED): Effect.INCREASE,
    (MovementType.PURCHASE, MovementUnit.PORTION): Effect.INCREASE,
    (MovementType.SALE, MovementUnit.SEALED): Effect.DECREASE,
    (MovementType.SALE, MovementUnit.PORTION): Effect.DECREASE,
    (MovementType.USAGE, MovementUnit.SEALED): Effect.DECREASE,
    (MovementType.USAGE, MovementUnit.PORTION): Effect.DECREASE,
    (MovementType.ADJUSTMENT, MovementUnit.SEALED): Effect.INCREASE,
    (MovementType.ADJUSTMENT, MovementUnit.PORTION): Effect.INCREASE,
}

_uncovered = set(itertools.product(MovementType, MovementUnit)) - EFFECTS.keys()
if _uncovered:
    raise RuntimeError(f"Movement effect table is missing combinations: {sorted(_uncovered)}")


@dataclass(frozen=True)
class Balance:
    sealed: int = 0
    prep_units: int = 0
    current_portions: int = 0

    @classmethod
    def of(cls, record: InventoryRecord) -> "Balance":
        return cls(
            sealed=record.sealed,
            prep_units=record.prep_units,
            current_portions=record.current_portions,
        )

    def apply(self, effect: Effect, unit: MovementUnit, quantity: int, portions_per_unit: int) -> "Balance":
        if unit == MovementUnit.SEALED:
            delta = quantity if effect == Effect.INCREASE else -quantity
            return replace(self, sealed=self.sealed + delta)
        if effect == Effect.INCREASE:
            # Containers bring their portions with them.
            return replace(
                self,
                prep_units=self.prep_units + quantity,
                current_portions=self.current_portions + quantity * (portions_per_unit or 1),
            )
        return replace(self, current_portions=self.current_portions - quantity)

    def available(self, unit: MovementUnit) -> int:
        return self.sealed if unit == MovementUnit.SEALED else self.current_portions

    def is_negative(self) -> bool:
        return self.sealed < 0 or self.current_portions < 0

    def store(self, record: InventoryRecord) -> None:
        record.sealed = self.sealed
        record.prep_units = self.prep_units
        record.current_portions = self.current_portions

    def diff(self, other: "Balance") -> dict[str, tuple[int, int]]:
        drift = {}
        for name in ("sealed", "prep_units", "current_portions"):
            mine, theirs = getattr(self, name), getattr(other, name)
            if mine != theirs:
                drift[name] = (mine, theirs)
        return drift


@dataclass(frozen=True)
class MovementOutcome:
    record: InventoryRecord
    movement: Movement
    created: bool


@dataclass(frozen=True)
class RebuildReport:
    product_id: int
    club_id: int
    movement_count: int
    expected: Balance
    cached: Balance
    drift: dict[str, tuple[int, int]]
    repaired: bool

    @property
    def consistent(self) -> bool:
        return not self.drift


_key_locks = [threading.Lock() for _ in range(settings.stock_lock_stripes)]


@contextmanager
def stock_key_lock(product_id: int, club_id: int):
    """Serialize writers of one (product, club) balance within the process."""
    lock = _key_locks[hash((product_id, club_id)) % len(_key_locks)]
    with lock:
        yield


def effect_of(movement_type: MovementType, unit: MovementUnit) -> Effect:
    return EFFECTS[(movement_type, unit)]


def replay(history: Iterable[Movement], portions_per_unit: int) -> Balance:
    balance = Balance()
    for entry in history:
        balance = balance.apply(effect_of(entry.type, entry.unit), entry.unit, entry.quantity, portions_per_unit)
    return balance


def apply_movement(
    db: Session,
    *,
    product_id: int,
    club_id: int,
    movement_type: MovementType,
    quantity: int,
    unit: MovementUnit,
    description: str | None = None,
    actor_id: int,
) -> MovementOutcome:
    """Record one stock movement and update the cached balance.

    Commits on success. On any failure the session is rolled back, so a
    rejected movement leaves neither a log entry nor a lazily created
    record behind.
    """
    movements.validate_movement(
        {
            "product_id": product_id,
            "club_id": club_id,
            "type": movement_type,
            "unit": unit,
            "actor_id": actor_id,
            "quantity": quantity,
        }
    )
    effect = effect_of(movement_type, unit)

    with stock_key_lock(product_id, club_id):
        try:
            lookup = ledger.get_or_create(db, product_id, club_id, lock=True)
            record = lookup.record
            before = Balance.of(record)
            after = before.apply(effect, unit, quantity, record.portions_per_unit)
            if after.is_negative():
                raise InsufficientStock(
                    product_id=product_id,
                    club_id=club_id,
                    unit=unit.value,
                    available=before.available(unit),
                    requested=quantity,
                )

            movement = movements.append(
                db,
                Movement(
                    product_id=product_id,
                    club_id=club_id,
                    type=movement_type,
                    unit=unit,
                    quantity=quantity,
                    description=description,
                    actor_id=actor_id,
                ),
            )
            after.store(record)
            record.updated_at = movement.created_at
            db.commit()
        except InsufficientStock as exc:
            db.rollback()
            logger.warning(
                "rejected %s of %s %s for product=%s club=%s: %s available",
                movement_type.value,
                quantity,
                unit.value,
                product_id,
                club_id,
                exc.available,
            )
            raise
        except Exception:
            db.rollback()
            raise

    db.refresh(record)
    db.refresh(movement)
    logger.info(
        "applied %s of %s %s for product=%s club=%s (sealed=%s portions=%s)",
        movement_type.value,
        quantity,
        unit.value,
        product_id,
        club_id,
        record.sealed,
        record.current_portions,
    )
    return MovementOutcome(record=record, movement=movement, created=lookup.created)


def rebuild_from_log(db: Session, product_id: int, club_id: int, *, repair: bool = False) -> RebuildReport:
    """Replay the movement log for a pair and compare it with the cache.

    Only a repair commits. Every other outcome rolls the session back so the
    row lock is released together with the key lock.
    """
    with stock_key_lock(product_id, club_id):
        repaired = False
        try:
            record = ledger.get_record(db, product_id, club_id, lock=True)
            history = movements.list_for(db, product_id, club_id=club_id, order="asc")
            expected = replay(history, record.portions_per_unit)
            cached = Balance.of(record)
            drift = expected.diff(cached)

            if drift:
                logger.warning("inventory drift for product=%s club=%s: %s", product_id, club_id, drift)
                if repair:
                    expected.store(record)
                    record.updated_at = datetime.utcnow()
                    db.commit()
                    repaired = True
        finally:
            if not repaired:
                db.rollback()

    return RebuildReport(
        product_id=product_id,
        club_id=club_id,
        movement_count=len(history),
        expected=expected,
        cached=cached,
        drift=drift,
        repaired=repaired,
    )
