from datetime import datetime
from typing import Literal

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.inventory import Movement
from app.services.inventory.errors import InvalidQuantity, MissingField

REQUIRED_FIELDS = ("product_id", "club_id", "type", "unit", "actor_id")


def validate_movement(values: dict) -> None:
    """Reject a movement request before anything is written."""
    missing = [name for name in (*REQUIRED_FIELDS, "quantity") if values.get(name) is None]
    if missing:
        raise MissingField(missing)
    quantity = values["quantity"]
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise InvalidQuantity(quantity)


def append(db: Session, entry: Movement) -> Movement:
    validate_movement(
        {
            "product_id": entry.product_id,
            "club_id": entry.club_id,
            "type": entry.type,
            "unit": entry.unit,
            "actor_id": entry.actor_id,
            "quantity": entry.quantity,
        }
    )
    if entry.created_at is None:
        entry.created_at = datetime.utcnow()
    db.add(entry)
    return entry


def list_for(
    db: Session,
    product_id: int,
    *,
    club_id: int | None = None,
    date_from: datetime | None = None,
    date_to: datetime | None = None,
    order: Literal["asc", "desc"] = "desc",
) -> list[Movement]:
    query = select(Movement).where(Movement.product_id == product_id)
    if club_id is not None:
        query = query.where(Movement.club_id == club_id)
    if date_from is not None:
        query = query.where(Movement.created_at >= date_from)
    if date_to is not None:
        query = query.where(Movement.created_at <= date_to)
    if order == "asc":
        query = query.order_by(Movement.created_at.asc(), Movement.id.asc())
    else:
        query = query.order_by(Movement.created_at.desc(), Movement.id.desc())
    return list(db.scalars(query).all())
