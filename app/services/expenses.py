"""Expense recording, including purchases that bring stock in.

A purchase is two commits: the compra movement goes through the stock
engine first and the expense row is written after it. If the expense write
fails the stock stays credited and the error is raised to the caller; the
movement's description carries the amount so the cost can be re-entered.
"""

import logging
from datetime import datetime
from decimal import Decimal

from sqlalchemy.orm import Session

from app.models.inventory import MovementType, MovementUnit
from app.models.sales import Expense
from app.services.inventory import MissingField, MovementOutcome, apply_movement

logger = logging.getLogger(__name__)

PURCHASE_CATEGORY = "purchase"
PRODUCT_CATEGORY = "product"


def record_expense(
    db: Session,
    *,
    club_id: int,
    actor_id: int,
    category: str,
    amount: Decimal,
    description: str | None = None,
    product_id: int | None = None,
    incurred_at: datetime | None = None,
) -> Expense:
    expense = Expense(
        club_id=club_id,
        product_id=product_id,
        created_by_user_id=actor_id,
        category=category,
        amount=amount,
        description=description.strip() if description else None,
        incurred_at=incurred_at or datetime.utcnow(),
    )
    db.add(expense)
    db.commit()
    db.refresh(expense)
    return expense


def record_purchase_expense(
    db: Session,
    *,
    club_id: int,
    actor_id: int,
    amount: Decimal,
    product_id: int | None,
    quantity: int | None,
    unit: MovementUnit | None,
    description: str | None = None,
    incurred_at: datetime | None = None,
) -> tuple[Expense, MovementOutcome]:
    """Record a stock purchase: a compra movement first, then the expense.

    The two writes are separate commits. A failed expense write leaves the
    movement in place and re-raises.
    """
    missing = [
        name
        for name, value in (("product_id", product_id), ("quantity", quantity), ("unit", unit))
        if value is None
    ]
    if missing:
        raise MissingField(missing)

    outcome = apply_movement(
        db,
        product_id=product_id,
        club_id=club_id,
        movement_type=MovementType.PURCHASE,
        quantity=quantity,
        unit=unit,
        description=f"Purchase expense of {amount}",
        actor_id=actor_id,
    )
    try:
        expense = record_expense(
            db,
            club_id=club_id,
            actor_id=actor_id,
            category=PURCHASE_CATEGORY,
            amount=amount,
            description=description,
            product_id=product_id,
            incurred_at=incurred_at,
        )
    except Exception:
        logger.error(
            "movement %s committed but its purchase expense of %s was not recorded",
            outcome.movement.id,
            amount,
        )
        db.rollback()
        raise
    logger.info("purchase expense %s recorded with movement %s", expense.id, outcome.movement.id)
    return expense, outcome
