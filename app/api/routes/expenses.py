from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.api.deps import ensure_club_access, get_product_or_404, require_permission, stock_http_error
from app.db.database import get_db
from app.models.sales import Expense
from app.models.user import User
from app.schemas.sales import ExpenseCreate, ExpenseOut
from app.services.expenses import PURCHASE_CATEGORY, record_expense, record_purchase_expense
from app.services.inventory import StockError

router = APIRouter(prefix="/expenses", tags=["Expenses"])


@router.post("", response_model=ExpenseOut, status_code=status.HTTP_201_CREATED)
def create_expense(
    payload: ExpenseCreate,
    current_user: User = Depends(require_permission("expenses:manage")),
    db: Session = Depends(get_db),
):
    club = ensure_club_access(db, current_user, payload.club_id)
    if not club.is_active:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cannot record expense for inactive club")
    if payload.product_id is not None:
        get_product_or_404(db, payload.product_id, club_id=club.id)

    if payload.category != PURCHASE_CATEGORY:
        return record_expense(
            db,
            club_id=club.id,
            actor_id=current_user.id,
            category=payload.category,
            amount=payload.amount,
            description=payload.description,
            product_id=payload.product_id,
            incurred_at=payload.incurred_at,
        )

    try:
        expense, _ = record_purchase_expense(
            db,
            club_id=club.id,
            actor_id=current_user.id,
            amount=payload.amount,
            product_id=payload.product_id,
            quantity=payload.quantity,
            unit=payload.unit,
            description=payload.description,
            incurred_at=payload.incurred_at,
        )
    except StockError as exc:
        raise stock_http_error(exc) from exc
    return expense


@router.get("", response_model=list[ExpenseOut])
def list_expenses(
    club_id: int,
    category: str | None = None,
    date_from: datetime | None = Query(default=None),
    date_to: datetime | None = Query(default=None),
    current_user: User = Depends(require_permission("expenses:manage")),
    db: Session = Depends(get_db),
):
    ensure_club_access(db, current_user, club_id)
    query = select(Expense).where(Expense.club_id == club_id).order_by(Expense.incurred_at.desc())
    if category is not None and category.strip():
        query = query.where(func.lower(Expense.category) == category.strip().lower())
    if date_from is not None:
        query = query.where(Expense.incurred_at >= date_from)
    if date_to is not None:
        query = query.where(Expense.incurred_at <= date_to)
    return list(db.scalars(query).all())
