import logging
from datetime import datetime
from decimal import Decimal
from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.api.deps import (
    account_ideal_stock,
    ensure_club_access,
    has_permission,
    require_permission,
    stock_http_error,
)
from app.db.database import get_db
from app.models.inventory import InventoryRecord, MovementType, Product
from app.models.user import User
from app.schemas.inventory import (
    BalanceOut,
    InventoryItemOut,
    InventoryRecordOut,
    MovementCreate,
    MovementOut,
    MovementResultOut,
    ProductOut,
    RebuildOut,
    RebuildRequest,
    RecordLookupOut,
    RecordLookupRequest,
    StockAlertOut,
    StockStatusOut,
)
from app.services.expenses import PRODUCT_CATEGORY, record_expense
from app.services.inventory import (
    Balance,
    StockError,
    StockStatus,
    apply_movement,
    get_or_create,
    get_record,
    list_for,
    rebuild_from_log,
    record_status,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/inventory", tags=["Inventory"])

MOVEMENT_PERMISSIONS: dict[MovementType, str] = {
    MovementType.SALE: "inventory:sell",
    MovementType.USAGE: "inventory:use",
    MovementType.PURCHASE: "inventory:manage",
    MovementType.ADJUSTMENT: "inventory:manage",
}


def _ensure_product_in_account(db: Session, current_user: User, product_id: int) -> Product | None:
    """Hide other accounts' products; a missing product is left to the ledger to report."""
    product = db.get(Product, product_id)
    if product and product.owner_id != current_user.account_id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")
    return product


def _club_rows(db: Session, club_id: int):
    return db.execute(
        select(InventoryRecord, Product)
        .join(Product, Product.id == InventoryRecord.product_id)
        .where(InventoryRecord.club_id == club_id, Product.archived.is_(False))
        .order_by(Product.name.asc())
    ).all()


def _balance_out(balance: Balance) -> BalanceOut:
    return BalanceOut(
        sealed=balance.sealed,
        prep_units=balance.prep_units,
        current_portions=balance.current_portions,
    )


@router.get("", response_model=list[InventoryItemOut])
def list_inventory(
    club_id: int,
    current_user: User = Depends(require_permission("inventory:view")),
    db: Session = Depends(get_db),
):
    ensure_club_access(db, current_user, club_id)
    ideal_stock = account_ideal_stock(db, current_user)
    return [
        InventoryItemOut(
            product=ProductOut.model_validate(product),
            record=InventoryRecordOut.model_validate(record),
            status=StockStatusOut.from_status(record_status(record, product.form, ideal_stock)),
            ideal_stock=ideal_stock,
        )
        for record, product in _club_rows(db, club_id)
    ]


@router.post("/records", response_model=RecordLookupOut)
def get_or_create_record(
    payload: RecordLookupRequest,
    current_user: User = Depends(require_permission("inventory:manage")),
    db: Session = Depends(get_db),
):
    ensure_club_access(db, current_user, payload.club_id)
    _ensure_product_in_account(db, current_user, payload.product_id)
    try:
        lookup = get_or_create(db, payload.product_id, payload.club_id)
    except StockError as exc:
        db.rollback()
        raise stock_http_error(exc) from exc
    if lookup.created:
        db.commit()
        db.refresh(lookup.record)
    return RecordLookupOut(record=InventoryRecordOut.model_validate(lookup.record), created=lookup.created)


@router.get("/records/{product_id}", response_model=InventoryItemOut)
def read_record(
    product_id: int,
    club_id: int,
    current_user: User = Depends(require_permission("inventory:view")),
    db: Session = Depends(get_db),
):
    ensure_club_access(db, current_user, club_id)
    product = _ensure_product_in_account(db, current_user, product_id)
    try:
        record = get_record(db, product_id, club_id)
    except StockError as exc:
        raise stock_http_error(exc) from exc
    ideal_stock = account_ideal_stock(db, current_user)
    return InventoryItemOut(
        product=ProductOut.model_validate(product),
        record=InventoryRecordOut.model_validate(record),
        status=StockStatusOut.from_status(record_status(record, product.form, ideal_stock)),
        ideal_stock=ideal_stock,
    )


@router.post("/movements", response_model=MovementResultOut, status_code=status.HTTP_201_CREATED)
def create_movement(
    payload: MovementCreate,
    current_user: User = Depends(require_permission("inventory:view")),
    db: Session = Depends(get_db),
):
    permission = MOVEMENT_PERMISSIONS[payload.type]
    if not has_permission(current_user, permission):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=f"Permission required: {permission}")
    if payload.purchase_price is not None and payload.type != MovementType.PURCHASE:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="purchase_price is only accepted on purchases",
        )
    ensure_club_access(db, current_user, payload.club_id)
    product = _ensure_product_in_account(db, current_user, payload.product_id)
    if product and product.archived and payload.type == MovementType.SALE:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cannot sell an archived product")

    try:
        outcome = apply_movement(
            db,
            product_id=payload.product_id,
            club_id=payload.club_id,
            movement_type=payload.type,
            quantity=payload.quantity,
            unit=payload.unit,
            description=payload.description,
            actor_id=current_user.id,
        )
    except StockError as exc:
        raise stock_http_error(exc) from exc

    # The movement is already committed; the expense is a second commit.
    expense_id = None
    if payload.purchase_price is not None and payload.purchase_price > 0:
        expense = record_expense(
            db,
            club_id=payload.club_id,
            actor_id=current_user.id,
            category=PRODUCT_CATEGORY,
            amount=Decimal(payload.purchase_price) * payload.quantity,
            description=payload.description or f"Stock purchase of product {payload.product_id}",
            product_id=payload.product_id,
        )
        expense_id = expense.id

    return MovementResultOut(
        movement=MovementOut.model_validate(outcome.movement),
        record=InventoryRecordOut.model_validate(outcome.record),
        record_created=outcome.created,
        expense_id=expense_id,
    )


@router.get("/movements", response_model=list[MovementOut])
def list_movements(
    product_id: int,
    club_id: int | None = None,
    date_from: datetime | None = Query(default=None),
    date_to: datetime | None = Query(default=None),
    order: Literal["asc", "desc"] = "desc",
    current_user: User = Depends(require_permission("inventory:view")),
    db: Session = Depends(get_db),
):
    if club_id is not None:
        ensure_club_access(db, current_user, club_id)
    elif current_user.club_id is not None and not has_permission(current_user, "inventory:manage"):
        club_id = current_user.club_id
    product = _ensure_product_in_account(db, current_user, product_id)
    if not product:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")
    return list_for(db, product_id, club_id=club_id, date_from=date_from, date_to=date_to, order=order)


@router.get("/alerts", response_model=list[StockAlertOut])
def stock_alerts(
    club_id: int,
    current_user: User = Depends(require_permission("inventory:view")),
    db: Session = Depends(get_db),
):
    ensure_club_access(db, current_user, club_id)
    ideal_stock = account_ideal_stock(db, current_user)
    alerts = []
    for record, product in _club_rows(db, club_id):
        stock_status = record_status(record, product.form, ideal_stock)
        if stock_status.worst == StockStatus.NORMAL:
            continue
        alerts.append(
            StockAlertOut(
                product_id=product.id,
                product_name=product.name,
                club_id=club_id,
                form=product.form,
                sealed=record.sealed,
                current_portions=record.current_portions,
                ideal_stock=ideal_stock,
                status=StockStatusOut.from_status(stock_status),
            )
        )
    alerts.sort(key=lambda alert: (alert.status.overall != StockStatus.CRITICAL, alert.product_name.lower()))
    return alerts


@router.post("/rebuild", response_model=RebuildOut)
def rebuild_record(
    payload: RebuildRequest,
    current_user: User = Depends(require_permission("inventory:manage")),
    db: Session = Depends(get_db),
):
    ensure_club_access(db, current_user, payload.club_id)
    _ensure_product_in_account(db, current_user, payload.product_id)
    try:
        report = rebuild_from_log(db, payload.product_id, payload.club_id, repair=payload.repair)
    except StockError as exc:
        raise stock_http_error(exc) from exc
    if report.repaired:
        logger.info(
            "inventory record product=%s club=%s repaired by user=%s",
            payload.product_id,
            payload.club_id,
            current_user.id,
        )
    return RebuildOut(
        product_id=report.product_id,
        club_id=report.club_id,
        movement_count=report.movement_count,
        expected=_balance_out(report.expected),
        cached=_balance_out(report.cached),
        drift={name: list(values) for name, values in report.drift.items()},
        consistent=report.consistent,
        repaired=report.repaired,
    )
