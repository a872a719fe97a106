from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from app.api.deps import ensure_club_access, require_permission, stock_http_error
from app.db.database import get_db
from app.models.inventory import Product
from app.models.sales import Client, Sale
from app.models.user import User, UserRole
from app.schemas.sales import SaleCreate, SaleOut
from app.services.inventory import InvalidQuantity
from app.services.sales import SaleItemFailed, SaleLine, record_sale, resolve_price

router = APIRouter(prefix="/sales", tags=["Sales"])


def _build_lines(db: Session, payload: SaleCreate) -> list[SaleLine]:
    """Check every item before any stock is touched."""
    lines = []
    for group in payload.groups:
        for item in group.items:
            if isinstance(item.quantity, bool) or item.quantity <= 0:
                raise stock_http_error(InvalidQuantity(item.quantity))
            product = db.get(Product, item.product_id)
            if not product or product.club_id != payload.club_id:
                raise HTTPException(
                    status_code=status.HTTP_404_NOT_FOUND,
                    detail=f"Product {item.product_id} not found in this club",
                )
            if product.archived:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail=f"Product {product.id} is archived",
                )
            unit_price, custom = resolve_price(product, item.unit, item.unit_price)
            if unit_price is None:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail=f"Product {product.id} has no {item.unit.value} price",
                )
            lines.append(
                SaleLine(
                    group_name=group.name.strip(),
                    product_id=product.id,
                    unit=item.unit,
                    quantity=item.quantity,
                    unit_price=unit_price,
                    custom_price=custom,
                )
            )
    return lines


@router.post("", response_model=SaleOut, status_code=status.HTTP_201_CREATED)
def create_sale(
    payload: SaleCreate,
    current_user: User = Depends(require_permission("inventory:sell")),
    db: Session = Depends(get_db),
):
    club = ensure_club_access(db, current_user, payload.club_id)
    if not club.is_active:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cannot create sale for inactive club")

    client = None
    if payload.client_id is not None:
        client = db.get(Client, payload.client_id)
        if not client or client.club_id != club.id:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Client not found")

    lines = _build_lines(db, payload)
    try:
        return record_sale(db, club_id=club.id, seller=current_user, lines=lines, client=client)
    except SaleItemFailed as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.as_detail()) from exc


@router.get("", response_model=list[SaleOut])
def list_sales(
    club_id: int,
    date_from: datetime | None = Query(default=None),
    date_to: datetime | None = Query(default=None),
    current_user: User = Depends(require_permission("inventory:view")),
    db: Session = Depends(get_db),
):
    ensure_club_access(db, current_user, club_id)
    query = (
        select(Sale)
        .options(selectinload(Sale.items))
        .where(Sale.club_id == club_id)
        .order_by(Sale.created_at.desc(), Sale.id.desc())
    )
    if current_user.role == UserRole.EMPLOYEE:
        query = query.where(Sale.employee_id == current_user.id)
    if date_from is not None:
        query = query.where(Sale.created_at >= date_from)
    if date_to is not None:
        query = query.where(Sale.created_at <= date_to)
    return list(db.scalars(query).all())


@router.get("/{sale_id}", response_model=SaleOut)
def get_sale(
    sale_id: int,
    current_user: User = Depends(require_permission("inventory:view")),
    db: Session = Depends(get_db),
):
    sale = db.get(Sale, sale_id)
    if not sale:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Sale not found")
    ensure_club_access(db, current_user, sale.club_id)
    return sale
