from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.api.deps import (
    account_ideal_stock,
    ensure_club_access,
    get_product_or_404,
    require_permission,
    stock_http_error,
)
from app.db.database import get_db
from app.models.inventory import InventoryRecord, Product
from app.models.user import User
from app.schemas.inventory import (
    ExpenseSearchOut,
    InventoryItemOut,
    InventoryRecordOut,
    ProductCreate,
    ProductOut,
    ProductSearchOut,
    ProductUpdate,
    SaleSearchOut,
    StockStatusOut,
)
from app.services.inventory import StockError, get_or_create, get_record, record_status

router = APIRouter(prefix="/products", tags=["Products"])

SEARCH_LIMIT = 10


def _escape_like(query: str) -> str:
    return query.strip().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _prefix_pattern(query: str) -> str:
    return f"{_escape_like(query)}%"


@router.post("", response_model=ProductOut, status_code=status.HTTP_201_CREATED)
def create_product(
    payload: ProductCreate,
    current_user: User = Depends(require_permission("inventory:manage")),
    db: Session = Depends(get_db),
):
    club = ensure_club_access(db, current_user, payload.club_id)
    if not club.is_active:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cannot create product for inactive club")

    product = Product(
        club_id=club.id,
        owner_id=current_user.account_id,
        form=payload.form,
        name=payload.name.strip(),
        brand=payload.brand,
        category=payload.category.strip(),
        flavor=payload.flavor,
        portions=payload.portions,
        portion_size=payload.portion_size,
        portion_price=payload.portion_price,
        sale_price=payload.sale_price,
        purchase_price=payload.purchase_price,
        image_url=payload.image_url,
    )
    db.add(product)
    db.flush()
    try:
        get_or_create(db, product.id, club.id)
    except StockError as exc:
        db.rollback()
        raise stock_http_error(exc) from exc
    db.commit()
    db.refresh(product)
    return product


@router.get("", response_model=list[ProductOut])
def list_products(
    club_id: int,
    include_archived: bool = False,
    current_user: User = Depends(require_permission("inventory:view")),
    db: Session = Depends(get_db),
):
    ensure_club_access(db, current_user, club_id)
    query = select(Product).where(Product.club_id == club_id).order_by(Product.name.asc())
    if not include_archived:
        query = query.where(Product.archived.is_(False))
    return list(db.scalars(query).all())


@router.get("/search", response_model=list[ProductSearchOut])
def search_products(
    club_id: int,
    query: str = Query(min_length=1),
    current_user: User = Depends(require_permission("inventory:view")),
    db: Session = Depends(get_db),
):
    ensure_club_access(db, current_user, club_id)
    if not query.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Search query must not be blank")
    products = db.scalars(
        select(Product)
        .where(
            Product.club_id == club_id,
            Product.archived.is_(False),
            Product.name.ilike(_prefix_pattern(query), escape="\\"),
        )
        .order_by(Product.name.asc())
        .limit(SEARCH_LIMIT)
    ).all()
    return [
        ProductSearchOut(
            id=product.id,
            name=product.name,
            flavor=product.flavor,
            form=product.form,
            purchase_price=product.purchase_price,
        )
        for product in products
    ]


@router.get("/sales-search", response_model=list[SaleSearchOut])
def search_products_for_sale(
    club_id: int,
    query: str = Query(min_length=1),
    current_user: User = Depends(require_permission("inventory:sell")),
    db: Session = Depends(get_db),
):
    ensure_club_access(db, current_user, club_id)
    rows = db.execute(
        select(Product, InventoryRecord)
        .outerjoin(
            InventoryRecord,
            (InventoryRecord.product_id == Product.id) & (InventoryRecord.club_id == club_id),
        )
        .where(
            Product.club_id == club_id,
            Product.archived.is_(False),
            Product.name.ilike(_prefix_pattern(query), escape="\\"),
        )
        .order_by(Product.name.asc())
        .limit(SEARCH_LIMIT)
    ).all()
    return [
        SaleSearchOut(
            id=product.id,
            name=product.name,
            flavor=product.flavor,
            form=product.form,
            sale_price=product.sale_price,
            portion_price=product.portion_price,
            sealed=record.sealed if record else 0,
            current_portions=record.current_portions if record else 0,
        )
        for product, record in rows
    ]


@router.get("/search/expenses", response_model=list[ExpenseSearchOut])
def search_products_for_expense(
    club_id: int,
    query: str | None = Query(default=None),
    current_user: User = Depends(require_permission("expenses:manage")),
    db: Session = Depends(get_db),
):
    """Name lookup for the purchase form; a blank query lists the catalog."""
    ensure_club_access(db, current_user, club_id)
    statement = (
        select(Product, InventoryRecord)
        .outerjoin(
            InventoryRecord,
            (InventoryRecord.product_id == Product.id) & (InventoryRecord.club_id == club_id),
        )
        .where(Product.club_id == club_id, Product.archived.is_(False))
        .order_by(Product.name.asc())
        .limit(SEARCH_LIMIT)
    )
    if query is not None and query.strip():
        statement = statement.where(Product.name.ilike(f"%{_escape_like(query)}%", escape="\\"))
    return [
        ExpenseSearchOut(
            id=product.id,
            name=product.name,
            flavor=product.flavor,
            form=product.form,
            purchase_price=product.purchase_price,
            sealed=record.sealed if record else 0,
            current_portions=record.current_portions if record else 0,
        )
        for product, record in db.execute(statement).all()
    ]


@router.get("/{product_id}", response_model=InventoryItemOut)
def get_product(
    product_id: int,
    current_user: User = Depends(require_permission("inventory:view")),
    db: Session = Depends(get_db),
):
    product = get_product_or_404(db, product_id)
    ensure_club_access(db, current_user, product.club_id)
    try:
        record = get_record(db, product.id, product.club_id)
    except StockError as exc:
        raise stock_http_error(exc) from exc
    ideal_stock = account_ideal_stock(db, current_user)
    return InventoryItemOut(
        product=ProductOut.model_validate(product),
        record=InventoryRecordOut.model_validate(record),
        status=StockStatusOut.from_status(record_status(record, product.form, ideal_stock)),
        ideal_stock=ideal_stock,
    )


@router.patch("/{product_id}", response_model=ProductOut)
def update_product(
    product_id: int,
    payload: ProductUpdate,
    current_user: User = Depends(require_permission("inventory:manage")),
    db: Session = Depends(get_db),
):
    product = get_product_or_404(db, product_id)
    ensure_club_access(db, current_user, product.club_id)

    # portions is fixed once the inventory record has been seeded from it
    for field, value in payload.model_dump(exclude_unset=True).items():
        if isinstance(value, str):
            value = value.strip() or None
        setattr(product, field, value)
    if not product.name or not product.category:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Name and category must not be blank")
    if product.purchase_price is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="purchase_price is required")

    db.commit()
    db.refresh(product)
    return product


@router.delete("/{product_id}", response_model=ProductOut)
def archive_product(
    product_id: int,
    current_user: User = Depends(require_permission("inventory:manage")),
    db: Session = Depends(get_db),
):
    product = get_product_or_404(db, product_id)
    ensure_club_access(db, current_user, product.club_id)
    product.archived = True
    db.commit()
    db.refresh(product)
    return product
