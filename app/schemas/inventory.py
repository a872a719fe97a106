from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field, model_validator

from app.models.inventory import MovementType, MovementUnit, ProductForm
from app.models.user import SubscriptionPlan
from app.services.inventory import RecordStatus, StockStatus


class ClubCreate(BaseModel):
    name: str = Field(min_length=2, max_length=120)
    address: str | None = Field(default=None, max_length=255)
    monthly_goal: Decimal = Field(default=Decimal("0"), ge=0)


class ClubUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=2, max_length=120)
    address: str | None = Field(default=None, max_length=255)
    monthly_goal: Decimal | None = Field(default=None, ge=0)
    is_active: bool | None = None


class ClubOut(BaseModel):
    id: int
    owner_id: int
    name: str
    address: str | None
    monthly_goal: Decimal
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class ClubsOverviewOut(BaseModel):
    plan: SubscriptionPlan
    clubs_max: int
    employees_max: int
    clubs: list[ClubOut]


class ProductCreate(BaseModel):
    club_id: int
    form: ProductForm
    name: str = Field(min_length=1, max_length=160)
    brand: str | None = Field(default=None, max_length=120)
    category: str = Field(min_length=1, max_length=120)
    flavor: str | None = Field(default=None, max_length=120)
    portions: int | None = Field(default=None, ge=1)
    portion_size: str | None = Field(default=None, max_length=40)
    portion_price: Decimal | None = Field(default=None, ge=0)
    sale_price: Decimal | None = Field(default=None, ge=0)
    purchase_price: Decimal = Field(ge=0)
    image_url: str | None = None

    @model_validator(mode="after")
    def check_prices_for_form(self):
        if self.form in (ProductForm.SEALED, ProductForm.BOTH) and self.sale_price is None:
            raise ValueError("sale_price is required for sealed products")
        if self.form in (ProductForm.PREPARED, ProductForm.BOTH) and self.portion_price is None:
            raise ValueError("portion_price is required for prepared products")
        return self


class ProductUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=160)
    brand: str | None = Field(default=None, max_length=120)
    category: str | None = Field(default=None, min_length=1, max_length=120)
    flavor: str | None = Field(default=None, max_length=120)
    portion_size: str | None = Field(default=None, max_length=40)
    portion_price: Decimal | None = Field(default=None, ge=0)
    sale_price: Decimal | None = Field(default=None, ge=0)
    purchase_price: Decimal | None = Field(default=None, ge=0)
    image_url: str | None = None


class ProductOut(BaseModel):
    id: int
    club_id: int
    owner_id: int
    form: ProductForm
    name: str
    brand: str | None
    category: str
    flavor: str | None
    portions: int | None
    portion_size: str | None
    portion_price: Decimal | None
    sale_price: Decimal | None
    purchase_price: Decimal
    image_url: str | None
    archived: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class InventoryRecordOut(BaseModel):
    id: int
    product_id: int
    club_id: int
    sealed: int
    prep_units: int
    portions_per_unit: int
    current_portions: int
    portion_price: Decimal | None
    portion_size: str | None
    updated_at: datetime

    model_config = {"from_attributes": True}


class StockStatusOut(BaseModel):
    sealed: StockStatus | None
    preparation: StockStatus | None
    overall: StockStatus

    @classmethod
    def from_status(cls, status: RecordStatus) -> "StockStatusOut":
        return cls(sealed=status.sealed, preparation=status.preparation, overall=status.worst)


class InventoryItemOut(BaseModel):
    product: ProductOut
    record: InventoryRecordOut
    status: StockStatusOut
    ideal_stock: int


class RecordLookupRequest(BaseModel):
    product_id: int
    club_id: int


class RecordLookupOut(BaseModel):
    record: InventoryRecordOut
    created: bool


class ProductSearchOut(BaseModel):
    id: int
    name: str
    flavor: str | None
    form: ProductForm
    purchase_price: Decimal


class ExpenseSearchOut(BaseModel):
    id: int
    name: str
    flavor: str | None
    form: ProductForm
    purchase_price: Decimal
    sealed: int
    current_portions: int


class SaleSearchOut(BaseModel):
    id: int
    name: str
    flavor: str | None
    form: ProductForm
    sale_price: Decimal | None
    portion_price: Decimal | None
    sealed: int
    current_portions: int


class MovementCreate(BaseModel):
    # quantity is range-checked by the stock engine so callers get INVALID_QUANTITY
    product_id: int
    club_id: int
    type: MovementType
    unit: MovementUnit
    quantity: int
    description: str | None = Field(default=None, max_length=255)
    purchase_price: Decimal | None = Field(default=None, ge=0)


class MovementOut(BaseModel):
    id: int
    product_id: int
    club_id: int
    type: MovementType
    unit: MovementUnit
    quantity: int
    description: str | None
    actor_id: int
    created_at: datetime

    model_config = {"from_attributes": True}


class MovementResultOut(BaseModel):
    movement: MovementOut
    record: InventoryRecordOut
    record_created: bool
    expense_id: int | None = None


class StockAlertOut(BaseModel):
    product_id: int
    product_name: str
    club_id: int
    form: ProductForm
    sealed: int
    current_portions: int
    ideal_stock: int
    status: StockStatusOut


class RebuildRequest(BaseModel):
    product_id: int
    club_id: int
    repair: bool = False


class BalanceOut(BaseModel):
    sealed: int
    prep_units: int
    current_portions: int


class RebuildOut(BaseModel):
    product_id: int
    club_id: int
    movement_count: int
    expected: BalanceOut
    cached: BalanceOut
    drift: dict[str, list[int]]
    consistent: bool
    repaired: bool
