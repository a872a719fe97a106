from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field, model_validator

from app.models.inventory import MovementUnit
from app.models.sales import ClientKind


class ClientCreate(BaseModel):
    club_id: int
    name: str = Field(min_length=1, max_length=160)
    email: str | None = Field(default=None, max_length=320)
    phone: str | None = Field(default=None, max_length=40)
    kind: ClientKind = ClientKind.REGULAR


class ClientUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=160)
    email: str | None = Field(default=None, max_length=320)
    phone: str | None = Field(default=None, max_length=40)
    kind: ClientKind | None = None


class ClientOut(BaseModel):
    id: int
    club_id: int
    name: str
    email: str | None
    phone: str | None
    kind: ClientKind
    total_spent: Decimal
    visit_count: int
    last_purchase_at: datetime | None
    created_at: datetime

    model_config = {"from_attributes": True}


class SaleItemIn(BaseModel):
    product_id: int
    unit: MovementUnit
    quantity: int
    unit_price: Decimal | None = Field(default=None, ge=0)


class SaleGroupIn(BaseModel):
    name: str = Field(default="General", min_length=1, max_length=120)
    items: list[SaleItemIn] = Field(min_length=1)


class SaleCreate(BaseModel):
    club_id: int
    client_id: int | None = None
    groups: list[SaleGroupIn] = Field(min_length=1)


class SaleItemOut(BaseModel):
    id: int
    group_name: str
    product_id: int
    unit: MovementUnit
    quantity: int
    unit_price: Decimal
    line_total: Decimal
    custom_price: bool

    model_config = {"from_attributes": True}


class SaleOut(BaseModel):
    id: int
    club_id: int
    employee_id: int | None
    client_id: int | None
    total: Decimal
    created_at: datetime
    items: list[SaleItemOut]

    model_config = {"from_attributes": True}


class ExpenseCreate(BaseModel):
    club_id: int
    category: str = Field(min_length=1, max_length=120)
    amount: Decimal = Field(gt=0)
    description: str | None = Field(default=None, max_length=255)
    incurred_at: datetime | None = None
    product_id: int | None = None
    quantity: int | None = None
    unit: MovementUnit | None = None

    @model_validator(mode="after")
    def normalize_category(self):
        self.category = self.category.strip().lower()
        return self


class ExpenseOut(BaseModel):
    id: int
    club_id: int
    product_id: int | None
    created_by_user_id: int | None
    category: str
    amount: Decimal
    description: str | None
    incurred_at: datetime

    model_config = {"from_attributes": True}


class ClientDetailOut(BaseModel):
    client: ClientOut
    sales: list[SaleOut]
