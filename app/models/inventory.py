from datetime import datetime
from decimal import Decimal
from enum import Enum

from sqlalchemy import Boolean, DateTime, Enum as SQLEnum, ForeignKey, Integer, Numeric, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from app.db.database import Base


class ProductForm(str, Enum):
    SEALED = "sealed"
    PREPARED = "prepared"
    BOTH = "both"


class MovementType(str, Enum):
    SALE = "venta"
    USAGE = "uso"
    PURCHASE = "compra"
    ADJUSTMENT = "ajuste"


class MovementUnit(str, Enum):
    SEALED = "sealed"
    PORTION = "portion"


def _stored_by_value(enum_cls: type[Enum], name: str) -> SQLEnum:
    return SQLEnum(enum_cls, name=name, values_callable=lambda members: [m.value for m in members])


class Club(Base):
    __tablename__ = "clubs"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    owner_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    name: Mapped[str] = mapped_column(String(120), index=True, nullable=False)
    address: Mapped[str | None] = mapped_column(String(255), nullable=True)
    monthly_goal: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=Decimal("0"), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)


class Product(Base):
    __tablename__ = "products"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    club_id: Mapped[int] = mapped_column(ForeignKey("clubs.id", ondelete="CASCADE"), index=True, nullable=False)
    owner_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    form: Mapped[ProductForm] = mapped_column(_stored_by_value(ProductForm, "product_form"), nullable=False)
    name: Mapped[str] = mapped_column(String(160), index=True, nullable=False)
    brand: Mapped[str | None] = mapped_column(String(120), nullable=True)
    category: Mapped[str] = mapped_column(String(120), nullable=False)
    flavor: Mapped[str | None] = mapped_column(String(120), nullable=True)
    portions: Mapped[int | None] = mapped_column(Integer, nullable=True)
    portion_size: Mapped[str | None] = mapped_column(String(40), nullable=True)
    portion_price: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    sale_price: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    purchase_price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    image_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    archived: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)


class InventoryRecord(Base):
    __tablename__ = "inventory_records"
    __table_args__ = (UniqueConstraint("product_id", "club_id", name="uq_inventory_records_product_club"),)

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    product_id: Mapped[int] = mapped_column(ForeignKey("products.id", ondelete="CASCADE"), index=True, nullable=False)
    club_id: Mapped[int] = mapped_column(ForeignKey("clubs.id", ondelete="CASCADE"), index=True, nullable=False)
    sealed: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    # Preparation sub-record: open containers and the portions left across them.
    prep_units: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    portions_per_unit: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    current_portions: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    portion_price: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    portion_size: Mapped[str | None] = mapped_column(String(40), nullable=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)


class Movement(Base):
    __tablename__ = "movements"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    product_id: Mapped[int] = mapped_column(ForeignKey("products.id", ondelete="CASCADE"), index=True, nullable=False)
    club_id: Mapped[int] = mapped_column(ForeignKey("clubs.id", ondelete="CASCADE"), index=True, nullable=False)
    type: Mapped[MovementType] = mapped_column(_stored_by_value(MovementType, "movement_type"), nullable=False)
    unit: Mapped[MovementUnit] = mapped_column(_stored_by_value(MovementUnit, "movement_unit"), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    description: Mapped[str | None] = mapped_column(String(255), nullable=True)
    actor_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False, index=True)
