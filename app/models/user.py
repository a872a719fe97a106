from datetime import datetime
from enum import Enum

from sqlalchemy import Boolean, DateTime, Enum as SQLEnum, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from app.db.database import Base


class UserRole(str, Enum):
    OWNER = "owner"
    EMPLOYEE = "employee"


class SubscriptionPlan(str, Enum):
    TRIAL = "trial"
    BASIC = "basic"
    INTERMEDIATE = "intermediate"
    PREMIUM = "premium"
    CUSTOM = "custom"


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    email: Mapped[str] = mapped_column(String(320), unique=True, index=True, nullable=False)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[UserRole] = mapped_column(SQLEnum(UserRole), nullable=False, index=True)
    # Employees belong to an owner account and are bound to one club.
    owner_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        index=True,
        nullable=True,
    )
    club_id: Mapped[int | None] = mapped_column(
        ForeignKey("clubs.id", ondelete="SET NULL", use_alter=True, name="fk_users_club_id"),
        index=True,
        nullable=True,
    )
    plan: Mapped[SubscriptionPlan] = mapped_column(
        SQLEnum(SubscriptionPlan),
        default=SubscriptionPlan.TRIAL,
        nullable=False,
    )
    extra_clubs: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    extra_employees: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    ideal_stock: Mapped[int] = mapped_column(Integer, default=5, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

    @property
    def account_id(self) -> int:
        """Id of the owning account: the user itself for owners."""
        if self.role == UserRole.OWNER or self.owner_id is None:
            return self.id
        return self.owner_id
