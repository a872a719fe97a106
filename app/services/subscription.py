from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.models.inventory import Club
from app.models.user import SubscriptionPlan, User, UserRole

PLAN_LIMITS: dict[SubscriptionPlan, dict[str, int]] = {
    SubscriptionPlan.TRIAL: {"clubs": 1, "employees": 2},
    SubscriptionPlan.BASIC: {"clubs": 1, "employees": 2},
    SubscriptionPlan.INTERMEDIATE: {"clubs": 2, "employees": 4},
    SubscriptionPlan.PREMIUM: {"clubs": 3, "employees": 10},
    SubscriptionPlan.CUSTOM: {"clubs": 1, "employees": 2},
}


def clubs_max(owner: User) -> int:
    limit = PLAN_LIMITS[owner.plan]["clubs"]
    if owner.plan == SubscriptionPlan.CUSTOM:
        limit += owner.extra_clubs
    return limit


def employees_max(owner: User) -> int:
    limit = PLAN_LIMITS[owner.plan]["employees"]
    if owner.plan == SubscriptionPlan.CUSTOM:
        limit += owner.extra_employees
    return limit


def count_clubs(db: Session, owner_id: int) -> int:
    return db.scalar(select(func.count(Club.id)).where(Club.owner_id == owner_id)) or 0


def count_employees(db: Session, owner_id: int) -> int:
    return (
        db.scalar(
            select(func.count(User.id)).where(
                User.owner_id == owner_id,
                User.role == UserRole.EMPLOYEE,
            )
        )
        or 0
    )


def can_add_clubs(db: Session, owner: User, count: int = 1) -> bool:
    """Does the owner's plan allow ``count`` more clubs?"""
    return count_clubs(db, owner.id) + count <= clubs_max(owner)


def can_add_employees(db: Session, owner: User, count: int = 1) -> bool:
    return count_employees(db, owner.id) + count <= employees_max(owner)
