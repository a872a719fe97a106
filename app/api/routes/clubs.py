from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.api.deps import ensure_club_access, require_permission
from app.db.database import get_db
from app.models.inventory import Club
from app.models.user import User, UserRole
from app.schemas.inventory import ClubCreate, ClubOut, ClubsOverviewOut, ClubUpdate
from app.services.subscription import can_add_clubs, clubs_max, employees_max

router = APIRouter(prefix="/clubs", tags=["Clubs"])


@router.post("", response_model=ClubOut, status_code=status.HTTP_201_CREATED)
def create_club(
    payload: ClubCreate,
    current_user: User = Depends(require_permission("clubs:manage")),
    db: Session = Depends(get_db),
):
    if not can_add_clubs(db, current_user):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Club limit reached for the current plan",
        )
    club = Club(
        owner_id=current_user.id,
        name=payload.name.strip(),
        address=payload.address.strip() if payload.address else None,
        monthly_goal=payload.monthly_goal,
    )
    db.add(club)
    db.commit()
    db.refresh(club)
    return club


def _visible_clubs(db: Session, user: User) -> list[Club]:
    if user.role == UserRole.OWNER:
        return list(db.scalars(select(Club).where(Club.owner_id == user.id).order_by(Club.name.asc())).all())
    if user.club_id is None:
        return []
    club = db.get(Club, user.club_id)
    return [club] if club else []


@router.get("", response_model=list[ClubOut])
def list_clubs(
    current_user: User = Depends(require_permission("inventory:view")),
    db: Session = Depends(get_db),
):
    return _visible_clubs(db, current_user)


@router.get("/me", response_model=ClubsOverviewOut)
def my_clubs(
    current_user: User = Depends(require_permission("inventory:view")),
    db: Session = Depends(get_db),
):
    """Plan limits of the account together with the clubs the caller can reach."""
    owner = current_user if current_user.role == UserRole.OWNER else db.get(User, current_user.account_id)
    if not owner:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Account owner not found")
    return ClubsOverviewOut(
        plan=owner.plan,
        clubs_max=clubs_max(owner),
        employees_max=employees_max(owner),
        clubs=[ClubOut.model_validate(club) for club in _visible_clubs(db, current_user)],
    )


@router.get("/{club_id}", response_model=ClubOut)
def get_club(
    club_id: int,
    current_user: User = Depends(require_permission("inventory:view")),
    db: Session = Depends(get_db),
):
    return ensure_club_access(db, current_user, club_id)


@router.patch("/{club_id}", response_model=ClubOut)
def update_club(
    club_id: int,
    payload: ClubUpdate,
    current_user: User = Depends(require_permission("clubs:manage")),
    db: Session = Depends(get_db),
):
    club = ensure_club_access(db, current_user, club_id)
    if payload.name is not None:
        club.name = payload.name.strip()
    if payload.address is not None:
        club.address = payload.address.strip() or None
    if payload.monthly_goal is not None:
        club.monthly_goal = payload.monthly_goal
    if payload.is_active is not None:
        club.is_active = payload.is_active
    db.commit()
    db.refresh(club)
    return club
