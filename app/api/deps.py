from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.security import decode_token
from app.db.database import get_db
from app.models.inventory import Club, Product
from app.models.user import User, UserRole
from app.services.inventory import StockError

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/token", auto_error=False)

ROLE_PERMISSIONS: dict[UserRole, set[str]] = {
    UserRole.OWNER: {
        "clubs:manage",
        "employees:manage",
        "inventory:manage",
        "inventory:view",
        "inventory:sell",
        "inventory:use",
        "expenses:manage",
        "clients:manage",
    },
    UserRole.EMPLOYEE: {"inventory:view", "inventory:sell", "inventory:use", "clients:manage"},
}


def get_current_user(
    token: str | None = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> User:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid authentication credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if not token:
        raise credentials_exception

    try:
        payload = decode_token(token)
    except JWTError:
        raise credentials_exception
    subject = payload.get("sub")
    if subject is None or payload.get("type") != "access":
        raise credentials_exception

    user = db.scalar(select(User).where(User.id == int(subject)))
    if not user:
        raise credentials_exception
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="User account is disabled")
    return user


def has_permission(user: User, permission: str) -> bool:
    return permission in ROLE_PERMISSIONS.get(user.role, set())


def require_permission(permission: str):
    def checker(current_user: User = Depends(get_current_user)) -> User:
        if not has_permission(current_user, permission):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Permission required: {permission}",
            )
        return current_user

    return checker


def require_owner(current_user: User = Depends(get_current_user)) -> User:
    if current_user.role != UserRole.OWNER:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Owner role required")
    return current_user


def get_club_or_404(db: Session, club_id: int) -> Club:
    club = db.get(Club, club_id)
    if not club:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Club not found")
    return club


def ensure_club_access(db: Session, user: User, club_id: int) -> Club:
    """Owners reach their own clubs; employees only the club they are bound to."""
    club = get_club_or_404(db, club_id)
    if user.role == UserRole.OWNER:
        allowed = club.owner_id == user.id
    else:
        allowed = user.club_id == club.id
    if not allowed:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="No access to this club")
    return club


def get_product_or_404(db: Session, product_id: int, club_id: int | None = None) -> Product:
    product = db.get(Product, product_id)
    if not product or (club_id is not None and product.club_id != club_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")
    return product


def account_ideal_stock(db: Session, user: User) -> int:
    owner = user if user.role == UserRole.OWNER else db.get(User, user.account_id)
    if not owner or not owner.ideal_stock:
        return settings.default_ideal_stock
    return owner.ideal_stock


def stock_http_error(exc: StockError) -> HTTPException:
    return HTTPException(status_code=exc.status_code, detail=exc.as_detail())
