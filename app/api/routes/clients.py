from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from app.api.deps import ensure_club_access, require_permission
from app.db.database import get_db
from app.models.sales import Client, Sale
from app.models.user import User
from app.schemas.sales import ClientCreate, ClientDetailOut, ClientOut, ClientUpdate, SaleOut

router = APIRouter(prefix="/clients", tags=["Clients"])


@router.post("", response_model=ClientOut, status_code=status.HTTP_201_CREATED)
def create_client(
    payload: ClientCreate,
    current_user: User = Depends(require_permission("clients:manage")),
    db: Session = Depends(get_db),
):
    ensure_club_access(db, current_user, payload.club_id)
    client = Client(
        club_id=payload.club_id,
        name=payload.name.strip(),
        email=payload.email.strip().lower() if payload.email else None,
        phone=payload.phone.strip() if payload.phone else None,
        kind=payload.kind,
    )
    db.add(client)
    db.commit()
    db.refresh(client)
    return client


@router.get("", response_model=list[ClientOut])
def list_clients(
    club_id: int,
    name: str | None = Query(default=None),
    current_user: User = Depends(require_permission("clients:manage")),
    db: Session = Depends(get_db),
):
    ensure_club_access(db, current_user, club_id)
    query = select(Client).where(Client.club_id == club_id).order_by(Client.name.asc())
    if name is not None and name.strip():
        query = query.where(Client.name.ilike(f"%{name.strip()}%"))
    return list(db.scalars(query).all())


@router.get("/{client_id}", response_model=ClientDetailOut)
def get_client(
    client_id: int,
    club_id: int,
    date_from: datetime | None = Query(default=None),
    date_to: datetime | None = Query(default=None),
    current_user: User = Depends(require_permission("clients:manage")),
    db: Session = Depends(get_db),
):
    """A client with their purchase history in the club, newest first."""
    ensure_club_access(db, current_user, club_id)
    client = db.get(Client, client_id)
    if not client or client.club_id != club_id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Client not found")

    query = (
        select(Sale)
        .options(selectinload(Sale.items))
        .where(Sale.club_id == club_id, Sale.client_id == client.id)
        .order_by(Sale.created_at.desc(), Sale.id.desc())
    )
    if date_from is not None:
        query = query.where(Sale.created_at >= date_from)
    if date_to is not None:
        query = query.where(Sale.created_at <= date_to)
    return ClientDetailOut(
        client=ClientOut.model_validate(client),
        sales=[SaleOut.model_validate(sale) for sale in db.scalars(query).all()],
    )


@router.patch("/{client_id}", response_model=ClientOut)
def update_client(
    client_id: int,
    payload: ClientUpdate,
    current_user: User = Depends(require_permission("clients:manage")),
    db: Session = Depends(get_db),
):
    client = db.get(Client, client_id)
    if not client:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Client not found")
    ensure_club_access(db, current_user, client.club_id)

    if payload.name is not None:
        client.name = payload.name.strip()
    if payload.email is not None:
        client.email = payload.email.strip().lower() or None
    if payload.phone is not None:
        client.phone = payload.phone.strip() or None
    if payload.kind is not None:
        client.kind = payload.kind
    db.commit()
    db.refresh(client)
    return client
