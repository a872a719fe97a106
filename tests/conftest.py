"""Shared fixtures: an in-memory database, an API client and model factories."""

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from decimal import Decimal
from itertools import count

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.security import create_access_token, hash_password
from app.db.database import Base, get_db
from app.main import app
from app.models import Club, Product, User
from app.models.inventory import ProductForm
from app.models.user import SubscriptionPlan, UserRole

PASSWORD = "secret-pass-123"
_PASSWORD_HASH = hash_password(PASSWORD)
_sequence = count(1)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def file_sessions(tmp_path):
    """Sessions on a file database, each with its own connection."""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'stock.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(engine)
    yield sessionmaker(bind=engine, autoflush=False, autocommit=False)
    engine.dispose()


@pytest.fixture
def seeded(file_sessions):
    with file_sessions() as db:
        owner = User(email="race@example.com", name="Race", password_hash="x", role=UserRole.OWNER)
        db.add(owner)
        db.flush()
        club = Club(owner_id=owner.id, name="Race Club")
        db.add(club)
        db.flush()
        product = Product(
            club_id=club.id,
            owner_id=owner.id,
            form=ProductForm.SEALED,
            name="Bar",
            category="snacks",
            sale_price=Decimal("3.00"),
            purchase_price=Decimal("1.00"),
        )
        db.add(product)
        db.commit()
        return owner.id, club.id, product.id


@pytest.fixture
def make_owner(db_session):
    def _make(*, plan=SubscriptionPlan.TRIAL, ideal_stock=5, email=None, extra_clubs=0, extra_employees=0):
        user = User(
            email=email or f"owner{next(_sequence)}@example.com",
            name="Owner",
            password_hash=_PASSWORD_HASH,
            role=UserRole.OWNER,
            plan=plan,
            ideal_stock=ideal_stock,
            extra_clubs=extra_clubs,
            extra_employees=extra_employees,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make


@pytest.fixture
def make_employee(db_session):
    def _make(owner: User, club: Club):
        user = User(
            email=f"employee{next(_sequence)}@example.com",
            name="Employee",
            password_hash=_PASSWORD_HASH,
            role=UserRole.EMPLOYEE,
            owner_id=owner.id,
            club_id=club.id,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make


@pytest.fixture
def make_club(db_session):
    def _make(owner: User, name: str = "Central"):
        club = Club(owner_id=owner.id, name=name)
        db_session.add(club)
        db_session.commit()
        db_session.refresh(club)
        return club

    return _make


@pytest.fixture
def make_product(db_session):
    def _make(club: Club, *, form=ProductForm.SEALED, name="Protein Shake", portions=None, **fields):
        product = Product(
            club_id=club.id,
            owner_id=club.owner_id,
            form=form,
            name=name,
            category=fields.pop("category", "drinks"),
            portions=portions,
            sale_price=fields.pop("sale_price", Decimal("10.00")),
            portion_price=fields.pop("portion_price", Decimal("2.50")),
            purchase_price=fields.pop("purchase_price", Decimal("6.00")),
            **fields,
        )
        db_session.add(product)
        db_session.commit()
        db_session.refresh(product)
        return product

    return _make


@pytest.fixture
def owner(make_owner):
    return make_owner()


@pytest.fixture
def club(make_club, owner):
    return make_club(owner)


def auth_headers(user: User) -> dict[str, str]:
    token = create_access_token(subject=str(user.id), role=user.role.value)
    return {"Authorization": f"Bearer {token}"}
