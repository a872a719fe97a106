from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import Engine, create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from app.core.config import settings


class Base(DeclarativeBase):
    pass


def engine_options(database_url: str) -> dict:
    """Driver and pool options for the configured backend."""
    url = make_url(database_url)
    if url.get_backend_name() == "sqlite":
        # Request threads and the stock lock share connections across threads.
        return {"connect_args": {"check_same_thread": False}}
    return {
        "connect_args": {"sslmode": "prefer"},
        "pool_pre_ping": True,
        "pool_recycle": 1800,
    }


def build_engine(database_url: str, *, echo: bool = False) -> Engine:
    return create_engine(database_url, echo=echo, **engine_options(database_url))


engine = build_engine(settings.database_url, echo=settings.sql_echo)

SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)


@contextmanager
def session_scope() -> Iterator[Session]:
    """Session for work outside a request; uncommitted changes are rolled back."""
    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def get_db() -> Iterator[Session]:
    with session_scope() as db:
        yield db
