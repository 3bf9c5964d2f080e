# orderdesk/db/session.py
from typing import Any, Dict

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from orderdesk.core.config import settings


def _engine_kwargs(db_uri: str) -> Dict[str, Any]:
    if db_uri.startswith("sqlite"):
        kw: Dict[str, Any] = {"connect_args": {"check_same_thread": False}}
        # in-memory db must be shared by every connection of the pool
        if db_uri in ("sqlite://", "sqlite:///:memory:"):
            kw["poolclass"] = StaticPool
        return kw
    return {
        "pool_pre_ping": True,
        "pool_recycle": 280,
        "pool_size": 10,
        "max_overflow": 20,
    }


def make_engine(db_uri: str) -> Engine:
    return create_engine(db_uri,
                         echo=settings.SQL_ECHO,
                         future=True,
                         **_engine_kwargs(db_uri))


engine: Engine = make_engine(settings.SQLALCHEMY_DATABASE_URI)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
    future=True,
)
