from __future__ import annotations

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

from .config import get_settings


settings = get_settings()

engine_kwargs = {"future": True, "pool_pre_ping": True, "echo": settings.sql_echo}
connect_args = {}
if settings.database_url.startswith("sqlite"):
    connect_args = {"check_same_thread": False}

engine = create_engine(settings.database_url, connect_args=connect_args, **engine_kwargs)

SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)

Base = declarative_base()


def init_db(bind: Engine = engine) -> None:
    """Declare the source tables if missing, then (re)define the reporting views."""
    from . import models  # noqa: F401  registers tables on Base.metadata
    from .sql_views import create_views

    Base.metadata.create_all(bind=bind)
    create_views(bind)


def get_db_session():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
