"""
Database setup using SQLAlchemy.

We create:
- an Engine bound to the DATABASE_URL from config
- a SessionLocal factory for collector / request sessions
- a Base class to declare ORM models
"""

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, declarative_base

from router_inventory.config import settings

_connect_args = (
    {"check_same_thread": False}
    if settings.database_url.startswith("sqlite")
    else {}
)

# Engine: the core connection to the DB (SQLite by default)
engine = create_engine(
    settings.database_url,
    future=True,
    echo=False,  # set True if you want to see SQL in the logs
    connect_args=_connect_args,
)

# Session factory: each poll cycle or request gets its own session
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    expire_on_commit=False,
    bind=engine,
    future=True,
)

# Base class for all ORM models
Base = declarative_base()


def init_db(bind: Engine = engine) -> None:
    """Create missing tables. Safe to call more than once."""
    # models must be imported so their tables are registered on Base
    from router_inventory import models  # noqa: F401

    Base.metadata.create_all(bind=bind)
