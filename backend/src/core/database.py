# pyright: reportMissingTypeStubs=false
"""
Database engine and session management for the scheduling backend.

Provider settings, weekly intervals, date exceptions and appointments are
stored through SQLAlchemy. PostgreSQL is the production target; SQLite is
supported for local runs and the test suite.
"""

import logging
from typing import Any, Dict, Generator

from fastapi import HTTPException
from sqlalchemy import Engine, create_engine, event
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from core.config import DATABASE_URL
from core.constants import DB_POOL_RECYCLE_SECONDS

logger = logging.getLogger(__name__)


def _engine_options(database_url: str) -> Dict[str, Any]:
    """Engine keyword arguments for the configured backend."""
    options: Dict[str, Any] = {
        "pool_pre_ping": True,  # Verify connections before use
        "echo": False,
    }
    if database_url.startswith("sqlite"):
        # Sessions cross FastAPI worker threads
        options["connect_args"] = {"check_same_thread": False}
    else:
        options["pool_recycle"] = DB_POOL_RECYCLE_SECONDS
    return options


def enable_sqlite_write_locking(target_engine: Engine) -> None:
    """
    Start every SQLite transaction with BEGIN IMMEDIATE.

    SQLite ignores SELECT ... FOR UPDATE and pysqlite defers BEGIN until the
    first write, so without this two bookings could both validate before either
    inserts. With it, a transaction holds the database write lock from its first
    statement and concurrent writers wait on the busy timeout.
    """
    @event.listens_for(target_engine, "connect")
    def _disable_driver_begin(dbapi_connection, connection_record):  # type: ignore
        dbapi_connection.isolation_level = None

    @event.listens_for(target_engine, "begin")
    def _begin_immediate(conn):  # type: ignore
        conn.exec_driver_sql("BEGIN IMMEDIATE")


engine = create_engine(DATABASE_URL, **_engine_options(DATABASE_URL))

if DATABASE_URL.startswith("sqlite"):
    enable_sqlite_write_locking(engine)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
    expire_on_commit=False,  # Services return ORM rows after committing
)


class Base(DeclarativeBase):
    """Base class for all database models."""
    pass


@event.listens_for(Base, "before_insert", propagate=True)  # type: ignore
def receive_before_insert(mapper, connection, target):  # type: ignore
    """Stamp created_at and updated_at in the practice timezone."""
    # Import here to avoid circular import
    from utils.datetime_utils import practice_now
    now = practice_now()
    for column_name in ("created_at", "updated_at"):
        # Properties won't be in mapper.columns
        if hasattr(mapper, "columns") and column_name in mapper.columns:  # type: ignore
            if getattr(target, column_name, None) is None:  # type: ignore
                setattr(target, column_name, now)  # type: ignore


@event.listens_for(Base, "before_update", propagate=True)  # type: ignore
def receive_before_update(mapper, connection, target):  # type: ignore
    """Refresh updated_at in the practice timezone."""
    from utils.datetime_utils import practice_now
    if hasattr(mapper, "columns") and "updated_at" in mapper.columns:  # type: ignore
        setattr(target, "updated_at", practice_now())  # type: ignore


def get_db() -> Generator[Session, None, None]:
    """
    FastAPI dependency providing one session per request.

    Anything left uncommitted when the request fails is rolled back, and the
    session is always closed. Services commit their own writes.
    """
    db = SessionLocal()
    try:
        yield db
    except HTTPException:
        # Rejected writes and missing providers are expected outcomes, not errors
        db.rollback()
        raise
    except SQLAlchemyError as e:
        logger.exception(f"Database error: {e}")
        db.rollback()
        raise
    except Exception as e:
        logger.exception(f"Unexpected error in database session: {e}")
        db.rollback()
        raise
    finally:
        db.close()


def create_tables() -> None:
    """
    Create the scheduling tables if they do not exist yet.

    Safe to call on every startup.
    """
    # Import models so every table is registered on Base.metadata
    import models  # noqa: F401

    try:
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables created successfully")
    except SQLAlchemyError as e:
        logger.exception(f"Failed to create database tables: {e}")
        raise
