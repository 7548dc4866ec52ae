"""
Database configuration and session management.
SQLAlchemy 2.0 sync sessions, one per request.
"""

import os
from collections.abc import Generator
from contextlib import contextmanager
from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from shared.config.settings import DATABASE_URL, settings


def _calculate_pool_size() -> int:
    """(2 * CPU cores) + 1, capped by the configured pool size."""
    cores = os.cpu_count() or 4
    return min(cores * 2 + 1, settings.db_pool_size)


def _engine_options(url: str) -> dict[str, Any]:
    if url.startswith("sqlite"):
        options: dict[str, Any] = {"connect_args": {"check_same_thread": False}}
        # In-memory databases live inside a single connection
        if url in ("sqlite://", "sqlite:///:memory:"):
            options["poolclass"] = StaticPool
        return options

    return {
        "pool_pre_ping": True,  # Verify connections before using
        "pool_size": _calculate_pool_size(),
        "max_overflow": settings.db_max_overflow,
        "pool_timeout": 30,  # Wait max 30s for connection from pool
        "pool_recycle": 1800,  # Recycle connections after 30 minutes
        "connect_args": {"connect_timeout": 10},
    }


engine = create_engine(DATABASE_URL, echo=False, **_engine_options(DATABASE_URL))

SessionLocal = sessionmaker(
    bind=engine,
    autoflush=False,
    autocommit=False,
    expire_on_commit=False,
)


def get_db() -> Generator[Session, None, None]:
    """
    FastAPI dependency for database sessions.

    Usage:
        @router.get("/orders")
        def list_orders(db: Session = Depends(get_db)):
            ...

    The session is closed after the request completes.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def get_db_context() -> Generator[Session, None, None]:
    """
    Context manager for database sessions outside of FastAPI.

    Usage:
        with get_db_context() as db:
            db.scalar(select(Order).where(Order.id == 1))
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def safe_commit(db: Session) -> None:
    """
    Commit with automatic rollback on failure.
    Raises the original exception after rolling back.
    """
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise


@contextmanager
def transaction(db: Session) -> Generator[Session, None, None]:
    """
    Unit of work spanning several rows.

    Everything written inside the block is committed together, or rolled
    back together if the block raises.

    Usage:
        with transaction(db):
            db.add(order)
            table.status = TableStatus.OCCUPIED
    """
    try:
        yield db
    except BaseException:
        db.rollback()
        raise
    safe_commit(db)
