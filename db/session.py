"""
db/session.py

SQLAlchemy engine and session factory for the entity store.

Repositories never commit. Callers own the unit of work and hand the
session to the service factories:

    with session_scope() as session:
        merge = build_normalization_service(session).normalize_and_merge(parsed)
        build_quality_scoring_service(session).score_batch(merge.persisted_entities)
"""

from __future__ import annotations

import os
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from db.config import resolve_database_url


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def create_db_engine(database_url: str | None = None) -> Engine:
    """
    Build a pooled PostgreSQL engine; JSONB columns and savepoint-based
    repository writes rely on PostgreSQL semantics at runtime.
    """

    url = database_url or resolve_database_url()
    if not url.startswith("postgresql"):
        raise RuntimeError("The entity store only supports PostgreSQL URLs.")

    return create_engine(
        url,
        echo=_env_flag("SQL_ECHO"),
        pool_pre_ping=True,
        pool_recycle=_env_int("DB_POOL_RECYCLE", 1800),
        pool_size=_env_int("DB_POOL_SIZE", 5),
        max_overflow=_env_int("DB_MAX_OVERFLOW", 10),
    )


_engine: Engine | None = None
_session_factory: sessionmaker | None = None


def get_engine() -> Engine:
    global _engine
    if _engine is None:
        _engine = create_db_engine()
    return _engine


def SessionLocal() -> Session:
    global _session_factory
    if _session_factory is None:
        _session_factory = sessionmaker(
            bind=get_engine(),
            class_=Session,
            autoflush=False,
            expire_on_commit=False,
        )
    return _session_factory()


@contextmanager
def session_scope() -> Iterator[Session]:
    """
    Commit on success, roll back on any exception, always close.
    """

    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
