"""
DeedReg Database Session Management.

Provides the single entry point for registry DB initialisation plus
a context manager for units of work.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager, nullcontext
from typing import Generator, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from deedreg.db.base import Base

logger = logging.getLogger("deedreg.db.session")

# Engine created by init_registry_db(); disposed by close_registry_db().
_registry_engine: Optional[Engine] = None

# sessionmaker.info key holding the lock that serialises units of work on a
# single shared connection (in-memory SQLite).
SERIAL_LOCK_KEY = "deedreg.serial_lock"


def _is_memory_sqlite(db_url: str) -> bool:
    return db_url in ("sqlite://", "sqlite:///:memory:") or (
        db_url.startswith("sqlite") and "mode=memory" in db_url
    )


def build_engine(db_url: str, pool_pre_ping: bool = True, echo: bool = False) -> Engine:
    """
    Create an engine for `db_url`.

    In-memory SQLite gets a StaticPool so every session (and thread) sees
    the same database. All sessions then share one DBAPI connection, so
    init_registry_db pairs such engines with a lock held by session_scope.
    """
    if _is_memory_sqlite(db_url):
        return create_engine(
            db_url,
            echo=echo,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_engine(db_url, pool_pre_ping=pool_pre_ping, echo=echo)


def init_registry_db(
    db_url: str,
    create_tables: bool = False,
    pool_pre_ping: bool = True,
    echo: bool = False,
) -> sessionmaker:
    """
    Single entry point for registry database initialisation.

    Args:
        db_url:        SQLAlchemy connection URL.
        create_tables: When True, run Base.metadata.create_all(). Used by
                       ``deedreg init`` and tests.
        pool_pre_ping: SQLAlchemy engine pool_pre_ping.
        echo:          Log emitted SQL.

    Returns:
        A ``sessionmaker`` bound to the initialised engine.
    """
    global _registry_engine

    # Imported for its side effect of registering the tables on Base.metadata
    from deedreg.db import models  # noqa: F401

    engine = build_engine(db_url, pool_pre_ping=pool_pre_ping, echo=echo)
    if create_tables:
        Base.metadata.create_all(engine)
        logger.info(f"Registry tables ensured on {engine.url.render_as_string(hide_password=True)}")

    _registry_engine = engine
    info = {SERIAL_LOCK_KEY: threading.RLock()} if _is_memory_sqlite(db_url) else None
    return sessionmaker(bind=engine, expire_on_commit=False, info=info)


@contextmanager
def session_scope(factory: sessionmaker) -> Generator[Session, None, None]:
    """
    Context manager for a unit of work with auto-commit/rollback.

    On a shared-connection engine the whole unit of work runs under the
    factory's serial lock, so one session's rollback cannot discard
    another session's flushed writes.

    Usage:
        with session_scope(factory) as session:
            session.get(DocumentRow, 1)
    """
    lock = (factory.kw.get("info") or {}).get(SERIAL_LOCK_KEY)
    with lock if lock is not None else nullcontext():
        session = factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()


def close_registry_db() -> None:
    """Dispose the engine created by init_registry_db(). Used during shutdown."""
    global _registry_engine
    if _registry_engine is not None:
        _registry_engine.dispose()
        _registry_engine = None
