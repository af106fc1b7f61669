from __future__ import annotations

import sqlite3
import uuid
from contextlib import contextmanager
from datetime import datetime
from typing import Callable, Iterator, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from mingle.db.schema import create_schema
from mingle.errors import Conflict
from mingle.utils.logger import get_logger
from mingle.utils.time_utils import dt_to_utc_iso, utc_now

logger = get_logger(__name__)

# PostgreSQL SQLSTATEs for serialization_failure and deadlock_detected
_PG_CONTENTION_CODES = {"40001", "40P01"}
_SQLITE_CONTENTION_MARKERS = ("database is locked", "database is busy")


def new_id() -> str:
    return str(uuid.uuid4())


def _is_contention(error: OperationalError) -> bool:
    orig = getattr(error, "orig", None)
    code = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    if code in _PG_CONTENTION_CODES:
        return True
    message = str(orig or error).lower()
    return any(marker in message for marker in _SQLITE_CONTENTION_MARKERS)


def _is_memory_sqlite(url: str) -> bool:
    return url in ("sqlite://", "sqlite:///:memory:") or "mode=memory" in url


class Database:
    """
    Store handle: owns the engine and hands out transactional sessions.

    Constructed explicitly (app factory, scripts, tests) and passed to every
    repository. There is no process-wide engine.
    """

    def __init__(
        self,
        url: str,
        clock: Optional[Callable[[], datetime]] = None,
        pool_size: int = 10,
        max_overflow: int = 20,
        echo: bool = False,
    ):
        self.url = url
        self._clock = clock or utc_now
        self.engine = self._create_engine(url, pool_size, max_overflow, echo)
        self._session_factory = sessionmaker(
            bind=self.engine,
            autoflush=False,
            expire_on_commit=False,
        )

    @property
    def is_sqlite(self) -> bool:
        return self.engine.dialect.name == "sqlite"

    def _create_engine(self, url: str, pool_size: int, max_overflow: int, echo: bool) -> Engine:
        if not url.startswith("sqlite"):
            return create_engine(
                url,
                pool_size=pool_size,
                max_overflow=max_overflow,
                pool_pre_ping=True,  # Verify connections before using
                pool_recycle=3600,  # Recycle connections after 1 hour
                echo=echo,
            )

        kwargs = {"connect_args": {"timeout": 30, "check_same_thread": False}, "echo": echo}
        if _is_memory_sqlite(url):
            kwargs["poolclass"] = StaticPool
        engine = create_engine(url, **kwargs)
        self._install_sqlite_hooks(engine)
        return engine

    @staticmethod
    def _install_sqlite_hooks(engine: Engine) -> None:
        @event.listens_for(engine, "connect")
        def _on_connect(dbapi_connection, connection_record):
            # Manage transactions explicitly so every one can start as BEGIN IMMEDIATE
            dbapi_connection.isolation_level = None
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON;")
            try:
                cursor.execute("PRAGMA journal_mode=WAL;")
            except sqlite3.OperationalError:
                # Some filesystems refuse WAL; the default journal still works
                pass
            cursor.execute("PRAGMA synchronous=NORMAL;")
            cursor.close()

        @event.listens_for(engine, "begin")
        def _on_begin(conn):
            # Take the write lock up front: concurrent writers queue on the busy
            # timeout instead of deadlocking on a SHARED -> RESERVED upgrade.
            conn.exec_driver_sql("BEGIN IMMEDIATE")

    def now(self) -> str:
        """Current time as the store's fixed-width UTC ISO string."""
        return dt_to_utc_iso(self._clock())

    def create_schema(self) -> None:
        create_schema(self.engine)

    @contextmanager
    def session(self) -> Iterator[Session]:
        """
        Context manager for one bounded transaction.

        Commits on success, rolls back on exception. Lock timeouts and
        serialization failures are reported as Conflict.
        """
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except OperationalError as e:
            session.rollback()
            if _is_contention(e):
                logger.warning(f"Store contention detected: {e.orig!r}")
                raise Conflict() from e
            raise
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def dispose(self) -> None:
        self.engine.dispose()
