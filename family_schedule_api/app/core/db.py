"""
Database gateway and simple migration system.

This module owns the single process-wide SQLAlchemy engine and its
connection pool.  The pool has a fixed capacity (``DB_POOL_SIZE``);
callers beyond that capacity wait for a connection to be returned.
Services never touch the engine directly, they go through:

* ``query`` and ``execute`` for single statements,
* ``transaction`` for several statements on one dedicated connection
  that are committed only when ``commit()`` is called.

Store failures are re-raised as ``StoreError``.  A unique-key
violation is raised as ``DuplicateKeyError`` so callers can map it to
a domain conflict.

``init_db`` applies the versioned schema migrations on start-up and
``verify_cascade_rules`` checks that the live schema deletes
dependent rows together with their child.
"""

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterator, List, Mapping, Optional

from sqlalchemy import create_engine, event, inspect, text
from sqlalchemy.engine import Connection, Engine, make_url
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.pool import QueuePool

from .config import settings

logger = logging.getLogger(__name__)

_engine: Optional[Engine] = None
_engine_lock = threading.Lock()

# SQLite INTEGER and BIGINT columns hold signed 64-bit values.
MIN_ROW_ID = -(2**63)
MAX_ROW_ID = 2**63 - 1


class StoreError(Exception):
    """Any failure reported by the relational store."""


class DuplicateKeyError(StoreError):
    """A statement violated a unique key."""


@dataclass
class StatementResult:
    rowcount: int
    lastrowid: Optional[int]


def get_database_url() -> str:
    """Return the configured URL with relative SQLite paths made absolute.

    Relative paths are resolved against the project root (the
    directory containing the ``family_schedule_api`` package).
    """
    url = make_url(settings.database_url)
    database = url.database
    if url.get_backend_name() == "sqlite" and database and database != ":memory:":
        path = Path(database)
        if not path.is_absolute():
            base_dir = Path(__file__).resolve().parents[3]
            url = url.set(database=str((base_dir / path).resolve()))
    return url.render_as_string(hide_password=False)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    # SQLite ignores REFERENCES clauses (and therefore ON DELETE CASCADE)
    # unless foreign key support is switched on for each connection.
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys = ON")
    cursor.close()


def get_engine() -> Engine:
    """Return the shared engine, creating it on first use."""
    global _engine
    if _engine is None:
        with _engine_lock:
            if _engine is None:
                url = get_database_url()
                is_sqlite = make_url(url).get_backend_name() == "sqlite"
                engine = create_engine(
                    url,
                    poolclass=QueuePool,
                    pool_size=settings.db_pool_size,
                    max_overflow=0,
                    pool_timeout=settings.db_pool_timeout,
                    pool_pre_ping=not is_sqlite,
                    echo=settings.db_echo,
                    # Pooled SQLite connections are handed to whichever
                    # worker thread picks up the request.
                    connect_args={"check_same_thread": False} if is_sqlite else {},
                )
                if is_sqlite:
                    event.listen(engine, "connect", _enable_sqlite_foreign_keys)
                logger.info(
                    "Created database engine for %s (pool size %s)",
                    make_url(url).render_as_string(hide_password=True),
                    settings.db_pool_size,
                )
                _engine = engine
    return _engine


def dispose_engine() -> None:
    """Close all pooled connections and forget the engine."""
    global _engine
    with _engine_lock:
        if _engine is not None:
            _engine.dispose()
            _engine = None


def is_duplicate_key(exc: IntegrityError) -> bool:
    """Tell whether an integrity error is a unique-key violation."""
    orig = exc.orig
    # PostgreSQL drivers expose the SQLSTATE
    if getattr(orig, "pgcode", None) == "23505" or getattr(orig, "sqlstate", None) == "23505":
        return True
    # MySQL: ER_DUP_ENTRY
    args = getattr(orig, "args", ())
    if args and args[0] == 1062:
        return True
    return "UNIQUE constraint failed" in str(orig)


def is_row_id(value: int) -> bool:
    """Tell whether ``value`` fits in an integer key column."""
    return MIN_ROW_ID <= value <= MAX_ROW_ID


@contextmanager
def _store_errors() -> Iterator[None]:
    try:
        yield
    except IntegrityError as exc:
        if is_duplicate_key(exc):
            raise DuplicateKeyError(str(exc.orig)) from exc
        raise StoreError(str(exc.orig)) from exc
    except SQLAlchemyError as exc:
        raise StoreError(str(exc)) from exc
    except OverflowError as exc:
        # Raised by the driver for integers it cannot bind.
        raise StoreError(str(exc)) from exc


def _rows(result) -> List[Dict[str, Any]]:
    return [dict(row) for row in result.mappings().all()]


def query(sql: str, params: Optional[Mapping[str, Any]] = None) -> List[Dict[str, Any]]:
    """Run a single read statement and return the rows as dicts."""
    with _store_errors():
        with get_engine().connect() as conn:
            return _rows(conn.execute(text(sql), dict(params or {})))


def execute(sql: str, params: Optional[Mapping[str, Any]] = None) -> StatementResult:
    """Run a single write statement in its own committed transaction."""
    with _store_errors():
        with get_engine().begin() as conn:
            result = conn.execute(text(sql), dict(params or {}))
            return StatementResult(rowcount=result.rowcount, lastrowid=result.lastrowid)


class Transaction:
    """Several statements on one pooled connection.

    Nothing is persisted unless ``commit`` is called.  Obtained from
    the ``transaction`` context manager.
    """

    def __init__(self, connection: Connection) -> None:
        self._connection = connection
        self.committed = False

    def execute(self, sql: str, params: Optional[Mapping[str, Any]] = None) -> StatementResult:
        with _store_errors():
            result = self._connection.execute(text(sql), dict(params or {}))
            return StatementResult(rowcount=result.rowcount, lastrowid=result.lastrowid)

    def query(self, sql: str, params: Optional[Mapping[str, Any]] = None) -> List[Dict[str, Any]]:
        with _store_errors():
            return _rows(self._connection.execute(text(sql), dict(params or {})))

    def commit(self) -> None:
        with _store_errors():
            self._connection.commit()
        self.committed = True


@contextmanager
def transaction() -> Iterator[Transaction]:
    """Yield a ``Transaction`` on a dedicated connection.

    Leaving the block with an exception, or without calling
    ``commit()``, rolls everything back.  The connection is returned to
    the pool in every case.
    """
    with _store_errors():
        connection = get_engine().connect()
    tx = Transaction(connection)
    try:
        with _store_errors():
            connection.begin()
        yield tx
        if not tx.committed:
            connection.rollback()
    except BaseException:
        try:
            connection.rollback()
        except SQLAlchemyError:
            logger.exception("Rollback failed")
        raise
    finally:
        connection.close()


def ping() -> None:
    """Run ``SELECT 1``; raises ``StoreError`` if the store is unreachable."""
    query("SELECT 1")


# Each migration is a version number and the statements it runs.  Add
# new migrations at the end with an incremented version.
MIGRATIONS: List[tuple] = [
    (
        1,
        [
            """
            CREATE TABLE IF NOT EXISTS children (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                full_name TEXT NOT NULL,
                cpf TEXT NOT NULL UNIQUE,
                birth_date DATE NOT NULL,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
            """,
            """
            CREATE TABLE IF NOT EXISTS parent_children (
                parent_id INTEGER NOT NULL,
                child_id INTEGER NOT NULL,
                PRIMARY KEY (parent_id, child_id),
                FOREIGN KEY(child_id) REFERENCES children(id) ON DELETE CASCADE
            )
            """,
            """
            CREATE TABLE IF NOT EXISTS schedules (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                child_id INTEGER NOT NULL,
                created_by_parent_id INTEGER,
                title TEXT NOT NULL,
                description TEXT,
                start_time TIMESTAMP NOT NULL,
                end_time TIMESTAMP NOT NULL,
                type TEXT NOT NULL,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                FOREIGN KEY(child_id) REFERENCES children(id) ON DELETE CASCADE
            )
            """,
        ],
    ),
    (
        2,
        [
            "CREATE INDEX IF NOT EXISTS idx_parent_children_parent_id ON parent_children(parent_id)",
            "CREATE INDEX IF NOT EXISTS idx_schedules_child_start ON schedules(child_id, start_time)",
        ],
    ),
]

# (table, column, referenced table) pairs whose rows must disappear
# when the referenced child is deleted.
CASCADE_RULES = [
    ("parent_children", "child_id", "children"),
    ("schedules", "child_id", "children"),
]


def init_db() -> None:
    """Initialise the database and apply pending migrations.

    Creates the ``migrations`` table if it does not exist, checks the
    current schema version and applies every newer entry of
    ``MIGRATIONS`` in order, each in its own transaction.
    """
    engine = get_engine()
    with engine.begin() as conn:
        conn.execute(text("CREATE TABLE IF NOT EXISTS migrations (version INTEGER PRIMARY KEY)"))
        current_version = conn.execute(text("SELECT MAX(version) FROM migrations")).scalar() or 0

    for version, statements in MIGRATIONS:
        if version <= current_version:
            continue
        with engine.begin() as conn:
            for statement in statements:
                conn.execute(text(statement))
            conn.execute(text("INSERT INTO migrations (version) VALUES (:version)"), {"version": version})
        logger.info("Applied database migration %s", version)
        current_version = version


def verify_cascade_rules() -> None:
    """Raise ``RuntimeError`` unless every rule in ``CASCADE_RULES`` exists.

    Deleting a child relies on the store removing its parent
    associations and schedules.  A schema without those rules would
    leave orphans behind silently, so start-up refuses to continue.
    """
    inspector = inspect(get_engine())
    missing = []
    for table, column, referred_table in CASCADE_RULES:
        found = False
        for fk in inspector.get_foreign_keys(table):
            ondelete = (fk.get("options") or {}).get("ondelete") or ""
            if (
                fk.get("referred_table") == referred_table
                and column in fk.get("constrained_columns", [])
                and ondelete.upper() == "CASCADE"
            ):
                found = True
                break
        if not found:
            missing.append(f"{table}.{column} -> {referred_table}")
    if missing:
        raise RuntimeError("Missing ON DELETE CASCADE rule(s): " + ", ".join(missing))
