"""
Database Configuration

Provides the SQLAlchemy engine for raw SQL execution and the declarative
Base used by the schema in models.py.
Uses connection pooling for efficient database access under concurrent sales.
"""

from contextlib import contextmanager
from functools import lru_cache

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import declarative_base

from .config import Settings, get_settings

Base = declarative_base()

SQLITE_BUSY_TIMEOUT_MS = 5000


def _configure_sqlite(dbapi_conn, connection_record):
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute(f"PRAGMA busy_timeout = {SQLITE_BUSY_TIMEOUT_MS}")
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_db_engine(database_url: str, settings: Settings = None) -> Engine:
    """
    Create an engine for the given URL.

    Server databases get the tuned pool from settings. SQLite gets WAL mode,
    a busy timeout and foreign key enforcement on every new connection.
    """
    url = make_url(database_url)

    if url.get_backend_name() == "sqlite":
        engine = create_engine(
            url,
            connect_args={"check_same_thread": False, "timeout": SQLITE_BUSY_TIMEOUT_MS / 1000},
        )
        event.listen(engine, "connect", _configure_sqlite)
        return engine

    settings = settings or get_settings()
    return create_engine(
        url,
        pool_size=settings.db_pool_size,        # Persistent connections in pool
        max_overflow=settings.db_max_overflow,  # Extra connections allowed under load
        pool_timeout=settings.db_pool_timeout,  # Max wait time for a connection from pool
        pool_recycle=settings.db_pool_recycle,  # Recycle connections to avoid stale connections
        pool_pre_ping=True,                     # Verify connection health before use
    )


@lru_cache(maxsize=1)
def get_engine() -> Engine:
    """Process-wide engine built from DATABASE_URL."""
    settings = get_settings()
    return create_db_engine(settings.database_url, settings)


@contextmanager
def get_connection(engine: Engine = None):
    """
    Context manager for getting a database connection.

    Usage:
        with get_connection() as conn:
            result = conn.execute(text("SELECT * FROM inventory"))
    """
    with (engine or get_engine()).connect() as conn:
        yield conn


@contextmanager
def get_transaction(engine: Engine = None):
    """
    Context manager for database transactions.
    Auto-commits on success, auto-rollbacks on exception.

    Usage:
        with get_transaction() as conn:
            conn.execute(text("UPDATE inventory SET stock = stock - 1 ..."))
            conn.execute(text("INSERT INTO orders ..."))
            # Commits automatically if no exception
    """
    with (engine or get_engine()).begin() as conn:
        yield conn
