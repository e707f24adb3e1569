"""
SQL Script Loader

Loads and executes raw SQL scripts from the scripts/ folder.
Uses parameterized queries to prevent SQL injection.

A script placed under scripts/<dialect>/ (e.g. scripts/postgresql/) overrides
the generic script of the same name for that database backend.
"""

from functools import lru_cache
from pathlib import Path

from sqlalchemy import bindparam, text

# Path to the scripts directory
SCRIPTS_DIR = Path(__file__).parent / "scripts"


@lru_cache(maxsize=50)
def load_sql(name: str, dialect: str = None) -> str:
    """
    Load a SQL script by name (without .sql extension).
    Results are cached for performance.

    Args:
        name: Script name without .sql extension (e.g., "decrement_stock")
        dialect: SQLAlchemy dialect name; a dialect-specific script wins
            over the generic one when it exists

    Returns:
        The SQL script content as a string

    Raises:
        FileNotFoundError: If the script doesn't exist
    """
    if dialect:
        override = SCRIPTS_DIR / dialect / f"{name}.sql"
        if override.exists():
            return override.read_text()

    path = SCRIPTS_DIR / f"{name}.sql"
    if not path.exists():
        raise FileNotFoundError(f"SQL script not found: {path}")
    return path.read_text()


def execute_sql(conn, name: str, params=None, types: dict = None):
    """
    Execute a named SQL script with safe parameterized queries.

    Args:
        conn: SQLAlchemy connection object
        name: Script name without .sql extension
        params: Dictionary of parameters to bind, or a list of dictionaries
            to execute the statement once per entry
        types: Optional mapping of parameter name to SQLAlchemy type, for
            values the driver cannot bind natively (Decimal, date on SQLite)

    Returns:
        SQLAlchemy CursorResult object

    Example:
        result = execute_sql(conn, "get_product", {"product_id": 7})
        row = result.fetchone()
    """
    sql = text(load_sql(name, conn.dialect.name))
    if types:
        sql = sql.bindparams(*[bindparam(key, type_=type_) for key, type_ in types.items()])
    return conn.execute(sql, params or {})
