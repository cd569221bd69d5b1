"""
Database compatibility helpers for SQLite and PostgreSQL.
"""
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

UNIQUE_VIOLATION = "23505"


def is_unique_violation(exc: IntegrityError) -> bool:
    """True when an IntegrityError was caused by a unique constraint."""
    orig = getattr(exc, "orig", None)
    code = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if code:
        return code == UNIQUE_VIOLATION
    return "UNIQUE constraint failed" in str(orig)


def dialect_insert(db: AsyncSession, table):
    """INSERT construct supporting on_conflict_do_update for the session's dialect."""
    if db.bind.dialect.name == "postgresql":
        return postgresql.insert(table)
    return sqlite.insert(table)
