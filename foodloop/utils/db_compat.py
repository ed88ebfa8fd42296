"""
Database compatibility helpers for SQLite and PostgreSQL.
"""
from sqlalchemy import text
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import DBAPIError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

# SQLSTATEs PostgreSQL uses for lost concurrency races
_RETRIABLE_PG_CODES = {
    "40001",  # serialization_failure
    "40P01",  # deadlock_detected
    "55P03",  # lock_not_available
    "57014",  # query_canceled (statement_timeout)
}


def dialect_name(session: AsyncSession) -> str:
    return session.get_bind().dialect.name


def upsert(session: AsyncSession, table, values: dict, conflict_column: str, increments: dict):
    """INSERT ... ON CONFLICT (conflict_column) DO UPDATE SET col = col + delta."""
    insert = postgresql.insert if dialect_name(session) == "postgresql" else sqlite.insert
    stmt = insert(table).values(**values)
    return stmt.on_conflict_do_update(
        index_elements=[conflict_column],
        set_={col: getattr(table.c, col) + delta for col, delta in increments.items()},
    )


async def set_transaction_timeout(session: AsyncSession, seconds: int) -> None:
    """Bound the current transaction's statements (PostgreSQL only)"""
    if seconds and dialect_name(session) == "postgresql":
        await session.execute(text(f"SET LOCAL statement_timeout = {int(seconds) * 1000}"))


def is_retriable_error(exc: DBAPIError) -> bool:
    """True when the store rejected a statement because a concurrent transaction won"""
    orig = getattr(exc, "orig", None)
    code = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if code in _RETRIABLE_PG_CODES:
        return True
    if isinstance(exc, OperationalError):
        message = str(orig).lower()
        return "database is locked" in message or "database table is locked" in message
    return False
