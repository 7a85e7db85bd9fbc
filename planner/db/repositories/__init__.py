"""
Repository layer for database operations.

Each module holds plain async functions that take the session as their first
argument: ``users``, ``events``, ``attendees``, ``photos``, ``friends`` and
``notifications``. Functions that return object graphs eager-load the
relationships they expose and refresh already-loaded instances, so callers
never trigger lazy loads on the async session.
"""
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.dialects import postgresql, sqlite


def insert_for(db: AsyncSession, table):
    """
    Dialect-specific INSERT supporting ``ON CONFLICT`` clauses.

    Args:
        db: Database session
        table: Mapped class or table to insert into

    Returns:
        An insert construct exposing ``on_conflict_do_nothing`` / ``on_conflict_do_update``
    """
    if db.get_bind().dialect.name == "sqlite":
        return sqlite.insert(table)
    return postgresql.insert(table)
