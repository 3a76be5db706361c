"""
Dialect-specific statements the ORM does not spell portably.
"""

from sqlalchemy.dialects import mysql, postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from surfclub.core.errors import InternalError


def insert_ignore(db: AsyncSession, model, values: dict, conflict_columns: list[str]):
    """INSERT that silently keeps the existing row when `conflict_columns` collide."""
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        return postgresql.insert(model).values(**values).on_conflict_do_nothing(index_elements=conflict_columns)
    if dialect == "sqlite":
        return sqlite.insert(model).values(**values).on_conflict_do_nothing(index_elements=conflict_columns)
    if dialect in ("mysql", "mariadb"):
        return mysql.insert(model).values(**values).prefix_with("IGNORE")
    raise InternalError(f"Insert-or-ignore is not supported on dialect {dialect!r}", dialect=dialect)
