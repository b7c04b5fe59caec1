"""
Atomic per-row upserts for the analytics tables.

Each row is written with a single INSERT ... ON CONFLICT DO UPDATE so a
concurrent writer can never leave a half-overwritten row behind; the last
complete write wins.
"""
from typing import Any, Sequence

from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

_INSERTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


def dialect_name(db: AsyncSession) -> str:
    return db.get_bind().dialect.name


async def upsert_rows(
    db: AsyncSession,
    model: Any,
    rows: Sequence[dict],
    conflict_columns: Sequence[str],
    update_columns: Sequence[str],
) -> None:
    """Insert `rows`, updating `update_columns` where the conflict key exists."""
    if not rows:
        return

    dialect = dialect_name(db)
    insert = _INSERTS.get(dialect)
    if insert is None:
        raise NotImplementedError(f"Upsert not supported for dialect '{dialect}'")

    stmt = insert(model).values(list(rows))
    stmt = stmt.on_conflict_do_update(
        index_elements=list(conflict_columns),
        set_={column: getattr(stmt.excluded, column) for column in update_columns},
    )
    await db.execute(stmt)
