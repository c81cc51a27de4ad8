"""Race-safe allocation of per-project sequential codes.

The counter row for (project, entity) is created idempotently and then
incremented with a single ``UPDATE ... RETURNING``, so the row lock taken
by the update serializes concurrent allocations. The increment is only
visible once the caller's transaction commits.
"""

from __future__ import annotations

from uuid import UUID, uuid4

import structlog
from sqlalchemy import update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from procuretrack.db.models import SequenceCounterModel

logger = structlog.get_logger()

LIST_SEQUENCE = "list"
ORDER_SEQUENCE = "order"

_CODE_MARKERS = {
    LIST_SEQUENCE: "LST",
    ORDER_SEQUENCE: "PED",
}


def _insert_for(session: AsyncSession):
    dialect = session.get_bind().dialect.name
    if dialect == "postgresql":
        return pg_insert
    if dialect == "sqlite":
        return sqlite_insert
    raise NotImplementedError(f"Sequence allocation is not supported on '{dialect}'")


async def next_sequence(session: AsyncSession, project_id: UUID, entity: str) -> int:
    """Return the next value (starting at 1) for a project's entity counter."""
    insert = _insert_for(session)
    await session.execute(
        insert(SequenceCounterModel)
        .values(id=uuid4(), project_id=project_id, entity=entity, value=0)
        .on_conflict_do_nothing(index_elements=["project_id", "entity"])
    )

    result = await session.execute(
        update(SequenceCounterModel)
        .where(
            SequenceCounterModel.project_id == project_id,
            SequenceCounterModel.entity == entity,
        )
        .values(value=SequenceCounterModel.value + 1)
        .returning(SequenceCounterModel.value)
        .execution_options(synchronize_session=False)
    )
    value = result.scalar_one()
    logger.debug("sequence_allocated", project_id=str(project_id), entity=entity, value=value)
    return value


def format_code(project_code: str, entity: str, sequence: int, padding: int = 3) -> str:
    """Build a human-readable code such as ``PRJ1-PED-007``."""
    return f"{project_code}-{_CODE_MARKERS[entity]}-{sequence:0{padding}d}"
