"""Transaction boundary for mutating service operations."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from procuretrack.errors import ConflictError, InternalError

logger = structlog.get_logger()


@asynccontextmanager
async def atomic(session: AsyncSession, operation: str) -> AsyncIterator[AsyncSession]:
    """Run a block as one transaction: commit on success, roll back on any failure.

    ``StaleDataError`` from the optimistic version check surfaces as
    ``ConflictError``; other storage failures surface as ``InternalError``.
    Domain errors propagate unchanged.
    """
    try:
        yield session
        await session.commit()
    except StaleDataError as exc:
        await session.rollback()
        logger.warning("transaction_rolled_back", operation=operation, reason="stale_version")
        raise ConflictError(
            f"{operation} conflicted with a concurrent change; retry the operation",
            operation=operation,
        ) from exc
    except SQLAlchemyError as exc:
        await session.rollback()
        logger.error("transaction_rolled_back", operation=operation, reason="storage", error=str(exc))
        raise InternalError(f"{operation} failed: storage error", operation=operation) from exc
    except BaseException as exc:
        await session.rollback()
        logger.info(
            "transaction_rolled_back",
            operation=operation,
            reason=type(exc).__name__,
        )
        raise
