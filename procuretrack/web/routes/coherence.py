"""Coherence report routes.

Thresholds and tolerances default to the configured values and can be
overridden per request with query parameters.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from procuretrack.coherence.repository import CoherenceRepository
from procuretrack.config import CoherenceConfig
from procuretrack.models import CoherenceReport
from procuretrack.web.dependencies import get_coherence_config, get_db

router = APIRouter(prefix="/api/coherence", tags=["coherence"])


@router.get("/lists/{list_id}", response_model=CoherenceReport)
async def list_coherence(
    list_id: UUID,
    session: AsyncSession = Depends(get_db),
    config: CoherenceConfig = Depends(get_coherence_config),
):
    return await CoherenceRepository(session, config).list_report(list_id)


@router.get("/orders/{order_id}", response_model=CoherenceReport)
async def order_coherence(
    order_id: UUID,
    session: AsyncSession = Depends(get_db),
    config: CoherenceConfig = Depends(get_coherence_config),
):
    return await CoherenceRepository(session, config).order_report(order_id)


@router.get("/projects/{project_id}", response_model=CoherenceReport)
async def project_coherence(
    project_id: UUID,
    session: AsyncSession = Depends(get_db),
    config: CoherenceConfig = Depends(get_coherence_config),
):
    return await CoherenceRepository(session, config).project_report(project_id)
