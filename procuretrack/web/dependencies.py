"""Shared dependencies for procuretrack web routes.

Usage:
    from fastapi import Depends
    from procuretrack.web.dependencies import get_db

    @router.get("/api/lists/{list_id}")
    async def get_list(list_id: UUID, session: AsyncSession = Depends(get_db)):
        ...
"""

from __future__ import annotations

from dataclasses import replace
from decimal import Decimal

from fastapi import Query

from procuretrack.config import CoherenceConfig, get_config
from procuretrack.db.connection import get_db
from procuretrack.errors import ValidationError

__all__ = ["get_coherence_config", "get_db"]


def get_coherence_config(
    warning_threshold: Decimal | None = Query(default=None, alias="warningThreshold", ge=0, le=100),
    attention_threshold: Decimal | None = Query(default=None, alias="attentionThreshold", ge=0, le=100),
    quantity_tolerance: Decimal | None = Query(default=None, alias="quantityTolerance", ge=0),
    price_tolerance: Decimal | None = Query(default=None, alias="priceTolerance", ge=0),
) -> CoherenceConfig:
    """Configured coherence thresholds with optional per-request overrides."""
    overrides = {
        name: value
        for name, value in (
            ("warning_threshold", warning_threshold),
            ("attention_threshold", attention_threshold),
            ("quantity_tolerance", quantity_tolerance),
            ("price_tolerance", price_tolerance),
        )
        if value is not None
    }
    config = replace(get_config().coherence, **overrides)
    if config.attention_threshold > config.warning_threshold:
        raise ValidationError(
            "Attention threshold must not exceed warning threshold",
            field="attentionThreshold",
        )
    return config
