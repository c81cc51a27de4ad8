"""Typed exception hierarchy for procurement operations.

Every error carries a machine-readable ``code`` plus structured ``details``
naming the item, quantity or field at fault, so the web layer and the CLI
can report failures without parsing messages.

    ProcurementError
    +-- ValidationError
    |   +-- InvalidTransitionError
    +-- NotFoundError
    |   +-- UnknownItemError
    +-- QuantityExceededError
    +-- InvalidOriginError
    +-- ConflictError
    +-- InternalError
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any
from uuid import UUID


class ProcurementError(Exception):
    """Base class for all procurement errors."""

    code: str = "procurement_error"

    def __init__(self, message: str, **details: Any):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.code,
            "message": self.message,
            "details": {key: _jsonable(value) for key, value in self.details.items()},
        }


class ValidationError(ProcurementError):
    """A required field is missing or invalid."""

    code = "validation_error"

    def __init__(self, message: str, field: str | None = None, **details: Any):
        super().__init__(message, field=field, **details)
        self.field = field


class InvalidTransitionError(ValidationError):
    """A workflow status change is not allowed from the current status."""

    code = "invalid_transition"

    def __init__(self, entity: str, current: str, target: str):
        super().__init__(
            f"{entity} cannot move from '{current}' to '{target}'",
            field="status",
            entity=entity,
            current=current,
            target=target,
        )


class NotFoundError(ProcurementError):
    """A referenced entity does not exist."""

    code = "not_found"

    def __init__(self, entity: str, entity_id: Any):
        super().__init__(f"{entity} {entity_id} not found", entity=entity, entity_id=entity_id)
        self.entity = entity
        self.entity_id = entity_id


class UnknownItemError(NotFoundError):
    """A selected list item does not belong to the target list."""

    code = "unknown_item"

    def __init__(self, list_item_id: Any, list_id: Any):
        ProcurementError.__init__(
            self,
            f"List item {list_item_id} does not belong to list {list_id}",
            entity="ListItem",
            entity_id=list_item_id,
            list_id=list_id,
        )
        self.entity = "ListItem"
        self.entity_id = list_item_id


class QuantityExceededError(ProcurementError):
    """A commit or delivery exceeds the remaining capacity of an item."""

    code = "quantity_exceeded"

    def __init__(self, item_id: Any, requested: Decimal, limit: Decimal, description: str | None = None):
        label = f"'{description}'" if description else str(item_id)
        super().__init__(
            f"Requested quantity {requested} exceeds available {limit} for item {label}",
            item_id=item_id,
            requested=requested,
            limit=limit,
        )
        self.item_id = item_id
        self.requested = requested
        self.limit = limit


class InvalidOriginError(ProcurementError):
    """Replacement attempted on an item without a valid chain anchor."""

    code = "invalid_origin"

    def __init__(self, list_item_id: Any, origin: str):
        super().__init__(
            f"List item {list_item_id} with origin '{origin}' has no anchor to replace",
            list_item_id=list_item_id,
            origin=origin,
        )


class ConflictError(ProcurementError):
    """The entity changed concurrently; callers may retry."""

    code = "conflict"


class InternalError(ProcurementError):
    """Storage or transaction failure. The transaction has been rolled back."""

    code = "internal_error"


def _jsonable(value: Any) -> Any:
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, Decimal):
        return str(value)
    return value
