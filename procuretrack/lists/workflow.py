"""Review workflow rules for lists and list items.

Both workflows walk the same ladder (draft -> under_review -> to_quote ->
to_validate -> to_approve -> approved), may step back one rung, and may be
rejected from any open status. A rejected entity can only be reopened as
a draft.
"""

from __future__ import annotations

from collections.abc import Iterable
from uuid import UUID

from procuretrack.errors import InvalidTransitionError, ValidationError
from procuretrack.models import ListItemStatus, ListStatus

_LADDER = ("draft", "under_review", "to_quote", "to_validate", "to_approve", "approved")


def _build_transitions() -> dict[str, frozenset[str]]:
    transitions: dict[str, set[str]] = {status: set() for status in _LADDER}
    for index, status in enumerate(_LADDER):
        if index + 1 < len(_LADDER):
            transitions[status].add(_LADDER[index + 1])
        if index > 0:
            transitions[status].add(_LADDER[index - 1])
        if status != "approved":
            transitions[status].add("rejected")
    transitions["rejected"] = {"draft"}
    return {status: frozenset(targets) for status, targets in transitions.items()}


TRANSITIONS = _build_transitions()

CLOSED_ITEM_STATUSES = frozenset({ListItemStatus.APPROVED, ListItemStatus.REJECTED})


def allowed_targets(current: str) -> frozenset[str]:
    return TRANSITIONS.get(current, frozenset())


def check_item_transition(current: ListItemStatus, target: ListItemStatus) -> None:
    if target.value not in allowed_targets(current.value):
        raise InvalidTransitionError("ListItem", current.value, target.value)


def check_list_transition(
    current: ListStatus,
    target: ListStatus,
    item_statuses: Iterable[ListItemStatus] = (),
) -> None:
    """Validate a list status change.

    A list may only become ``approved`` once it has items and every one of
    them is closed (approved or rejected).
    """
    if target.value not in allowed_targets(current.value):
        raise InvalidTransitionError("EquipmentList", current.value, target.value)

    if target == ListStatus.APPROVED:
        statuses = list(item_statuses)
        if not statuses:
            raise ValidationError("Cannot approve a list without items", field="status")
        pending = [status.value for status in statuses if status not in CLOSED_ITEM_STATUSES]
        if pending:
            raise ValidationError(
                f"Cannot approve list: {len(pending)} item(s) are still open",
                field="status",
                open_items=len(pending),
            )


def check_list_open(list_id: UUID, status: ListStatus) -> None:
    """Items of an approved list are frozen until the list is reopened."""
    if status == ListStatus.APPROVED:
        raise ValidationError(
            f"List {list_id} is approved; move it back to {ListStatus.TO_APPROVE.value} before changing its items",
            field="status",
            list_id=list_id,
            list_status=status.value,
        )
