"""Equipment lists, list items, review workflow and supplier quotes."""

from procuretrack.lists.service import (
    add_item_from_catalog,
    add_item_from_planned,
    create_list,
    delete_list_item,
    list_summary,
    transition_list,
    transition_list_item,
    update_list_item,
)

__all__ = [
    "add_item_from_catalog",
    "add_item_from_planned",
    "create_list",
    "delete_list_item",
    "list_summary",
    "transition_list",
    "transition_list_item",
    "update_list_item",
]
