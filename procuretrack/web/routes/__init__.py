"""procuretrack Web Route Modules.

Each module handles one functional area and exports a ``router``
(APIRouter instance) that ``procuretrack.web.app`` includes. Sessions come
from ``procuretrack.web.dependencies.get_db``; services own their
transactions.
"""

from procuretrack.web.routes import (
    coherence,
    health,
    list_items,
    lists,
    orders,
    planning,
    quotes,
)

__all__ = [
    "coherence",
    "health",
    "list_items",
    "lists",
    "orders",
    "planning",
    "quotes",
]
