"""Advisory coherence reports for lists, orders and projects."""

from procuretrack.coherence.repository import CoherenceRepository

__all__ = ["CoherenceRepository"]
