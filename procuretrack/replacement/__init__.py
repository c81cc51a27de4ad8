"""Replacement of list items by new catalog choices."""

from procuretrack.replacement.engine import ReplacementEngine

__all__ = ["ReplacementEngine"]
