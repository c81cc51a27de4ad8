"""procuretrack: equipment procurement lifecycle and quantity reconciliation."""

__version__ = "0.1.0"
