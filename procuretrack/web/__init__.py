"""HTTP API for procuretrack."""
