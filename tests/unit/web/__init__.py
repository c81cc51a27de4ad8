"""Unit tests for procuretrack web route modules.

Each route module has a corresponding test file. Services and engines are
patched where the route module imports them, and the database session is
replaced through ``app.dependency_overrides``.
"""
