"""Planned equipment requirements derived from approved quotations."""
