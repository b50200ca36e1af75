"""Test helpers shared across the unit tests."""

from .fake_table_client import InMemoryTableClient

__all__ = ["InMemoryTableClient"]
