"""Store interface and implementations."""

from carecircle.store.base import CareStore, Embed, Row
from carecircle.store.memory import MemoryStore
from carecircle.store.sql import SqlAlchemyStore

__all__ = ["CareStore", "Embed", "MemoryStore", "Row", "SqlAlchemyStore"]
