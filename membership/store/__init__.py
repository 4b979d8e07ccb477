"""
Entity Store
Abstract persistence plus the in-memory and SQL implementations
"""

from membership.store.base import EntityKind, EntityStore, Range, StaleEntityError
from membership.store.memory import InMemoryEntityStore
from membership.store.sql import SqlEntityStore

__all__ = [
    "EntityKind",
    "EntityStore",
    "Range",
    "StaleEntityError",
    "InMemoryEntityStore",
    "SqlEntityStore",
]
