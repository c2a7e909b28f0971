"""Entity Store: persistence contract and backends."""

from clinicdesk.store.base import EntityStore
from clinicdesk.store.memory import MemoryEntityStore

__all__ = ["EntityStore", "MemoryEntityStore"]
