"""Storage adapters."""

from consentry.storage.adapter import Adapter, SortBy, Where
from consentry.storage.memory import MemoryAdapter

__all__ = ["Adapter", "MemoryAdapter", "SortBy", "Where"]
