"""Memory services."""

from cordage.memory.base import BaseMemoryService, MemoryEntry, SearchMemoryResponse
from cordage.memory.in_memory import InMemoryMemoryService

__all__ = ["BaseMemoryService", "InMemoryMemoryService", "MemoryEntry", "SearchMemoryResponse"]
