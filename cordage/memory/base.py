"""
Memory service interface.
"""

from abc import ABC, abstractmethod

from pydantic import BaseModel, Field

from cordage.domain.content import Content
from cordage.domain.session import Session


class MemoryEntry(BaseModel):
    content: Content
    author: str | None = None
    timestamp: float | None = None


class SearchMemoryResponse(BaseModel):
    memories: list[MemoryEntry] = Field(default_factory=list)


class BaseMemoryService(ABC):
    """Long-term memory across sessions of one user."""

    @abstractmethod
    async def add_session_to_memory(self, session: Session) -> None:
        """Ingest a session's events"""
        pass

    @abstractmethod
    async def search_memory(
        self, *, app_name: str, user_id: str, query: str
    ) -> SearchMemoryResponse:
        """Search ingested events for a query"""
        pass


__all__ = ["BaseMemoryService", "MemoryEntry", "SearchMemoryResponse"]
