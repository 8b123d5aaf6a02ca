"""
In-memory memory service using keyword matching.
"""

import re

from cordage.domain.events import Event
from cordage.domain.session import Session
from cordage.memory.base import BaseMemoryService, MemoryEntry, SearchMemoryResponse


def _words(text: str) -> set[str]:
    return {word.lower() for word in re.findall(r"[A-Za-z0-9]+", text)}


def _event_words(event: Event) -> set[str]:
    if not event.content:
        return set()
    words: set[str] = set()
    for part in event.content.parts:
        if part.text:
            words |= _words(part.text)
    return words


class InMemoryMemoryService(BaseMemoryService):
    """Matches a query against stored events by shared words."""

    def __init__(self):
        # "app/user" -> session_id -> events
        self._session_events: dict[str, dict[str, list[Event]]] = {}

    async def add_session_to_memory(self, session: Session) -> None:
        key = f"{session.app_name}/{session.user_id}"
        self._session_events.setdefault(key, {})[session.id] = [
            event.model_copy(deep=True)
            for event in session.events
            if event.content and event.content.parts
        ]

    async def search_memory(
        self, *, app_name: str, user_id: str, query: str
    ) -> SearchMemoryResponse:
        query_words = _words(query)
        response = SearchMemoryResponse()
        if not query_words:
            return response

        for events in self._session_events.get(f"{app_name}/{user_id}", {}).values():
            for event in events:
                if query_words & _event_words(event):
                    response.memories.append(
                        MemoryEntry(
                            content=event.content,
                            author=event.author,
                            timestamp=event.timestamp,
                        )
                    )
        return response


__all__ = ["InMemoryMemoryService"]
