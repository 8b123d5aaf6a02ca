"""
Session service interface.
"""

from abc import ABC, abstractmethod

from pydantic import BaseModel

from cordage.domain.events import Event
from cordage.domain.session import Session
from cordage.utils.logging import get_logger

logger = get_logger(__name__)


class GetSessionConfig(BaseModel):
    """Filters applied to the event log returned by get_session."""

    num_recent_events: int | None = None
    after_timestamp: float | None = None


class BaseSessionService(ABC):
    """
    Session service interface.
    Responsible for session persistence and the append-only event log.
    """

    @abstractmethod
    async def create_session(
        self,
        *,
        app_name: str,
        user_id: str,
        state: dict | None = None,
        session_id: str | None = None,
    ) -> Session:
        """Create Session"""
        pass

    @abstractmethod
    async def get_session(
        self,
        *,
        app_name: str,
        user_id: str,
        session_id: str,
        config: GetSessionConfig | None = None,
    ) -> Session | None:
        """Get Session, None when it does not exist"""
        pass

    @abstractmethod
    async def list_sessions(self, *, app_name: str, user_id: str) -> list[Session]:
        """List Sessions (without events)"""
        pass

    @abstractmethod
    async def delete_session(self, *, app_name: str, user_id: str, session_id: str) -> None:
        """Delete Session"""
        pass

    async def append_event(self, session: Session, event: Event) -> Event:
        """
        Append an event to the live session object.

        Partial events are returned untouched and never recorded. Subclasses
        call this first and then persist the event to their own storage.

        Returns:
            The appended event
        """
        if event.partial:
            logger.debug("partial_event_not_appended", event_id=event.id)
            return event

        self._update_session_state(session, event)
        session.events.append(event)
        return event

    def _update_session_state(self, session: Session, event: Event) -> None:
        if not event.actions.state_delta:
            return
        session.apply_delta(event.actions.state_delta)


__all__ = ["BaseSessionService", "GetSessionConfig"]
