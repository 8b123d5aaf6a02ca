"""
In-memory session service, for tests and local runs.
"""

import time
from typing import Any
from uuid import uuid4

from cordage.domain.events import Event
from cordage.domain.session import Session
from cordage.domain.state import APP_PREFIX, TEMP_PREFIX, USER_PREFIX
from cordage.errors import SessionNotFoundError
from cordage.sessions.base import BaseSessionService, GetSessionConfig
from cordage.utils.logging import get_logger

logger = get_logger(__name__)


class InMemorySessionService(BaseSessionService):
    """
    In-memory session service.

    Sessions are stored per app and user. ``app:`` and ``user:`` state lives
    in separate tables (without its prefix) and is merged back into every
    session returned, so it is shared across sessions of the same app or
    user. Returned sessions are deep copies; callers never alias storage.
    """

    def __init__(self):
        # app_name -> user_id -> session_id -> Session
        self._sessions: dict[str, dict[str, dict[str, Session]]] = {}
        # app_name -> key -> value
        self._app_state: dict[str, dict[str, Any]] = {}
        # app_name -> user_id -> key -> value
        self._user_state: dict[str, dict[str, dict[str, Any]]] = {}

    async def create_session(
        self,
        *,
        app_name: str,
        user_id: str,
        state: dict | None = None,
        session_id: str | None = None,
    ) -> Session:
        session_id = (session_id or "").strip() or str(uuid4())
        session_state: dict[str, Any] = {}
        for key, value in (state or {}).items():
            if key.startswith(APP_PREFIX):
                self._app_state.setdefault(app_name, {})[key.removeprefix(APP_PREFIX)] = value
            elif key.startswith(USER_PREFIX):
                self._user_state.setdefault(app_name, {}).setdefault(user_id, {})[
                    key.removeprefix(USER_PREFIX)
                ] = value
            elif not key.startswith(TEMP_PREFIX):
                session_state[key] = value

        session = Session(
            id=session_id,
            app_name=app_name,
            user_id=user_id,
            state=session_state,
            last_update_time=time.time(),
        )
        self._sessions.setdefault(app_name, {}).setdefault(user_id, {})[session_id] = session
        logger.debug("session_created", app_name=app_name, user_id=user_id, session_id=session_id)

        return self._merge_state(app_name, user_id, session.model_copy(deep=True))

    async def get_session(
        self,
        *,
        app_name: str,
        user_id: str,
        session_id: str,
        config: GetSessionConfig | None = None,
    ) -> Session | None:
        stored = self._sessions.get(app_name, {}).get(user_id, {}).get(session_id)
        if stored is None:
            return None

        session = stored.model_copy(deep=True)
        if config:
            if config.num_recent_events is not None:
                if config.num_recent_events <= 0:
                    session.events = []
                else:
                    session.events = session.events[-config.num_recent_events :]
            if config.after_timestamp is not None:
                session.events = [
                    event for event in session.events if event.timestamp >= config.after_timestamp
                ]

        return self._merge_state(app_name, user_id, session)

    async def list_sessions(self, *, app_name: str, user_id: str) -> list[Session]:
        sessions = []
        for stored in self._sessions.get(app_name, {}).get(user_id, {}).values():
            copied = stored.model_copy(deep=True)
            copied.events = []
            sessions.append(self._merge_state(app_name, user_id, copied))
        return sessions

    async def delete_session(self, *, app_name: str, user_id: str, session_id: str) -> None:
        user_sessions = self._sessions.get(app_name, {}).get(user_id, {})
        if user_sessions.pop(session_id, None) is not None:
            logger.debug("session_deleted", app_name=app_name, user_id=user_id, session_id=session_id)

    async def append_event(self, session: Session, event: Event) -> Event:
        await super().append_event(session, event)
        if event.partial:
            return event

        session.last_update_time = event.timestamp

        stored = (
            self._sessions.get(session.app_name, {}).get(session.user_id, {}).get(session.id)
        )
        if stored is None:
            raise SessionNotFoundError(f"Session not found: {session.id}")

        for key, value in event.actions.state_delta.items():
            if key.startswith(APP_PREFIX):
                self._app_state.setdefault(session.app_name, {})[
                    key.removeprefix(APP_PREFIX)
                ] = value
            elif key.startswith(USER_PREFIX):
                self._user_state.setdefault(session.app_name, {}).setdefault(
                    session.user_id, {}
                )[key.removeprefix(USER_PREFIX)] = value
            elif not key.startswith(TEMP_PREFIX):
                stored.state[key] = value

        stored.events.append(event.model_copy(deep=True))
        stored.last_update_time = event.timestamp

        logger.debug(
            "event_appended",
            session_id=session.id,
            event_id=event.id,
            author=event.author,
            state_keys=list(event.actions.state_delta.keys()),
        )
        return event

    def _merge_state(self, app_name: str, user_id: str, session: Session) -> Session:
        for key, value in self._app_state.get(app_name, {}).items():
            session.state[APP_PREFIX + key] = value
        for key, value in self._user_state.get(app_name, {}).get(user_id, {}).items():
            session.state[USER_PREFIX + key] = value
        return session


__all__ = ["InMemorySessionService"]
