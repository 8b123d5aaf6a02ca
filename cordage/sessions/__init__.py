"""Session services."""

from cordage.sessions.base import BaseSessionService, GetSessionConfig
from cordage.sessions.in_memory import InMemorySessionService

__all__ = ["BaseSessionService", "GetSessionConfig", "InMemorySessionService"]
