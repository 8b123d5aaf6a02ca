"""
Domain records: content, events, actions, state and sessions.
"""

from cordage.domain.actions import EventActions
from cordage.domain.auth import AuthConfig
from cordage.domain.content import (
    Blob,
    CodeExecutionResult,
    Content,
    FunctionCall,
    FunctionResponse,
    Part,
)
from cordage.domain.events import Event, new_event_id
from cordage.domain.session import Session
from cordage.domain.state import APP_PREFIX, TEMP_PREFIX, USER_PREFIX, State, strip_temp_keys

__all__ = [
    "AuthConfig",
    "Blob",
    "CodeExecutionResult",
    "Content",
    "Event",
    "EventActions",
    "FunctionCall",
    "FunctionResponse",
    "Part",
    "Session",
    "State",
    "APP_PREFIX",
    "USER_PREFIX",
    "TEMP_PREFIX",
    "new_event_id",
    "strip_temp_keys",
]
