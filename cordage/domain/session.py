"""Conversation session."""

import time
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from cordage.domain.events import Event
from cordage.domain.state import strip_temp_keys


class Session(BaseModel):
    """
    A conversation between one user and one app.

    Sessions are owned by a session service. The engine appends events
    through that service and never removes history on its own.
    """

    model_config = ConfigDict(extra="forbid")

    id: str
    app_name: str
    user_id: str
    state: dict[str, Any] = Field(default_factory=dict)
    events: list[Event] = Field(default_factory=list)
    last_update_time: float = Field(default_factory=time.time)

    def apply_delta(self, delta: dict[str, Any]) -> None:
        """Merge a state delta into committed state, dropping temp: keys."""
        self.state.update(strip_temp_keys(delta))


__all__ = ["Session"]
