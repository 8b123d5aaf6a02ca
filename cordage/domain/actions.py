"""Side effects declared by an event."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from cordage.domain.auth import AuthConfig


class EventActions(BaseModel):
    """
    Side effects attached to an event.

    Applied by the session service when the event is appended: state_delta is
    merged into session state and artifact_delta records new artifact versions.
    """

    model_config = ConfigDict(extra="forbid")

    skip_summarization: bool | None = None
    state_delta: dict[str, Any] = Field(default_factory=dict)
    artifact_delta: dict[str, int] = Field(default_factory=dict)
    transfer_to_agent: str | None = None
    escalate: bool | None = None
    requested_auth_configs: dict[str, AuthConfig] = Field(default_factory=dict)


__all__ = ["EventActions"]
