"""Model response records."""

from typing import Any

from pydantic import BaseModel, ConfigDict

from cordage.domain.content import Content


class LlmResponse(BaseModel):
    """
    One response, or one streamed chunk, produced by a model backend.

    Attributes:
        content: Model output, None for pure error or control responses
        partial: True for a mid-stream chunk that will be superseded
        turn_complete: Set by streaming backends once the turn is over
        error_code: Backend finish/error code, None on success
        error_message: Human readable error detail
        interrupted: The backend stopped generating before finishing
        custom_metadata: Free-form annotations from callbacks
        usage_metadata: Token counts reported by the backend
    """

    model_config = ConfigDict(extra="forbid")

    content: Content | None = None
    partial: bool | None = None
    turn_complete: bool | None = None
    error_code: str | None = None
    error_message: str | None = None
    interrupted: bool | None = None
    custom_metadata: dict[str, Any] | None = None
    usage_metadata: dict[str, Any] | None = None


__all__ = ["LlmResponse"]
