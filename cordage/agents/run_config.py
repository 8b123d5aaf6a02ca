"""Per-run options."""

import sys
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from cordage.config import settings
from cordage.utils.logging import get_logger

logger = get_logger(__name__)


class StreamingMode(str, Enum):
    """How model output is delivered."""

    NONE = "none"
    SSE = "sse"


class RunConfig(BaseModel):
    """
    Options for one top-level run.

    Attributes:
        streaming_mode: SSE lets model backends emit partial chunks
        max_llm_calls: Model call ceiling for the invocation, <= 0 disables it
        save_input_blobs_as_artifacts: Store inline blobs of the user message as artifacts
        custom_metadata: Free-form data for plugins
    """

    model_config = ConfigDict(extra="forbid")

    streaming_mode: StreamingMode = StreamingMode.NONE
    max_llm_calls: int = Field(default_factory=lambda: settings.max_llm_calls)
    save_input_blobs_as_artifacts: bool = False
    custom_metadata: dict[str, Any] | None = None

    @field_validator("max_llm_calls")
    @classmethod
    def _validate_max_llm_calls(cls, value: int) -> int:
        if value >= sys.maxsize:
            raise ValueError(f"max_llm_calls should be less than {sys.maxsize}.")
        if value <= 0:
            logger.warning("llm_call_limit_disabled", max_llm_calls=value)
        return value


__all__ = ["RunConfig", "StreamingMode"]
