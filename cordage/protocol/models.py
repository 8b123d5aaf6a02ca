"""
Wire models of the agent-interop protocol.

Only the subset the adapter produces and consumes: messages made of text,
data and file parts, and task status updates.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Literal
from uuid import uuid4

from pydantic import BaseModel, Field


class TaskState(str, Enum):
    SUBMITTED = "submitted"
    WORKING = "working"
    INPUT_REQUIRED = "input-required"
    AUTH_REQUIRED = "auth-required"
    COMPLETED = "completed"
    FAILED = "failed"


class ProtocolPart(BaseModel):
    """
    One message part.

    ``kind`` selects the payload: ``text`` uses text, ``data`` uses data,
    ``file`` uses file_bytes (base64) or file_uri with mime_type.
    """

    kind: Literal["text", "data", "file"]
    text: str | None = None
    data: dict[str, Any] | None = None
    file_bytes: str | None = None
    file_uri: str | None = None
    mime_type: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)


class ProtocolMessage(BaseModel):
    kind: Literal["message"] = "message"
    message_id: str = Field(default_factory=lambda: str(uuid4()))
    role: Literal["user", "agent"] = "agent"
    parts: list[ProtocolPart] = Field(default_factory=list)
    context_id: str | None = None
    task_id: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)


class TaskStatus(BaseModel):
    state: TaskState
    message: ProtocolMessage | None = None
    timestamp: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())


class TaskStatusUpdateEvent(BaseModel):
    kind: Literal["status-update"] = "status-update"
    task_id: str = ""
    context_id: str = ""
    status: TaskStatus
    metadata: dict[str, Any] = Field(default_factory=dict)
    final: bool = False


class TaskArtifactUpdateEvent(BaseModel):
    kind: Literal["artifact-update"] = "artifact-update"
    task_id: str = ""
    context_id: str = ""
    artifact_id: str
    parts: list[ProtocolPart] = Field(default_factory=list)
    last_chunk: bool = True
    metadata: dict[str, Any] = Field(default_factory=dict)


ProtocolEvent = TaskStatusUpdateEvent | TaskArtifactUpdateEvent


__all__ = [
    "ProtocolEvent",
    "ProtocolMessage",
    "ProtocolPart",
    "TaskArtifactUpdateEvent",
    "TaskState",
    "TaskStatus",
    "TaskStatusUpdateEvent",
]
