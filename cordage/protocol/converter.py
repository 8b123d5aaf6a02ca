"""
Event conversion for the agent-interop protocol.

One internal event becomes zero or more outbound status updates; one
inbound protocol message becomes one internal event.
"""

import json
from typing import TYPE_CHECKING, Any

from cordage.domain.content import Content
from cordage.domain.events import Event, new_event_id
from cordage.flows.functions import REQUEST_CREDENTIAL_FUNCTION_CALL_NAME
from cordage.protocol.models import (
    ProtocolEvent,
    ProtocolMessage,
    ProtocolPart,
    TaskState,
    TaskStatus,
    TaskStatusUpdateEvent,
)
from cordage.protocol.parts import (
    DATA_PART_IS_LONG_RUNNING_KEY,
    DATA_PART_TYPE_FUNCTION_CALL,
    DATA_PART_TYPE_KEY,
    content_part_to_protocol_part,
    metadata_key,
    protocol_part_to_content_part,
)
from cordage.utils.logging import get_logger

if TYPE_CHECKING:
    from cordage.agents.context import InvocationContext

logger = get_logger(__name__)

DEFAULT_ERROR_MESSAGE = "An error occurred during processing"
DEFAULT_REMOTE_AUTHOR = "remote_agent"


def _serialize_metadata_value(value: Any) -> str:
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False, default=str)
    return str(value)


def get_context_metadata(event: Event, ctx: "InvocationContext") -> dict[str, str]:
    metadata = {
        metadata_key("app_name"): ctx.app_name,
        metadata_key("user_id"): ctx.user_id,
        metadata_key("session_id"): ctx.session.id,
        metadata_key("invocation_id"): event.invocation_id,
        metadata_key("author"): event.author,
    }
    optional_fields = {
        "branch": event.branch,
        "custom_metadata": event.custom_metadata,
        "usage_metadata": event.usage_metadata,
        "error_code": event.error_code,
    }
    for name, value in optional_fields.items():
        if value is not None:
            metadata[metadata_key(name)] = _serialize_metadata_value(value)
    return metadata


def _is_long_running_call(part: ProtocolPart) -> bool:
    return (
        part.kind == "data"
        and part.metadata.get(metadata_key(DATA_PART_TYPE_KEY)) == DATA_PART_TYPE_FUNCTION_CALL
        and part.metadata.get(metadata_key(DATA_PART_IS_LONG_RUNNING_KEY)) is True
    )


def convert_event_to_protocol_message(
    event: Event, ctx: "InvocationContext", role: str = "agent"
) -> ProtocolMessage | None:
    """Protocol message for the event's content, None when there is nothing to send."""
    if not event.content or not event.content.parts:
        return None

    parts = []
    for part in event.content.parts:
        protocol_part = content_part_to_protocol_part(part)
        if protocol_part is None:
            continue
        if (
            part.function_call is not None
            and event.long_running_tool_ids
            and part.function_call.id in event.long_running_tool_ids
        ):
            protocol_part.metadata[metadata_key(DATA_PART_IS_LONG_RUNNING_KEY)] = True
        parts.append(protocol_part)

    if not parts:
        return None
    return ProtocolMessage(role=role, parts=parts)


def _create_error_status_event(
    event: Event, ctx: "InvocationContext", task_id: str, context_id: str
) -> TaskStatusUpdateEvent:
    text_part = ProtocolPart(kind="text", text=event.error_message or DEFAULT_ERROR_MESSAGE)
    if event.error_code:
        text_part.metadata[metadata_key("error_code")] = str(event.error_code)
    return TaskStatusUpdateEvent(
        task_id=task_id,
        context_id=context_id,
        status=TaskStatus(
            state=TaskState.FAILED,
            message=ProtocolMessage(role="agent", parts=[text_part]),
        ),
        metadata=get_context_metadata(event, ctx),
    )


def _create_status_update_event(
    message: ProtocolMessage,
    event: Event,
    ctx: "InvocationContext",
    task_id: str,
    context_id: str,
) -> TaskStatusUpdateEvent:
    state = TaskState.WORKING
    long_running_calls = [part for part in message.parts if _is_long_running_call(part)]
    if any(
        (part.data or {}).get("name") == REQUEST_CREDENTIAL_FUNCTION_CALL_NAME
        for part in long_running_calls
    ):
        state = TaskState.AUTH_REQUIRED
    elif long_running_calls:
        state = TaskState.INPUT_REQUIRED

    return TaskStatusUpdateEvent(
        task_id=task_id,
        context_id=context_id,
        status=TaskStatus(state=state, message=message),
        metadata=get_context_metadata(event, ctx),
    )


def convert_event_to_protocol_events(
    event: Event,
    ctx: "InvocationContext",
    task_id: str = "",
    context_id: str = "",
) -> list[ProtocolEvent]:
    """
    Convert one internal event into outbound protocol events.

    Returns:
        A failed status for an error event, followed by a status carrying the
        event's content when it has any
    """
    protocol_events: list[ProtocolEvent] = []
    if event.error_code:
        protocol_events.append(_create_error_status_event(event, ctx, task_id, context_id))

    message = convert_event_to_protocol_message(event, ctx)
    if message is not None:
        protocol_events.append(
            _create_status_update_event(message, event, ctx, task_id, context_id)
        )

    logger.debug(
        "event_converted_to_protocol",
        event_id=event.id,
        count=len(protocol_events),
        states=[e.status.state.value for e in protocol_events],
    )
    return protocol_events


def convert_protocol_message_to_event(
    message: ProtocolMessage,
    ctx: "InvocationContext | None" = None,
    author: str | None = None,
) -> Event:
    """
    Convert one inbound protocol message into an internal event.

    User messages keep the ``user`` role; agent messages become model
    content authored by ``author``. Parts that cannot be converted are
    skipped.
    """
    role = "user" if message.role == "user" else "model"
    parts = []
    long_running_tool_ids = set()
    for protocol_part in message.parts:
        part = protocol_part_to_content_part(protocol_part)
        if part is None:
            continue
        if (
            _is_long_running_call(protocol_part)
            and part.function_call is not None
            and part.function_call.id
        ):
            long_running_tool_ids.add(part.function_call.id)
        parts.append(part)

    if not parts:
        logger.warning("protocol_message_without_parts", message_id=message.message_id)

    return Event(
        invocation_id=ctx.invocation_id if ctx else new_event_id(),
        author=author or ("user" if role == "user" else DEFAULT_REMOTE_AUTHOR),
        branch=ctx.branch if ctx else None,
        content=Content(role=role, parts=parts),
        long_running_tool_ids=long_running_tool_ids or None,
    )


__all__ = [
    "convert_event_to_protocol_events",
    "convert_event_to_protocol_message",
    "convert_protocol_message_to_event",
    "get_context_metadata",
]
