"""
Protocol adapter for agent-interop transports.
"""

from cordage.protocol.aggregator import TaskResultAggregator
from cordage.protocol.converter import (
    convert_event_to_protocol_events,
    convert_event_to_protocol_message,
    convert_protocol_message_to_event,
)
from cordage.protocol.models import (
    ProtocolEvent,
    ProtocolMessage,
    ProtocolPart,
    TaskArtifactUpdateEvent,
    TaskState,
    TaskStatus,
    TaskStatusUpdateEvent,
)
from cordage.protocol.parts import from_context_id, to_context_id

__all__ = [
    "ProtocolEvent",
    "ProtocolMessage",
    "ProtocolPart",
    "TaskArtifactUpdateEvent",
    "TaskResultAggregator",
    "TaskState",
    "TaskStatus",
    "TaskStatusUpdateEvent",
    "convert_event_to_protocol_events",
    "convert_event_to_protocol_message",
    "convert_protocol_message_to_event",
    "from_context_id",
    "to_context_id",
]
