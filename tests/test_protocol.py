"""
Tests for the agent-interop protocol adapter.
"""

import json

import pytest

from cordage.agents import LlmAgent
from cordage.domain import AuthConfig, Blob, Content, Event, EventActions, Part
from cordage.flows.functions import generate_auth_event
from cordage.protocol import (
    ProtocolMessage,
    ProtocolPart,
    TaskArtifactUpdateEvent,
    TaskResultAggregator,
    TaskState,
    TaskStatus,
    TaskStatusUpdateEvent,
    convert_event_to_protocol_events,
    convert_protocol_message_to_event,
    from_context_id,
    to_context_id,
)
from cordage.protocol.parts import content_part_to_protocol_part, protocol_part_to_content_part

from conftest import ScriptedLlm


async def agent_context(make_context):
    return await make_context(LlmAgent(name="assistant", model=ScriptedLlm()))


def status(state: TaskState, text: str = "") -> TaskStatusUpdateEvent:
    message = ProtocolMessage(parts=[ProtocolPart(kind="text", text=text)]) if text else None
    return TaskStatusUpdateEvent(status=TaskStatus(state=state, message=message))


def test_context_id_round_trip():
    context_id = to_context_id("app", "u1", "s1")
    assert context_id == "cordage:app:u1:s1"
    assert from_context_id(context_id) == ("app", "u1", "s1")


@pytest.mark.parametrize(
    "context_id", [None, "", "other:app:u1:s1", "cordage:app:u1", "cordage::u:s"]
)
def test_malformed_context_id(context_id):
    assert from_context_id(context_id) == (None, None, None)


def test_part_conversion_keeps_payloads():
    call_part = content_part_to_protocol_part(Part.from_function_call("f", {"a": 1}, id="c1"))
    assert call_part.kind == "data"
    assert call_part.metadata == {"cordage_type": "function_call"}
    assert protocol_part_to_content_part(call_part).function_call.args == {"a": 1}

    blob_part = content_part_to_protocol_part(
        Part(inline_data=Blob(mime_type="image/png", data=b"\x89PNG"))
    )
    assert blob_part.kind == "file"
    assert protocol_part_to_content_part(blob_part).inline_data.data == b"\x89PNG"

    thought = content_part_to_protocol_part(Part(text="hmm", thought=True))
    assert thought.metadata == {"cordage_thought": True}


def test_untyped_data_part_becomes_json_text():
    part = protocol_part_to_content_part(ProtocolPart(kind="data", data={"k": "v"}))
    assert json.loads(part.text) == {"k": "v"}


@pytest.mark.asyncio
async def test_text_event_becomes_working_status(make_context):
    ctx = await agent_context(make_context)
    event = Event(
        invocation_id=ctx.invocation_id,
        author="assistant",
        content=Content.from_text("hello", role="model"),
    )

    (update,) = convert_event_to_protocol_events(event, ctx, task_id="t1", context_id="c1")

    assert update.status.state is TaskState.WORKING
    assert update.task_id == "t1"
    assert update.status.message.parts[0].text == "hello"
    assert update.metadata["cordage_app_name"] == "test_app"
    assert update.metadata["cordage_user_id"] == "user_1"
    assert update.metadata["cordage_session_id"] == ctx.session.id
    assert update.metadata["cordage_author"] == "assistant"
    assert "cordage_branch" not in update.metadata


@pytest.mark.asyncio
async def test_error_event_becomes_failed_status(make_context):
    ctx = await agent_context(make_context)
    event = Event(author="assistant", error_code="MODEL_NOT_FOUND", error_message="no model")

    (update,) = convert_event_to_protocol_events(event, ctx)

    assert update.status.state is TaskState.FAILED
    assert update.status.message.parts[0].text == "no model"
    assert update.status.message.parts[0].metadata["cordage_error_code"] == "MODEL_NOT_FOUND"
    assert update.metadata["cordage_error_code"] == "MODEL_NOT_FOUND"


@pytest.mark.asyncio
async def test_long_running_call_requires_input(make_context):
    ctx = await agent_context(make_context)
    event = Event(
        author="assistant",
        content=Content(
            role="model", parts=[Part.from_function_call("ask_approval", {}, id="c1")]
        ),
        long_running_tool_ids={"c1"},
    )

    (update,) = convert_event_to_protocol_events(event, ctx)

    assert update.status.state is TaskState.INPUT_REQUIRED
    assert update.status.message.parts[0].metadata["cordage_is_long_running"] is True


@pytest.mark.asyncio
async def test_auth_event_requires_auth(make_context):
    ctx = await agent_context(make_context)
    response_event = Event(
        author="assistant",
        actions=EventActions(requested_auth_configs={"c1": AuthConfig(auth_scheme={"t": 1})}),
    )
    auth_event = generate_auth_event(ctx, response_event)

    (update,) = convert_event_to_protocol_events(auth_event, ctx)

    assert update.status.state is TaskState.AUTH_REQUIRED


@pytest.mark.asyncio
async def test_event_without_content_produces_nothing(make_context):
    ctx = await agent_context(make_context)
    event = Event(author="assistant", actions=EventActions(state_delta={"k": 1}))
    assert convert_event_to_protocol_events(event, ctx) == []


@pytest.mark.asyncio
async def test_inbound_message_becomes_event(make_context):
    ctx = await agent_context(make_context)
    message = ProtocolMessage(
        role="user",
        parts=[
            ProtocolPart(kind="text", text="here you go"),
            ProtocolPart(
                kind="data",
                data={"id": "c1", "name": "ask_approval", "response": {"approved": True}},
                metadata={"cordage_type": "function_response"},
            ),
        ],
    )

    event = convert_protocol_message_to_event(message, ctx)

    assert event.author == "user"
    assert event.invocation_id == ctx.invocation_id
    assert event.content.role == "user"
    assert event.content.parts[0].text == "here you go"
    assert event.get_function_responses()[0].response == {"approved": True}
    assert event.long_running_tool_ids is None


def test_inbound_long_running_call_is_marked():
    message = ProtocolMessage(
        role="agent",
        parts=[
            ProtocolPart(
                kind="data",
                data={"id": "c9", "name": "remote_job", "args": {}},
                metadata={"cordage_type": "function_call", "cordage_is_long_running": True},
            )
        ],
    )

    event = convert_protocol_message_to_event(message, author="remote")

    assert event.author == "remote"
    assert event.content.role == "model"
    assert event.long_running_tool_ids == {"c9"}


def test_aggregator_precedence_and_rewrite():
    aggregator = TaskResultAggregator()
    updates = [
        status(TaskState.WORKING, "step 1"),
        status(TaskState.INPUT_REQUIRED, "need input"),
        status(TaskState.WORKING, "step 2"),
        status(TaskState.AUTH_REQUIRED, "need auth"),
        status(TaskState.INPUT_REQUIRED, "more input"),
    ]

    for update in updates:
        aggregator.process_event(update)

    assert aggregator.task_state is TaskState.AUTH_REQUIRED
    assert aggregator.task_status_message.parts[0].text == "need auth"
    assert all(update.status.state is TaskState.WORKING for update in updates)

    aggregator.process_event(status(TaskState.FAILED, "broken"))
    assert aggregator.final_state is TaskState.FAILED
    (final,) = aggregator.final_events(task_id="t1")
    assert final.final is True
    assert final.status.state is TaskState.FAILED
    assert final.status.message.parts[0].text == "broken"


def test_aggregator_completes_working_task():
    aggregator = TaskResultAggregator()
    aggregator.process_event(status(TaskState.WORKING, "partial"))
    aggregator.process_event(status(TaskState.WORKING, "final answer"))

    assert aggregator.final_state is TaskState.COMPLETED

    artifact, final = aggregator.final_events(task_id="t1", context_id="c1")
    assert isinstance(artifact, TaskArtifactUpdateEvent)
    assert artifact.parts[0].text == "final answer"
    assert final.status.state is TaskState.COMPLETED
    assert final.final is True
