"""
End-to-end tests of the runner driving LLM agents with a scripted model.
"""

import asyncio

import pytest

from cordage.agents import LlmAgent, RunConfig, SequentialAgent, StreamingMode
from cordage.domain import AuthConfig, Blob, Content, Part
from cordage.errors import SessionNotFoundError
from cordage.flows.functions import REQUEST_CREDENTIAL_FUNCTION_CALL_NAME
from cordage.models import LlmResponse
from cordage.plugins import BasePlugin
from cordage.runtime import InMemoryRunner
from cordage.tools import LongRunningFunctionTool, transfer_to_agent_tool

from conftest import EchoAgent, ScriptedLlm, call_response, text_response

APP = "weather_app"
USER = "u1"


async def new_session(runner: InMemoryRunner) -> str:
    session = await runner.session_service.create_session(app_name=runner.app_name, user_id=USER)
    return session.id


async def run(runner: InMemoryRunner, session_id: str, message, **kwargs) -> list:
    if isinstance(message, str):
        message = Content.from_text(message)
    return [
        event
        async for event in runner.run_async(
            user_id=USER, session_id=session_id, new_message=message, **kwargs
        )
    ]


async def stored_session(runner: InMemoryRunner, session_id: str):
    return await runner.session_service.get_session(
        app_name=runner.app_name, user_id=USER, session_id=session_id
    )


def get_weather(city: str) -> dict:
    """Return the forecast for a city."""
    return {"city": city, "forecast": "sunny"}


@pytest.mark.asyncio
async def test_tool_call_then_final_answer():
    llm = ScriptedLlm(
        script=[
            [call_response(("get_weather", {"city": "Paris"}))],
            [text_response("It is sunny in Paris")],
        ]
    )
    agent = LlmAgent(
        name="assistant",
        model=llm,
        instruction="Answer about {topic?}",
        tools=[get_weather],
        output_key="answer",
    )
    runner = InMemoryRunner(agent, app_name=APP)
    session_id = await new_session(runner)

    events = await run(runner, session_id, "Weather in Paris?")

    assert len(events) == 3
    call_event, response_event, final_event = events
    (call,) = call_event.get_function_calls()
    assert call.id.startswith("cdg-")
    assert response_event.get_function_responses()[0].id == call.id
    assert response_event.get_function_responses()[0].response == {
        "city": "Paris",
        "forecast": "sunny",
    }
    assert final_event.is_final_response()
    assert {event.invocation_id for event in events} == {call_event.invocation_id}

    # Second model call sees user message, call and response, without engine ids
    second_request = llm.requests[1]
    assert len(second_request.contents) == 3
    assert second_request.contents[1].parts[0].function_call.id is None
    assert second_request.system_instruction == "Answer about "
    assert second_request.tool_declarations[0]["name"] == "get_weather"

    session = await stored_session(runner, session_id)
    assert [event.author for event in session.events] == ["user"] + ["assistant"] * 3
    assert session.state["answer"] == "It is sunny in Paris"


@pytest.mark.asyncio
async def test_missing_session_raises():
    runner = InMemoryRunner(LlmAgent(name="assistant", model=ScriptedLlm()), app_name=APP)
    with pytest.raises(SessionNotFoundError):
        await run(runner, "no-such-session", "hi")


@pytest.mark.asyncio
async def test_llm_call_budget_exceeded_becomes_error_event():
    llm = ScriptedLlm(
        script=[
            [call_response(("get_weather", {"city": "Oslo"}))],
            [text_response("never reached")],
        ]
    )
    runner = InMemoryRunner(
        LlmAgent(name="assistant", model=llm, tools=[get_weather]), app_name=APP
    )
    session_id = await new_session(runner)

    events = await run(runner, session_id, "Weather?", run_config=RunConfig(max_llm_calls=1))

    assert len(events) == 3
    assert events[-1].error_code == "LLM_CALLS_LIMIT_EXCEEDED"
    assert "limit of 1" in events[-1].error_message
    assert len(llm.requests) == 1

    session = await stored_session(runner, session_id)
    assert session.events[-1].error_code == "LLM_CALLS_LIMIT_EXCEEDED"


@pytest.mark.asyncio
async def test_unrecovered_model_error_becomes_error_event():
    llm = ScriptedLlm(script=[RuntimeError("model offline")])
    runner = InMemoryRunner(LlmAgent(name="assistant", model=llm), app_name=APP)
    session_id = await new_session(runner)

    events = await run(runner, session_id, "hi")

    assert len(events) == 1
    assert events[0].error_code == "RuntimeError"
    assert events[0].error_message == "model offline"
    assert events[0].author == "assistant"


@pytest.mark.asyncio
async def test_model_error_recovered_by_callback():
    def fallback(callback_context, llm_request, error):
        return LlmResponse(content=Content.from_text(f"fallback: {error}", role="model"))

    llm = ScriptedLlm(script=[RuntimeError("model offline")])
    runner = InMemoryRunner(
        LlmAgent(name="assistant", model=llm, on_model_error_callback=fallback), app_name=APP
    )
    session_id = await new_session(runner)

    events = await run(runner, session_id, "hi")

    assert [event.content.parts[0].text for event in events] == ["fallback: model offline"]


@pytest.mark.asyncio
async def test_before_model_callback_skips_model_and_budget():
    def cached(callback_context, llm_request):
        return LlmResponse(content=Content.from_text("cached answer", role="model"))

    llm = ScriptedLlm()
    runner = InMemoryRunner(
        LlmAgent(name="assistant", model=llm, before_model_callback=cached), app_name=APP
    )
    session_id = await new_session(runner)

    events = await run(runner, session_id, "hi", run_config=RunConfig(max_llm_calls=1))

    assert events[0].content.parts[0].text == "cached answer"
    assert llm.requests == []


@pytest.mark.asyncio
async def test_streaming_partials_are_yielded_but_not_stored():
    llm = ScriptedLlm(
        script=[
            [
                text_response("Hel", partial=True),
                text_response("lo", partial=True),
                text_response("Hello"),
            ]
        ]
    )
    runner = InMemoryRunner(LlmAgent(name="assistant", model=llm), app_name=APP)
    session_id = await new_session(runner)

    events = await run(
        runner, session_id, "hi", run_config=RunConfig(streaming_mode=StreamingMode.SSE)
    )

    assert [event.partial for event in events] == [True, True, None]
    session = await stored_session(runner, session_id)
    assert len(session.events) == 2
    assert session.events[-1].content.parts[0].text == "Hello"


@pytest.mark.asyncio
async def test_transfer_and_follow_up_routing():
    """After a transfer the helper answers, and keeps the next user turn"""
    coordinator_llm = ScriptedLlm(
        script=[[call_response(("transfer_to_agent", {"agent_name": "helper"}))]]
    )
    helper_llm = ScriptedLlm(script=[[text_response("helper here")], [text_response("again")]])
    helper = LlmAgent(name="helper", model=helper_llm, description="Handles everything")
    coordinator = LlmAgent(
        name="coordinator",
        model=coordinator_llm,
        tools=[transfer_to_agent_tool],
        sub_agents=[helper],
    )
    runner = InMemoryRunner(coordinator, app_name=APP)
    session_id = await new_session(runner)

    events = await run(runner, session_id, "I need help")

    assert [event.author for event in events] == ["coordinator", "coordinator", "helper"]
    assert events[1].actions.transfer_to_agent == "helper"
    assert events[2].content.parts[0].text == "helper here"

    # The helper saw the coordinator's turn as context prose
    helper_contents = helper_llm.requests[0].contents
    assert any(
        part.text and part.text.startswith("[coordinator] called tool `transfer_to_agent`")
        for content in helper_contents
        for part in content.parts
    )

    follow_up = await run(runner, session_id, "thanks")
    assert [event.author for event in follow_up] == ["helper"]
    assert len(coordinator_llm.requests) == 1


@pytest.mark.asyncio
async def test_disallow_transfer_to_parent_returns_to_root():
    root_llm = ScriptedLlm(
        script=[
            [call_response(("transfer_to_agent", {"agent_name": "helper"}))],
            [text_response("root again")],
        ]
    )
    helper = LlmAgent(
        name="helper",
        model=ScriptedLlm(script=[[text_response("helped")]]),
        disallow_transfer_to_parent=True,
    )
    root = LlmAgent(
        name="root", model=root_llm, tools=[transfer_to_agent_tool], sub_agents=[helper]
    )
    runner = InMemoryRunner(root, app_name=APP)
    session_id = await new_session(runner)

    await run(runner, session_id, "first")
    follow_up = await run(runner, session_id, "second")

    assert [event.author for event in follow_up] == ["root"]


@pytest.mark.asyncio
async def test_long_running_tool_pauses_and_resumes():
    def ask_approval(amount: int) -> None:
        """Ask a human to approve a payment."""
        return None

    llm = ScriptedLlm(
        script=[
            [call_response(("ask_approval", {"amount": 100}))],
            [text_response("Payment approved")],
        ]
    )
    agent = LlmAgent(name="cashier", model=llm, tools=[LongRunningFunctionTool(ask_approval)])
    root = SequentialAgent(name="root", sub_agents=[agent])
    runner = InMemoryRunner(root, app_name=APP)
    session_id = await new_session(runner)

    events = await run(runner, session_id, "pay 100")

    assert len(events) == 1
    (call,) = events[0].get_function_calls()
    assert events[0].long_running_tool_ids == {call.id}

    answer = Content(
        role="user",
        parts=[Part.from_function_response("ask_approval", {"approved": True}, id=call.id)],
    )
    resumed = await run(runner, session_id, answer)

    # The response goes straight back to the agent that made the call
    assert [event.author for event in resumed] == ["cashier"]
    assert resumed[0].content.parts[0].text == "Payment approved"
    last_contents = llm.requests[-1].contents
    assert last_contents[-1].parts[0].function_response.response == {"approved": True}


@pytest.mark.asyncio
async def test_credential_request_yields_auth_event_last():
    def read_calendar(tool_context) -> dict:
        tool_context.request_credential(AuthConfig(auth_scheme={"type": "oauth2"}))
        return {"status": "pending"}

    llm = ScriptedLlm(script=[[call_response(("read_calendar", {}))]])
    runner = InMemoryRunner(
        LlmAgent(name="assistant", model=llm, tools=[read_calendar]), app_name=APP
    )
    session_id = await new_session(runner)

    events = await run(runner, session_id, "What's on today?")

    assert len(events) == 3
    assert events[1].get_function_responses()[0].response == {"status": "pending"}
    (request_call,) = events[2].get_function_calls()
    assert request_call.name == REQUEST_CREDENTIAL_FUNCTION_CALL_NAME
    assert len(llm.requests) == 1


class ShortCircuitPlugin(BasePlugin):
    async def before_run_callback(self, *, invocation_context):
        return Content.from_text("maintenance mode", role="model")


class RewritePlugin(BasePlugin):
    def __init__(self):
        super().__init__("rewrite")
        self.after_run_calls = 0

    async def on_user_message_callback(self, *, invocation_context, user_message):
        return Content.from_text("rewritten")

    async def on_event_callback(self, *, invocation_context, event):
        return event.model_copy(update={"custom_metadata": {"seen": True}})

    async def after_run_callback(self, *, invocation_context):
        self.after_run_calls += 1


class BrokenPlugin(BasePlugin):
    async def before_run_callback(self, *, invocation_context):
        raise ValueError("boom")


@pytest.mark.asyncio
async def test_before_run_plugin_short_circuits():
    llm = ScriptedLlm()
    runner = InMemoryRunner(
        LlmAgent(name="assistant", model=llm),
        app_name=APP,
        plugins=[ShortCircuitPlugin("gate")],
    )
    session_id = await new_session(runner)

    events = await run(runner, session_id, "hi")

    assert len(events) == 1
    assert events[0].author == "assistant"
    assert events[0].content.parts[0].text == "maintenance mode"
    assert llm.requests == []
    session = await stored_session(runner, session_id)
    assert len(session.events) == 2


@pytest.mark.asyncio
async def test_plugins_rewrite_message_and_events():
    plugin = RewritePlugin()
    runner = InMemoryRunner(EchoAgent("echo"), app_name=APP, plugins=[plugin])
    session_id = await new_session(runner)

    events = await run(runner, session_id, "original")

    assert events[0].custom_metadata == {"seen": True}
    assert plugin.after_run_calls == 1
    session = await stored_session(runner, session_id)
    assert session.events[0].content.parts[0].text == "rewritten"
    assert session.events[1].custom_metadata is None


@pytest.mark.asyncio
async def test_failing_plugin_becomes_labelled_error_event():
    runner = InMemoryRunner(EchoAgent("echo"), app_name=APP, plugins=[BrokenPlugin("broken")])
    session_id = await new_session(runner)

    events = await run(runner, session_id, "hi")

    assert len(events) == 1
    assert events[0].error_code == "CALLBACK_FAILED"
    assert events[0].error_message == (
        "Error in 'broken' during 'before_run_callback' callback: boom"
    )


@pytest.mark.asyncio
async def test_state_delta_recorded_with_user_message():
    runner = InMemoryRunner(EchoAgent("echo"), app_name=APP)
    session_id = await new_session(runner)

    await run(runner, session_id, "hi", state_delta={"user:tier": "gold", "temp:x": 1})

    session = await stored_session(runner, session_id)
    assert session.state == {"user:tier": "gold"}
    assert session.events[0].actions.state_delta == {"user:tier": "gold", "temp:x": 1}


@pytest.mark.asyncio
async def test_input_blobs_saved_as_artifacts():
    runner = InMemoryRunner(EchoAgent("echo"), app_name=APP)
    session_id = await new_session(runner)
    message = Content(
        role="user",
        parts=[
            Part(text="see attached"),
            Part(inline_data=Blob(mime_type="text/plain", data=b"hello")),
        ],
    )

    events = await run(
        runner, session_id, message, run_config=RunConfig(save_input_blobs_as_artifacts=True)
    )

    filename = f"artifact_{events[0].invocation_id}_1"
    keys = await runner.artifact_service.list_artifact_keys(
        app_name=APP, user_id=USER, session_id=session_id
    )
    assert keys == [filename]
    session = await stored_session(runner, session_id)
    assert session.events[0].content.parts[1].text.startswith(f"Uploaded file: {filename}")


def test_blocking_run_wrapper():
    runner = InMemoryRunner(EchoAgent("echo", count=2), app_name=APP)
    session = asyncio.run(runner.session_service.create_session(app_name=APP, user_id=USER))

    events = list(
        runner.run(user_id=USER, session_id=session.id, new_message=Content.from_text("hi"))
    )

    assert [event.content.parts[0].text for event in events] == ["echo-0", "echo-1"]
