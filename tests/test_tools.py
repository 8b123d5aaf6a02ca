"""
Tests for function tools and the tool context.
"""

import pytest

from cordage.agents import LlmAgent
from cordage.domain import AuthConfig, Content, Event
from cordage.tools import FunctionTool, LongRunningFunctionTool, ToolContext, tool
from cordage.tools.transfer import transfer_to_agent_tool

from conftest import ScriptedLlm


def search(query: str, limit: int = 5, tool_context=None) -> list:
    """Search the knowledge base."""
    return [query] * limit


def test_declaration_from_signature():
    declaration = FunctionTool(search).get_declaration()

    assert declaration["name"] == "search"
    assert declaration["description"] == "Search the knowledge base."
    parameters = declaration["parameters"]
    assert set(parameters["properties"]) == {"query", "limit"}
    assert parameters["required"] == ["query"]
    assert parameters["properties"]["limit"]["default"] == 5
    assert "title" not in parameters


def test_tool_decorator():
    @tool
    def ping() -> str:
        """Ping."""
        return "pong"

    assert isinstance(ping, FunctionTool)
    assert ping.name == "ping"
    assert ping.is_long_running is False


def test_long_running_declaration_mentions_note():
    declaration = LongRunningFunctionTool(search).get_declaration()
    assert declaration["description"].startswith("Search the knowledge base.")
    assert "long-running operation" in declaration["description"]


@pytest.mark.asyncio
async def test_run_async_filters_args_and_injects_context(make_context):
    received = {}

    def capture(city: str, tool_context) -> str:
        received["context"] = tool_context
        return city

    capture_tool = FunctionTool(capture)
    agent = LlmAgent(name="assistant", model=ScriptedLlm(), tools=[capture_tool])
    ctx = await make_context(agent)
    tool_context = ToolContext(ctx, function_call_id="c1")

    result = await capture_tool.run_async(
        args={"city": "Rome", "unexpected": True}, tool_context=tool_context
    )

    assert result == "Rome"
    assert received["context"] is tool_context


@pytest.mark.asyncio
async def test_run_async_reports_missing_arguments(make_context):
    agent = LlmAgent(name="assistant", model=ScriptedLlm())
    ctx = await make_context(agent)

    result = await FunctionTool(search).run_async(
        args={}, tool_context=ToolContext(ctx, function_call_id="c1")
    )

    assert "query" in result["error"]


@pytest.mark.asyncio
async def test_async_function_is_awaited(make_context):
    async def fetch(url: str) -> dict:
        return {"url": url}

    agent = LlmAgent(name="assistant", model=ScriptedLlm())
    ctx = await make_context(agent)

    result = await FunctionTool(fetch).run_async(
        args={"url": "https://example.com"}, tool_context=ToolContext(ctx)
    )
    assert result == {"url": "https://example.com"}


@pytest.mark.asyncio
async def test_transfer_tool_sets_action(make_context):
    agent = LlmAgent(name="assistant", model=ScriptedLlm())
    ctx = await make_context(agent)
    tool_context = ToolContext(ctx, function_call_id="c1")

    await transfer_to_agent_tool.run_async(args={"agent_name": "billing"}, tool_context=tool_context)

    assert tool_context.actions.transfer_to_agent == "billing"


@pytest.mark.asyncio
async def test_tool_context_state_and_artifacts(make_context):
    agent = LlmAgent(name="assistant", model=ScriptedLlm())
    ctx = await make_context(agent)
    tool_context = ToolContext(ctx, function_call_id="c1")

    tool_context.state["seen"] = 1
    version = await tool_context.save_artifact("notes.txt", Content.from_text("x").parts[0])

    assert version == 0
    assert tool_context.actions.state_delta == {"seen": 1}
    assert tool_context.actions.artifact_delta == {"notes.txt": 0}
    assert (await tool_context.load_artifact("notes.txt")).text == "x"
    assert await tool_context.list_artifacts() == ["notes.txt"]


@pytest.mark.asyncio
async def test_tool_context_search_memory(make_context):
    agent = LlmAgent(name="assistant", model=ScriptedLlm())
    ctx = await make_context(
        agent, events=[Event(author="user", content=Content.from_text("blue whale"))]
    )
    await ctx.memory_service.add_session_to_memory(ctx.session)

    result = await ToolContext(ctx, function_call_id="c1").search_memory("whale")

    assert len(result.memories) == 1


@pytest.mark.asyncio
async def test_request_credential_requires_call_id(make_context):
    agent = LlmAgent(name="assistant", model=ScriptedLlm())
    ctx = await make_context(agent)

    with pytest.raises(ValueError):
        ToolContext(ctx).request_credential(AuthConfig())
