"""
Shared fixtures: a scripted model backend, scripted agents and context factories.
"""

from typing import Any

import pytest
from pydantic import Field

from cordage.agents.base import BaseAgent
from cordage.agents.context import InvocationContext, new_invocation_id
from cordage.agents.run_config import RunConfig
from cordage.agents.tree import AgentTree
from cordage.artifacts.in_memory import InMemoryArtifactService
from cordage.domain.actions import EventActions
from cordage.domain.content import Content, Part
from cordage.domain.events import Event
from cordage.memory.in_memory import InMemoryMemoryService
from cordage.models.base_llm import BaseLlm
from cordage.models.llm_response import LlmResponse
from cordage.plugins.manager import PluginManager
from cordage.sessions.in_memory import InMemorySessionService

APP_NAME = "test_app"
USER_ID = "user_1"


class ScriptedLlm(BaseLlm):
    """
    Replays canned responses.

    Each model call consumes one script step: a list of LlmResponse objects
    to yield, or an exception to raise.
    """

    model: str = "scripted"
    script: list[Any] = Field(default_factory=list)
    requests: list[Any] = Field(default_factory=list)

    async def generate_content_async(self, llm_request, stream=False):
        self.requests.append(llm_request)
        if not self.script:
            raise AssertionError("ScriptedLlm called more often than scripted")
        step = self.script.pop(0)
        if isinstance(step, Exception):
            raise step
        for response in step:
            yield response.model_copy(deep=True)


class EchoAgent(BaseAgent):
    """Custom agent emitting ``count`` text events named ``<agent>-<index>``."""

    def __init__(self, name: str, count: int = 1, escalate_at: int | None = None, **kwargs):
        super().__init__(name=name, **kwargs)
        self.count = count
        self.escalate_at = escalate_at
        self.produced = 0

    async def _run_async_impl(self, ctx):
        for index in range(self.count):
            self.produced += 1
            yield Event(
                invocation_id=ctx.invocation_id,
                author=self.name,
                branch=ctx.branch,
                content=Content(role="model", parts=[Part(text=f"{self.name}-{index}")]),
                actions=EventActions(escalate=True if index == self.escalate_at else None),
            )


@pytest.fixture
def session_service():
    return InMemorySessionService()


@pytest.fixture
def make_context(session_service):
    """Factory building a root InvocationContext over a fresh session."""

    async def _make(
        agent: BaseAgent,
        *,
        events: list[Event] | None = None,
        branch: str | None = None,
        run_config: RunConfig | None = None,
        plugins: list | None = None,
        user_content: Content | None = None,
    ) -> InvocationContext:
        session = await session_service.create_session(app_name=APP_NAME, user_id=USER_ID)
        for event in events or []:
            await session_service.append_event(session, event)
        return InvocationContext(
            invocation_id=new_invocation_id(),
            agent=agent,
            session=session,
            session_service=session_service,
            plugin_manager=PluginManager(plugins),
            branch=branch,
            user_content=user_content,
            run_config=run_config or RunConfig(),
            artifact_service=InMemoryArtifactService(),
            memory_service=InMemoryMemoryService(),
            agent_tree=AgentTree(agent),
        )

    return _make


def text_response(text: str, **kwargs) -> LlmResponse:
    return LlmResponse(content=Content(role="model", parts=[Part(text=text)]), **kwargs)


def call_response(*calls: tuple[str, dict], call_id: str | None = None) -> LlmResponse:
    parts = [Part.from_function_call(name, args, id=call_id) for name, args in calls]
    return LlmResponse(content=Content(role="model", parts=parts))
