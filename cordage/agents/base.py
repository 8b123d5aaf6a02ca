"""
BaseAgent - base class for all agent types.

Every agent exposes ``run_async(ctx)``, an async generator of events. The
base class wraps the subclass implementation with the before/after agent
callback chains:

1. derive a context for this agent
2. before-agent plugins, then agent-local callbacks
3. ``_run_async_impl`` unless the invocation was ended
4. after-agent plugins, then agent-local callbacks unless the invocation was ended
"""

from contextlib import aclosing
from enum import Enum
from typing import AsyncGenerator, ClassVar

from cordage.agents.callback_context import CallbackContext
from cordage.agents.callbacks import Callback, as_callback_list, run_callback_chain
from cordage.agents.context import InvocationContext
from cordage.domain.events import Event
from cordage.errors import AgentTreeError
from cordage.utils.logging import get_logger

logger = get_logger(__name__)


class AgentKind(str, Enum):
    """Agent type, fixed per class."""

    LLM = "llm"
    SEQUENTIAL = "sequential"
    PARALLEL = "parallel"
    LOOP = "loop"
    CUSTOM = "custom"


def validate_agent_name(name: str) -> None:
    if not name.isidentifier():
        raise AgentTreeError(
            f"Found invalid agent name: `{name}`. Agent name must be a valid identifier."
        )
    if name == "user":
        raise AgentTreeError("Agent name cannot be `user`. `user` is reserved for end-user input.")


class BaseAgent:
    """
    Base class for all agents.

    Subclasses implement ``_run_async_impl``. Sub-agents are owned children;
    parents are looked up through the invocation's AgentTree.

    Args:
        name: Unique identifier within the agent tree
        description: One-line capability summary, used for delegation decisions
        sub_agents: Child agents
        before_agent_callback: Callback or list of callbacks run before the agent
        after_agent_callback: Callback or list of callbacks run after the agent
    """

    kind: ClassVar[AgentKind] = AgentKind.CUSTOM

    def __init__(
        self,
        name: str,
        description: str = "",
        sub_agents: "list[BaseAgent] | None" = None,
        before_agent_callback: Callback | list[Callback] | None = None,
        after_agent_callback: Callback | list[Callback] | None = None,
    ):
        validate_agent_name(name)
        self.name = name
        self.description = description
        self.sub_agents: list[BaseAgent] = list(sub_agents or [])
        self.before_agent_callback = as_callback_list(before_agent_callback)
        self.after_agent_callback = as_callback_list(after_agent_callback)

        seen: set[str] = set()
        for sub_agent in self.sub_agents:
            if sub_agent.name in seen:
                raise AgentTreeError(
                    f"Duplicate sub-agent name `{sub_agent.name}` under agent `{name}`."
                )
            seen.add(sub_agent.name)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"

    async def run_async(self, parent_context: InvocationContext) -> AsyncGenerator[Event, None]:
        """
        Run this agent.

        Args:
            parent_context: Context of the caller

        Yields:
            Event: Events in production order
        """
        ctx = parent_context.derive_for_agent(self)
        logger.debug(
            "agent_run_started",
            agent=self.name,
            kind=self.kind.value,
            invocation_id=ctx.invocation_id,
            branch=ctx.branch,
        )

        event = await self._handle_before_agent_callback(ctx)
        if event is not None:
            yield event
        if ctx.end_invocation:
            logger.debug("agent_run_ended_early", agent=self.name, stage="before_agent")
            return

        async with aclosing(self._run_async_impl(ctx)) as events:
            async for event in events:
                yield event

        if ctx.end_invocation:
            logger.debug("agent_run_ended_early", agent=self.name, stage="impl")
            return

        event = await self._handle_after_agent_callback(ctx)
        if event is not None:
            yield event

        logger.debug("agent_run_finished", agent=self.name, invocation_id=ctx.invocation_id)

    async def _run_async_impl(self, ctx: InvocationContext) -> AsyncGenerator[Event, None]:
        """Subclass implementation of the agent's behaviour."""
        raise NotImplementedError(f"_run_async_impl is not implemented for {type(self).__name__}.")
        yield  # pragma: no cover

    def find_agent(self, name: str) -> "BaseAgent | None":
        """This agent or a descendant named ``name``."""
        if self.name == name:
            return self
        return self.find_sub_agent(name)

    def find_sub_agent(self, name: str) -> "BaseAgent | None":
        for sub_agent in self.sub_agents:
            found = sub_agent.find_agent(name)
            if found is not None:
                return found
        return None

    async def _handle_before_agent_callback(self, ctx: InvocationContext) -> Event | None:
        callback_context = CallbackContext(ctx)

        content = await ctx.plugin_manager.run_before_agent_callback(
            agent=self, callback_context=callback_context
        )
        if content is None:
            content = await run_callback_chain(
                self.before_agent_callback,
                "before_agent_callback",
                callback_context=callback_context,
            )

        if content is not None:
            ctx.end_invocation = True
            return Event(
                invocation_id=ctx.invocation_id,
                author=self.name,
                branch=ctx.branch,
                content=content,
                actions=callback_context.actions,
            )

        if callback_context.state.has_delta():
            return Event(
                invocation_id=ctx.invocation_id,
                author=self.name,
                branch=ctx.branch,
                actions=callback_context.actions,
            )
        return None

    async def _handle_after_agent_callback(self, ctx: InvocationContext) -> Event | None:
        callback_context = CallbackContext(ctx)

        content = await ctx.plugin_manager.run_after_agent_callback(
            agent=self, callback_context=callback_context
        )
        if content is None:
            content = await run_callback_chain(
                self.after_agent_callback,
                "after_agent_callback",
                callback_context=callback_context,
            )

        if content is not None or callback_context.state.has_delta():
            return Event(
                invocation_id=ctx.invocation_id,
                author=self.name,
                branch=ctx.branch,
                content=content,
                actions=callback_context.actions,
            )
        return None


__all__ = ["AgentKind", "BaseAgent", "validate_agent_name"]
