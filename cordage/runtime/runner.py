"""
Runner - entry point for running an agent tree within a session.

Responsibilities:
- Build the invocation context of a top-level run
- Record the user message and every non-partial event in the session
- Dispatch run-level plugin callbacks
- Turn failures escaping the agent into a terminal error event
"""

import asyncio
import queue
import threading
from contextlib import aclosing
from typing import Any, AsyncGenerator, Iterator

from cordage.agents.base import AgentKind, BaseAgent
from cordage.agents.context import InvocationContext, new_invocation_id
from cordage.agents.run_config import RunConfig
from cordage.agents.tree import AgentTree
from cordage.artifacts.base import BaseArtifactService
from cordage.artifacts.in_memory import InMemoryArtifactService
from cordage.domain.content import Content, Part
from cordage.domain.events import Event
from cordage.domain.actions import EventActions
from cordage.domain.session import Session
from cordage.errors import SessionNotFoundError
from cordage.flows.functions import find_matching_function_call
from cordage.memory.base import BaseMemoryService
from cordage.memory.in_memory import InMemoryMemoryService
from cordage.models.registry import ModelRegistry
from cordage.plugins.base import BasePlugin
from cordage.plugins.manager import PluginManager
from cordage.sessions.base import BaseSessionService
from cordage.sessions.in_memory import InMemorySessionService
from cordage.utils.logging import get_logger

logger = get_logger(__name__)


class Runner:
    """
    Runs an agent tree for one app.

    Args:
        app_name: Application name sessions are stored under
        agent: Root agent
        session_service: Session storage
        artifact_service: Artifact storage, optional
        memory_service: Memory storage, optional
        plugins: Plugins applied to every invocation, in order
        model_registry: Resolves model names of LLM agents
    """

    def __init__(
        self,
        *,
        app_name: str,
        agent: BaseAgent,
        session_service: BaseSessionService,
        artifact_service: BaseArtifactService | None = None,
        memory_service: BaseMemoryService | None = None,
        plugins: list[BasePlugin] | None = None,
        model_registry: ModelRegistry | None = None,
    ):
        self.app_name = app_name
        self.agent = agent
        self.session_service = session_service
        self.artifact_service = artifact_service
        self.memory_service = memory_service
        self.plugin_manager = PluginManager(plugins)
        self.model_registry = model_registry
        self.agent_tree = AgentTree(agent)

    def run(
        self,
        *,
        user_id: str,
        session_id: str,
        new_message: Content,
        run_config: RunConfig | None = None,
    ) -> Iterator[Event]:
        """
        Blocking wrapper around run_async for scripts and tests.

        The invocation runs on its own event loop in a background thread.
        """
        events: queue.Queue = queue.Queue()
        done = object()
        failure: list[BaseException] = []

        async def _invoke() -> None:
            async with aclosing(
                self.run_async(
                    user_id=user_id,
                    session_id=session_id,
                    new_message=new_message,
                    run_config=run_config,
                )
            ) as agen:
                async for event in agen:
                    events.put(event)

        def _thread_main() -> None:
            try:
                asyncio.run(_invoke())
            except BaseException as e:
                failure.append(e)
            finally:
                events.put(done)

        thread = threading.Thread(target=_thread_main, daemon=True)
        thread.start()

        while True:
            item = events.get()
            if item is done:
                break
            yield item

        thread.join()
        if failure:
            raise failure[0]

    async def run_async(
        self,
        *,
        user_id: str,
        session_id: str,
        new_message: Content,
        state_delta: dict[str, Any] | None = None,
        run_config: RunConfig | None = None,
    ) -> AsyncGenerator[Event, None]:
        """
        Run the agent for a new user message.

        Args:
            user_id: Owner of the session
            session_id: Session to continue
            new_message: Message from the user
            state_delta: State changes recorded with the user message
            run_config: Options of this run

        Yields:
            Event: Every event of the invocation, partial chunks included

        Raises:
            SessionNotFoundError: If the session does not exist
        """
        run_config = run_config or RunConfig()
        session = await self.session_service.get_session(
            app_name=self.app_name, user_id=user_id, session_id=session_id
        )
        if session is None:
            raise SessionNotFoundError(f"Session not found: {session_id}")

        ctx = self._new_invocation_context(session, new_message, run_config)
        logger.info(
            "invocation_started",
            app_name=self.app_name,
            session_id=session.id,
            invocation_id=ctx.invocation_id,
        )

        message = await self.plugin_manager.run_on_user_message_callback(
            invocation_context=ctx, user_message=new_message
        )
        if message is None:
            message = new_message
        ctx.user_content = message

        await self._append_new_message_to_session(ctx, message, state_delta)
        ctx.agent = self._find_agent_to_run(session)

        async with aclosing(self._exec_with_plugin(ctx)) as events:
            async for event in events:
                yield event

        logger.info("invocation_finished", invocation_id=ctx.invocation_id)

    async def _exec_with_plugin(self, ctx: InvocationContext) -> AsyncGenerator[Event, None]:
        plugin_manager = self.plugin_manager

        try:
            early_exit = await plugin_manager.run_before_run_callback(invocation_context=ctx)
            if isinstance(early_exit, Content):
                event = Event(
                    invocation_id=ctx.invocation_id,
                    author=ctx.agent.name,
                    content=early_exit,
                )
                await self.session_service.append_event(ctx.session, event)
                yield event
            else:
                async with aclosing(ctx.agent.run_async(ctx)) as events:
                    async for event in events:
                        if not event.partial:
                            await self.session_service.append_event(ctx.session, event)
                        modified = await plugin_manager.run_on_event_callback(
                            invocation_context=ctx, event=event
                        )
                        yield modified if modified is not None else event
        except Exception as e:
            logger.error(
                "invocation_failed",
                invocation_id=ctx.invocation_id,
                agent=ctx.agent.name,
                error=str(e),
                exc_info=True,
            )
            error_event = Event(
                invocation_id=ctx.invocation_id,
                author=ctx.agent.name,
                error_code=getattr(e, "code", type(e).__name__),
                error_message=str(e),
                turn_complete=True,
            )
            await self.session_service.append_event(ctx.session, error_event)
            yield error_event

        await plugin_manager.run_after_run_callback(invocation_context=ctx)

    async def _append_new_message_to_session(
        self,
        ctx: InvocationContext,
        new_message: Content,
        state_delta: dict[str, Any] | None,
    ) -> None:
        if not new_message.parts:
            raise ValueError("No parts in the new_message.")

        if self.artifact_service is not None and ctx.run_config.save_input_blobs_as_artifacts:
            for index, part in enumerate(new_message.parts):
                if part.inline_data is None:
                    continue
                filename = f"artifact_{ctx.invocation_id}_{index}"
                await self.artifact_service.save_artifact(
                    app_name=self.app_name,
                    user_id=ctx.user_id,
                    session_id=ctx.session.id,
                    filename=filename,
                    artifact=part,
                )
                new_message.parts[index] = Part(
                    text=f"Uploaded file: {filename}. It is saved into artifacts"
                )

        event = Event(
            invocation_id=ctx.invocation_id,
            author="user",
            content=new_message,
            actions=EventActions(state_delta=dict(state_delta or {})),
        )
        await self.session_service.append_event(ctx.session, event)

    def _find_agent_to_run(self, session: Session) -> BaseAgent:
        """
        Pick the agent that should answer the new message.

        A response to a pending function call goes back to the agent that
        made the call. Otherwise the last agent that spoke keeps the
        conversation if it can transfer back up the tree, else the root.
        """
        event = find_matching_function_call(session.events)
        if event is not None:
            agent = self.agent_tree.find_agent(event.author)
            if agent is not None:
                return agent

        for event in reversed(session.events):
            if event.author == "user":
                continue
            if event.author == self.agent.name:
                return self.agent
            agent = self.agent_tree.find_agent(event.author)
            if agent is None:
                logger.warning("event_author_not_in_tree", author=event.author, event_id=event.id)
                continue
            if self._is_transferable_across_agent_tree(agent):
                return agent
        return self.agent

    def _is_transferable_across_agent_tree(self, agent_to_run: BaseAgent) -> bool:
        agent = agent_to_run
        while agent is not None:
            if agent.kind is not AgentKind.LLM:
                return False
            if agent.disallow_transfer_to_parent:
                return False
            agent = self.agent_tree.parent_of(agent.name)
        return True

    def _new_invocation_context(
        self, session: Session, new_message: Content, run_config: RunConfig
    ) -> InvocationContext:
        return InvocationContext(
            invocation_id=new_invocation_id(),
            agent=self.agent,
            session=session,
            session_service=self.session_service,
            plugin_manager=self.plugin_manager,
            user_content=new_message,
            run_config=run_config,
            artifact_service=self.artifact_service,
            memory_service=self.memory_service,
            agent_tree=self.agent_tree,
            model_registry=self.model_registry,
        )


class InMemoryRunner(Runner):
    """Runner backed by in-memory session, artifact and memory services."""

    def __init__(
        self,
        agent: BaseAgent,
        *,
        app_name: str = "InMemoryRunner",
        plugins: list[BasePlugin] | None = None,
        model_registry: ModelRegistry | None = None,
    ):
        super().__init__(
            app_name=app_name,
            agent=agent,
            session_service=InMemorySessionService(),
            artifact_service=InMemoryArtifactService(),
            memory_service=InMemoryMemoryService(),
            plugins=plugins,
            model_registry=model_registry,
        )


__all__ = ["InMemoryRunner", "Runner"]
