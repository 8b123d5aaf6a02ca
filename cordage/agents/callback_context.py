"""
Contexts handed to callbacks.

ReadonlyContext exposes the invocation to instruction providers.
CallbackContext adds a live State whose writes are recorded in its own
EventActions, so whoever built the context can attach those actions to the
event it emits.
"""

from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Mapping

from cordage.domain.actions import EventActions
from cordage.domain.content import Content, Part
from cordage.domain.state import State

if TYPE_CHECKING:
    from cordage.agents.context import InvocationContext


class ReadonlyContext:
    def __init__(self, invocation_context: "InvocationContext"):
        self._invocation_context = invocation_context

    @property
    def invocation_id(self) -> str:
        return self._invocation_context.invocation_id

    @property
    def agent_name(self) -> str:
        return self._invocation_context.agent.name

    @property
    def branch(self) -> str | None:
        return self._invocation_context.branch

    @property
    def user_content(self) -> Content | None:
        return self._invocation_context.user_content

    @property
    def state(self) -> Mapping[str, Any]:
        return MappingProxyType(self._invocation_context.session.state)


class CallbackContext(ReadonlyContext):
    """
    Context for agent and model callbacks.

    Args:
        invocation_context: Context of the running agent
        event_actions: Actions to record writes into, a fresh one by default
    """

    def __init__(
        self,
        invocation_context: "InvocationContext",
        event_actions: EventActions | None = None,
    ):
        super().__init__(invocation_context)
        self._event_actions = event_actions or EventActions()
        self._state = State(
            value=invocation_context.session.state,
            delta=self._event_actions.state_delta,
        )

    @property
    def state(self) -> State:
        return self._state

    @property
    def actions(self) -> EventActions:
        return self._event_actions

    async def load_artifact(self, filename: str, version: int | None = None) -> Part | None:
        service = self._artifact_service()
        ctx = self._invocation_context
        return await service.load_artifact(
            app_name=ctx.app_name,
            user_id=ctx.user_id,
            session_id=ctx.session.id,
            filename=filename,
            version=version,
        )

    async def save_artifact(self, filename: str, artifact: Part) -> int:
        """Save an artifact and record its new version in artifact_delta."""
        service = self._artifact_service()
        ctx = self._invocation_context
        version = await service.save_artifact(
            app_name=ctx.app_name,
            user_id=ctx.user_id,
            session_id=ctx.session.id,
            filename=filename,
            artifact=artifact,
        )
        self._event_actions.artifact_delta[filename] = version
        return version

    async def list_artifacts(self) -> list[str]:
        service = self._artifact_service()
        ctx = self._invocation_context
        return await service.list_artifact_keys(
            app_name=ctx.app_name, user_id=ctx.user_id, session_id=ctx.session.id
        )

    def _artifact_service(self):
        service = self._invocation_context.artifact_service
        if service is None:
            raise ValueError("Artifact service is not initialized.")
        return service


__all__ = ["ReadonlyContext", "CallbackContext"]
