"""Context handed to tools and tool callbacks."""

from typing import TYPE_CHECKING

from cordage.agents.callback_context import CallbackContext
from cordage.domain.actions import EventActions
from cordage.domain.auth import AuthConfig
from cordage.memory.base import SearchMemoryResponse

if TYPE_CHECKING:
    from cordage.agents.context import InvocationContext


class ToolContext(CallbackContext):
    """
    Context for one function call.

    Attributes:
        function_call_id: Id of the call being executed
    """

    def __init__(
        self,
        invocation_context: "InvocationContext",
        *,
        function_call_id: str | None = None,
        event_actions: EventActions | None = None,
    ):
        super().__init__(invocation_context, event_actions=event_actions)
        self.function_call_id = function_call_id

    def request_credential(self, auth_config: AuthConfig) -> None:
        """Ask the client for a credential before this call can complete."""
        if not self.function_call_id:
            raise ValueError("function_call_id is not set.")
        self._event_actions.requested_auth_configs[self.function_call_id] = (
            auth_config.model_copy(deep=True)
        )

    async def search_memory(self, query: str) -> SearchMemoryResponse:
        ctx = self._invocation_context
        if ctx.memory_service is None:
            raise ValueError("Memory service is not available.")
        return await ctx.memory_service.search_memory(
            app_name=ctx.app_name, user_id=ctx.user_id, query=query
        )


__all__ = ["ToolContext"]
