"""
Plugin manager.

Holds the ordered plugin chain of a runner and dispatches callbacks through
it. One manager is shared by every context of an invocation.
"""

from typing import TYPE_CHECKING, Any, Literal

from cordage.errors import CallbackError, PluginRegistrationError
from cordage.plugins.base import BasePlugin
from cordage.utils.logging import get_logger

if TYPE_CHECKING:
    from cordage.agents.base import BaseAgent
    from cordage.agents.callback_context import CallbackContext
    from cordage.agents.context import InvocationContext
    from cordage.domain.content import Content
    from cordage.domain.events import Event
    from cordage.models.llm_request import LlmRequest
    from cordage.models.llm_response import LlmResponse
    from cordage.tools.base import BaseTool
    from cordage.tools.tool_context import ToolContext

logger = get_logger(__name__)

PluginCallbackName = Literal[
    "on_user_message_callback",
    "before_run_callback",
    "after_run_callback",
    "on_event_callback",
    "before_agent_callback",
    "after_agent_callback",
    "before_model_callback",
    "after_model_callback",
    "on_model_error_callback",
    "before_tool_callback",
    "after_tool_callback",
    "on_tool_error_callback",
]


class PluginManager:
    """
    Ordered plugin chain.

    Responsibilities:
    - Register plugins under unique names
    - Run a callback across plugins in registration order
    - Stop at the first plugin returning a value
    """

    def __init__(self, plugins: list[BasePlugin] | None = None):
        self.plugins: list[BasePlugin] = []
        for plugin in plugins or []:
            self.register_plugin(plugin)

    def register_plugin(self, plugin: BasePlugin) -> None:
        if any(p.name == plugin.name for p in self.plugins):
            raise PluginRegistrationError(f"Plugin with name '{plugin.name}' already registered.")
        self.plugins.append(plugin)
        logger.debug("plugin_registered", plugin=plugin.name)

    def get_plugin(self, name: str) -> BasePlugin | None:
        return next((p for p in self.plugins if p.name == name), None)

    async def run_callbacks(self, callback_name: PluginCallbackName, **kwargs: Any) -> Any:
        """
        Run ``callback_name`` on each plugin until one returns a value.

        Returns:
            The first non-None result, or None

        Raises:
            CallbackError: When a plugin raises, naming the plugin and callback
        """
        for plugin in self.plugins:
            callback = getattr(plugin, callback_name)
            try:
                result = await callback(**kwargs)
            except Exception as e:
                logger.error(
                    "plugin_callback_failed",
                    plugin=plugin.name,
                    callback_kind=callback_name,
                    error=str(e),
                    exc_info=True,
                )
                raise CallbackError(plugin.name, callback_name, str(e)) from e
            if result is not None:
                logger.debug(
                    "plugin_callback_short_circuit", plugin=plugin.name, callback_kind=callback_name
                )
                return result
        return None

    async def run_on_user_message_callback(
        self, *, invocation_context: "InvocationContext", user_message: "Content"
    ) -> "Content | None":
        return await self.run_callbacks(
            "on_user_message_callback",
            invocation_context=invocation_context,
            user_message=user_message,
        )

    async def run_before_run_callback(
        self, *, invocation_context: "InvocationContext"
    ) -> "Content | None":
        return await self.run_callbacks("before_run_callback", invocation_context=invocation_context)

    async def run_after_run_callback(self, *, invocation_context: "InvocationContext") -> None:
        await self.run_callbacks("after_run_callback", invocation_context=invocation_context)

    async def run_on_event_callback(
        self, *, invocation_context: "InvocationContext", event: "Event"
    ) -> "Event | None":
        return await self.run_callbacks(
            "on_event_callback", invocation_context=invocation_context, event=event
        )

    async def run_before_agent_callback(
        self, *, agent: "BaseAgent", callback_context: "CallbackContext"
    ) -> "Content | None":
        return await self.run_callbacks(
            "before_agent_callback", agent=agent, callback_context=callback_context
        )

    async def run_after_agent_callback(
        self, *, agent: "BaseAgent", callback_context: "CallbackContext"
    ) -> "Content | None":
        return await self.run_callbacks(
            "after_agent_callback", agent=agent, callback_context=callback_context
        )

    async def run_before_model_callback(
        self, *, callback_context: "CallbackContext", llm_request: "LlmRequest"
    ) -> "LlmResponse | None":
        return await self.run_callbacks(
            "before_model_callback", callback_context=callback_context, llm_request=llm_request
        )

    async def run_after_model_callback(
        self, *, callback_context: "CallbackContext", llm_response: "LlmResponse"
    ) -> "LlmResponse | None":
        return await self.run_callbacks(
            "after_model_callback", callback_context=callback_context, llm_response=llm_response
        )

    async def run_on_model_error_callback(
        self,
        *,
        callback_context: "CallbackContext",
        llm_request: "LlmRequest",
        error: Exception,
    ) -> "LlmResponse | None":
        return await self.run_callbacks(
            "on_model_error_callback",
            callback_context=callback_context,
            llm_request=llm_request,
            error=error,
        )

    async def run_before_tool_callback(
        self, *, tool: "BaseTool", tool_args: dict[str, Any], tool_context: "ToolContext"
    ) -> dict | None:
        return await self.run_callbacks(
            "before_tool_callback", tool=tool, tool_args=tool_args, tool_context=tool_context
        )

    async def run_after_tool_callback(
        self,
        *,
        tool: "BaseTool",
        tool_args: dict[str, Any],
        tool_context: "ToolContext",
        result: dict,
    ) -> dict | None:
        return await self.run_callbacks(
            "after_tool_callback",
            tool=tool,
            tool_args=tool_args,
            tool_context=tool_context,
            result=result,
        )

    async def run_on_tool_error_callback(
        self,
        *,
        tool: "BaseTool",
        tool_args: dict[str, Any],
        tool_context: "ToolContext",
        error: Exception,
    ) -> dict | None:
        return await self.run_callbacks(
            "on_tool_error_callback",
            tool=tool,
            tool_args=tool_args,
            tool_context=tool_context,
            error=error,
        )


__all__ = ["PluginManager", "PluginCallbackName"]
