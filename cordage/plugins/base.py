"""
Plugin base class.

A plugin intercepts every agent, model and tool boundary of every
invocation run by a Runner. Each callback may return None to let execution
continue or a value to short-circuit the boundary it intercepts.
"""

from abc import ABC
from typing import TYPE_CHECKING, Any

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


class BasePlugin(ABC):
    """
    Base class for all plugins.
    Every callback is optional; the defaults do nothing.
    """

    def __init__(self, name: str):
        self.name = name

    async def on_user_message_callback(
        self, *, invocation_context: "InvocationContext", user_message: "Content"
    ) -> "Content | None":
        """Replace the incoming user message."""
        return None

    async def before_run_callback(
        self, *, invocation_context: "InvocationContext"
    ) -> "Content | None":
        """Returning content ends the run with that content as the reply."""
        return None

    async def after_run_callback(self, *, invocation_context: "InvocationContext") -> None:
        return None

    async def on_event_callback(
        self, *, invocation_context: "InvocationContext", event: "Event"
    ) -> "Event | None":
        """Replace an event before it is handed to the caller."""
        return None

    async def before_agent_callback(
        self, *, agent: "BaseAgent", callback_context: "CallbackContext"
    ) -> "Content | None":
        return None

    async def after_agent_callback(
        self, *, agent: "BaseAgent", callback_context: "CallbackContext"
    ) -> "Content | None":
        return None

    async def before_model_callback(
        self, *, callback_context: "CallbackContext", llm_request: "LlmRequest"
    ) -> "LlmResponse | None":
        return None

    async def after_model_callback(
        self, *, callback_context: "CallbackContext", llm_response: "LlmResponse"
    ) -> "LlmResponse | None":
        return None

    async def on_model_error_callback(
        self,
        *,
        callback_context: "CallbackContext",
        llm_request: "LlmRequest",
        error: Exception,
    ) -> "LlmResponse | None":
        """Returning a response recovers from the model failure."""
        return None

    async def before_tool_callback(
        self, *, tool: "BaseTool", tool_args: dict[str, Any], tool_context: "ToolContext"
    ) -> dict | None:
        """Returning a dict skips the tool and uses it as the result."""
        return None

    async def after_tool_callback(
        self,
        *,
        tool: "BaseTool",
        tool_args: dict[str, Any],
        tool_context: "ToolContext",
        result: dict,
    ) -> dict | None:
        return None

    async def on_tool_error_callback(
        self,
        *,
        tool: "BaseTool",
        tool_args: dict[str, Any],
        tool_context: "ToolContext",
        error: Exception,
    ) -> dict | None:
        """Returning a dict recovers from the tool failure."""
        return None


__all__ = ["BasePlugin"]
