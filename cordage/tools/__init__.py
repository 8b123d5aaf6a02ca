"""Tools callable by LLM agents."""

from cordage.tools.base import BaseTool
from cordage.tools.function_tool import FunctionTool, LongRunningFunctionTool, tool
from cordage.tools.tool_context import ToolContext
from cordage.tools.transfer import transfer_to_agent, transfer_to_agent_tool

__all__ = [
    "BaseTool",
    "FunctionTool",
    "LongRunningFunctionTool",
    "ToolContext",
    "tool",
    "transfer_to_agent",
    "transfer_to_agent_tool",
]
