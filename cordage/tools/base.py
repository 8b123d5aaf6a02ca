from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from cordage.tools.tool_context import ToolContext


class BaseTool(ABC):
    """
    A capability the model can call.

    Attributes:
        name: Function name declared to the model
        description: Description declared to the model
        is_long_running: The result may arrive later through a client-sent function response
    """

    def __init__(self, name: str, description: str = "", is_long_running: bool = False):
        self.name = name
        self.description = description
        self.is_long_running = is_long_running

    @abstractmethod
    async def run_async(self, *, args: dict[str, Any], tool_context: "ToolContext") -> Any:
        """执行工具逻辑"""
        pass

    def get_declaration(self) -> dict[str, Any] | None:
        """Function declaration sent to the model, None for tools the model never sees."""
        return {
            "name": self.name,
            "description": self.description,
            "parameters": {"type": "object", "properties": {}},
        }


__all__ = ["BaseTool"]
