"""Model request record."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from cordage.domain.content import Content


class LlmRequest(BaseModel):
    """
    Everything a model backend needs for one call.

    ``tools_dict`` maps declared function names to the tool objects that
    implement them; it never leaves the process and is excluded from dumps.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    model: str | None = None
    contents: list[Content] = Field(default_factory=list)
    system_instruction: str | None = None
    config: dict[str, Any] = Field(default_factory=dict)
    tool_declarations: list[dict[str, Any]] = Field(default_factory=list)
    tools_dict: dict[str, Any] = Field(default_factory=dict, exclude=True)

    def append_instructions(self, instructions: list[str]) -> None:
        if not instructions:
            return
        joined = "\n\n".join(instructions)
        if self.system_instruction:
            self.system_instruction = f"{self.system_instruction}\n\n{joined}"
        else:
            self.system_instruction = joined

    def append_tools(self, tools: list[Any]) -> None:
        """Declare ``tools`` to the model and remember their implementations."""
        for tool in tools:
            declaration = tool.get_declaration()
            if declaration is None:
                continue
            self.tool_declarations.append(declaration)
            self.tools_dict[tool.name] = tool


__all__ = ["LlmRequest"]
