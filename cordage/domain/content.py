"""
Model content records.

A Content is one conversation turn: a role plus ordered parts. Each Part
carries exactly one payload (text, function call, function response, code
execution result or inline data).
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class FunctionCall(BaseModel):
    """A tool invocation requested by the model."""

    model_config = ConfigDict(extra="forbid")

    id: str | None = None
    name: str
    args: dict[str, Any] = Field(default_factory=dict)


class FunctionResponse(BaseModel):
    """The result of a tool invocation, correlated to its call by id."""

    model_config = ConfigDict(extra="forbid")

    id: str | None = None
    name: str
    response: dict[str, Any] = Field(default_factory=dict)


class CodeExecutionResult(BaseModel):
    outcome: str = "OUTCOME_OK"
    output: str | None = None


class Blob(BaseModel):
    """Inline binary data (uploaded files, images)."""

    mime_type: str
    data: bytes


class Part(BaseModel):
    text: str | None = None
    thought: bool | None = None
    function_call: FunctionCall | None = None
    function_response: FunctionResponse | None = None
    code_execution_result: CodeExecutionResult | None = None
    inline_data: Blob | None = None

    @classmethod
    def from_text(cls, text: str) -> "Part":
        return cls(text=text)

    @classmethod
    def from_function_call(cls, name: str, args: dict[str, Any], id: str | None = None) -> "Part":
        return cls(function_call=FunctionCall(id=id, name=name, args=args))

    @classmethod
    def from_function_response(
        cls, name: str, response: dict[str, Any], id: str | None = None
    ) -> "Part":
        return cls(function_response=FunctionResponse(id=id, name=name, response=response))


class Content(BaseModel):
    """One turn of conversation."""

    role: str | None = None
    parts: list[Part] = Field(default_factory=list)

    @classmethod
    def from_text(cls, text: str, role: str = "user") -> "Content":
        return cls(role=role, parts=[Part(text=text)])


__all__ = [
    "FunctionCall",
    "FunctionResponse",
    "CodeExecutionResult",
    "Blob",
    "Part",
    "Content",
]
