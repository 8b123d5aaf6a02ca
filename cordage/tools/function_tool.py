import inspect
from typing import Any, Callable, get_type_hints

from pydantic import BaseModel, create_model

from cordage.tools.base import BaseTool

# Parameter name through which a function receives its ToolContext.
TOOL_CONTEXT_PARAM = "tool_context"


class FunctionTool(BaseTool):
    """
    Wraps a plain or async function as a tool.

    Arguments are matched to the function signature; unknown arguments from
    the model are dropped. A parameter named ``tool_context`` receives the
    ToolContext and is hidden from the declaration.
    """

    def __init__(
        self,
        func: Callable,
        name: str | None = None,
        description: str | None = None,
        is_long_running: bool = False,
    ):
        super().__init__(
            name=name or func.__name__,
            description=description or inspect.cleandoc(func.__doc__ or ""),
            is_long_running=is_long_running,
        )
        self.func = func
        self._signature = inspect.signature(func)
        self.args_schema = self._create_args_schema(func)

    def _create_args_schema(self, func: Callable) -> type[BaseModel]:
        """Dynamically create a Pydantic model from function signature."""
        try:
            type_hints = get_type_hints(func)
        except (NameError, TypeError):
            type_hints = {}

        fields = {}
        for param_name, param in self._signature.parameters.items():
            if param_name in ("self", "cls", TOOL_CONTEXT_PARAM):
                continue
            if param.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD):
                continue

            annotation = type_hints.get(param_name, Any)
            if param.default is inspect.Parameter.empty:
                fields[param_name] = (annotation, ...)
            else:
                fields[param_name] = (annotation, param.default)

        return create_model(f"{self.name}_args", **fields)

    def get_declaration(self) -> dict[str, Any]:
        schema = self.args_schema.model_json_schema()
        schema.pop("title", None)
        return {
            "name": self.name,
            "description": self.description,
            "parameters": schema,
        }

    def _missing_args(self, args: dict[str, Any]) -> list[str]:
        return [
            name
            for name, param in self._signature.parameters.items()
            if name != TOOL_CONTEXT_PARAM
            and param.default is inspect.Parameter.empty
            and param.kind
            not in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD)
            and name not in args
        ]

    async def run_async(self, *, args: dict[str, Any], tool_context) -> Any:
        params = self._signature.parameters
        accepts_kwargs = any(p.kind is inspect.Parameter.VAR_KEYWORD for p in params.values())
        call_args = {
            key: value for key, value in args.items() if accepts_kwargs or key in params
        }
        if TOOL_CONTEXT_PARAM in params:
            call_args[TOOL_CONTEXT_PARAM] = tool_context

        missing = self._missing_args(call_args)
        if missing:
            return {
                "error": (
                    f"Invoking `{self.name}()` failed as the following mandatory input "
                    f"parameters are not present: {', '.join(missing)}"
                )
            }

        result = self.func(**call_args)
        if inspect.isawaitable(result):
            result = await result
        return result


class LongRunningFunctionTool(FunctionTool):
    """A FunctionTool whose result is delivered later by the client."""

    def __init__(self, func: Callable, name: str | None = None, description: str | None = None):
        super().__init__(func, name=name, description=description, is_long_running=True)

    def get_declaration(self) -> dict[str, Any]:
        declaration = super().get_declaration()
        note = (
            "NOTE: This is a long-running operation. Do not call this tool again "
            "if it has already returned some intermediate or pending status."
        )
        declaration["description"] = f"{declaration['description']}\n\n{note}".strip()
        return declaration


def tool(func: Callable) -> FunctionTool:
    """
    Decorator to convert a function into a FunctionTool.

    Args:
        func: The function to decorate

    Returns:
        FunctionTool instance
    """
    return FunctionTool(func)


__all__ = ["FunctionTool", "LongRunningFunctionTool", "TOOL_CONTEXT_PARAM", "tool"]
