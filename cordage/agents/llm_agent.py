"""
LlmAgent - an agent driven by a language model.
"""

import inspect
import re
from contextlib import aclosing
from typing import Any, AsyncGenerator, Callable, ClassVar, Literal

from cordage.agents.base import AgentKind, BaseAgent
from cordage.agents.callback_context import ReadonlyContext
from cordage.agents.callbacks import Callback, as_callback_list
from cordage.agents.context import InvocationContext
from cordage.domain.events import Event
from cordage.errors import ModelNotFoundError
from cordage.flows.llm_flow import LlmFlow
from cordage.models.base_llm import BaseLlm
from cordage.tools.base import BaseTool
from cordage.tools.function_tool import FunctionTool
from cordage.utils.logging import get_logger

logger = get_logger(__name__)

InstructionProvider = Callable[[ReadonlyContext], Any]

_STATE_PLACEHOLDER = re.compile(r"\{([^{}]+)\}")
_STATE_PREFIXES = ("app:", "user:", "temp:")


def _is_state_name(name: str) -> bool:
    for prefix in _STATE_PREFIXES:
        if name.startswith(prefix):
            name = name[len(prefix) :]
            break
    return name.isidentifier()


def inject_session_state(template: str, state: dict[str, Any]) -> str:
    """
    Fill ``{key}`` placeholders from session state.

    ``{key?}`` renders as an empty string when the key is missing; a missing
    required key raises KeyError. Braces around anything that is not a
    state name are left untouched.
    """

    def replace(match: re.Match) -> str:
        name = match.group(1).strip()
        optional = name.endswith("?")
        if optional:
            name = name[:-1]
        if not _is_state_name(name):
            return match.group(0)
        if name in state:
            return str(state[name])
        if optional:
            return ""
        raise KeyError(f"Context variable not found: `{name}`.")

    return _STATE_PLACEHOLDER.sub(replace, template)


class LlmAgent(BaseAgent):
    """
    Agent that alternates model calls and tool calls.

    Args:
        name: Agent name
        model: Model name resolved through the registry, or a BaseLlm instance;
            empty inherits the nearest LLM ancestor's model
        instruction: System instruction, or a callable of ReadonlyContext returning one
        tools: BaseTool instances or plain functions
        generate_content_config: Backend options copied into every request
        include_contents: "default" sends history, "none" only the current turn
        output_key: State key receiving the final response text
        disallow_transfer_to_parent: Keep the conversation with this agent after it replies
        before_model_callback / after_model_callback / on_model_error_callback:
            Agent-local model callbacks
        before_tool_callback / after_tool_callback / on_tool_error_callback:
            Agent-local tool callbacks
    """

    kind: ClassVar[AgentKind] = AgentKind.LLM

    def __init__(
        self,
        name: str,
        model: str | BaseLlm = "",
        instruction: str | InstructionProvider = "",
        description: str = "",
        tools: list[BaseTool | Callable] | None = None,
        sub_agents: list[BaseAgent] | None = None,
        generate_content_config: dict[str, Any] | None = None,
        include_contents: Literal["default", "none"] = "default",
        output_key: str | None = None,
        disallow_transfer_to_parent: bool = False,
        before_agent_callback: Callback | list[Callback] | None = None,
        after_agent_callback: Callback | list[Callback] | None = None,
        before_model_callback: Callback | list[Callback] | None = None,
        after_model_callback: Callback | list[Callback] | None = None,
        on_model_error_callback: Callback | list[Callback] | None = None,
        before_tool_callback: Callback | list[Callback] | None = None,
        after_tool_callback: Callback | list[Callback] | None = None,
        on_tool_error_callback: Callback | list[Callback] | None = None,
    ):
        super().__init__(
            name=name,
            description=description,
            sub_agents=sub_agents,
            before_agent_callback=before_agent_callback,
            after_agent_callback=after_agent_callback,
        )
        if include_contents not in ("default", "none"):
            raise ValueError(f"include_contents must be 'default' or 'none', got {include_contents!r}")

        self.model = model
        self.instruction = instruction
        self.tools = list(tools or [])
        self.generate_content_config = dict(generate_content_config or {})
        self.include_contents = include_contents
        self.output_key = output_key
        self.disallow_transfer_to_parent = disallow_transfer_to_parent

        self.before_model_callback = as_callback_list(before_model_callback)
        self.after_model_callback = as_callback_list(after_model_callback)
        self.on_model_error_callback = as_callback_list(on_model_error_callback)
        self.before_tool_callback = as_callback_list(before_tool_callback)
        self.after_tool_callback = as_callback_list(after_tool_callback)
        self.on_tool_error_callback = as_callback_list(on_tool_error_callback)

        self.canonical_tools: list[BaseTool] = [
            tool if isinstance(tool, BaseTool) else FunctionTool(tool) for tool in self.tools
        ]
        self._llm_flow = LlmFlow()

    def canonical_model(self, ctx: InvocationContext) -> BaseLlm:
        """Resolve the model serving this agent."""
        if isinstance(self.model, BaseLlm):
            return self.model
        if self.model:
            if ctx.model_registry is None:
                raise ModelNotFoundError(
                    f"Agent {self.name} names model {self.model} but no model registry is configured."
                )
            return ctx.model_registry.new_llm(self.model)

        if ctx.agent_tree is not None:
            for ancestor in ctx.agent_tree.ancestors(self.name):
                if ancestor.kind is AgentKind.LLM:
                    return ancestor.canonical_model(ctx)
        raise ModelNotFoundError(f"No model found for {self.name}.")

    async def canonical_instruction(self, ctx: InvocationContext) -> str:
        if callable(self.instruction):
            instruction = self.instruction(ReadonlyContext(ctx))
            if inspect.isawaitable(instruction):
                instruction = await instruction
            return instruction or ""
        if not self.instruction:
            return ""
        return inject_session_state(self.instruction, ctx.session.state)

    async def _run_async_impl(self, ctx: InvocationContext) -> AsyncGenerator[Event, None]:
        async with aclosing(self._llm_flow.run_async(ctx)) as events:
            async for event in events:
                self._maybe_save_output_to_state(event)
                yield event

    def _maybe_save_output_to_state(self, event: Event) -> None:
        if not self.output_key or event.author != self.name:
            return
        if not event.is_final_response() or not event.content or not event.content.parts:
            return
        text = "".join(part.text for part in event.content.parts if part.text and not part.thought)
        event.actions.state_delta[self.output_key] = text
        logger.debug("output_saved_to_state", agent=self.name, output_key=self.output_key)


Agent = LlmAgent

__all__ = ["Agent", "LlmAgent", "inject_session_state"]
