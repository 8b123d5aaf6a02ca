"""
Function-call coordination.

Executes the function calls of one model turn concurrently, runs the tool
callback chains around each call and merges the per-call response events
into a single event. Also owns the client-side call id scheme and the
synthetic credential-request event.
"""

import asyncio
import copy
from typing import TYPE_CHECKING, Any
from uuid import uuid4

from pydantic import BaseModel

from cordage.agents.base import AgentKind
from cordage.agents.callbacks import run_callback_chain
from cordage.domain.actions import EventActions
from cordage.domain.content import Content, FunctionCall, FunctionResponse, Part
from cordage.domain.events import Event
from cordage.errors import ToolNotFoundError
from cordage.tools.tool_context import ToolContext
from cordage.utils.logging import get_logger

if TYPE_CHECKING:
    from cordage.agents.context import InvocationContext
    from cordage.tools.base import BaseTool

logger = get_logger(__name__)

AF_FUNCTION_CALL_ID_PREFIX = "cdg-"
REQUEST_CREDENTIAL_FUNCTION_CALL_NAME = "cordage_request_credential"


def generate_client_function_call_id() -> str:
    return f"{AF_FUNCTION_CALL_ID_PREFIX}{uuid4()}"


def populate_client_function_call_id(model_response_event: Event) -> None:
    """Give every function call of the event a non-empty id."""
    for function_call in model_response_event.get_function_calls():
        if not function_call.id:
            function_call.id = generate_client_function_call_id()


def remove_client_function_call_id(content: Content | None) -> None:
    """Strip engine-assigned ids so the model never sees them."""
    if not content or not content.parts:
        return
    for part in content.parts:
        if part.function_call and (part.function_call.id or "").startswith(
            AF_FUNCTION_CALL_ID_PREFIX
        ):
            part.function_call.id = None
        if part.function_response and (part.function_response.id or "").startswith(
            AF_FUNCTION_CALL_ID_PREFIX
        ):
            part.function_response.id = None


def get_long_running_function_calls(
    function_calls: list[FunctionCall], tools_dict: dict[str, "BaseTool"]
) -> set[str]:
    """Ids of calls whose tool is long-running."""
    long_running_ids = set()
    for function_call in function_calls:
        tool = tools_dict.get(function_call.name)
        if tool is not None and tool.is_long_running and function_call.id:
            long_running_ids.add(function_call.id)
    return long_running_ids


def generate_auth_event(
    ctx: "InvocationContext", function_response_event: Event
) -> Event | None:
    """
    Build the credential-request event for a function response event.

    Each pending auth config becomes one long-running call to the reserved
    credential-request function, so the host treats the turn as waiting on
    the client.
    """
    requested = function_response_event.actions.requested_auth_configs
    if not requested:
        return None

    parts = []
    long_running_tool_ids = set()
    for function_call_id, auth_config in requested.items():
        request_call = FunctionCall(
            id=generate_client_function_call_id(),
            name=REQUEST_CREDENTIAL_FUNCTION_CALL_NAME,
            args={
                "function_call_id": function_call_id,
                "auth_config": auth_config.model_dump(exclude_none=True),
            },
        )
        long_running_tool_ids.add(request_call.id)
        parts.append(Part(function_call=request_call))

    return Event(
        invocation_id=ctx.invocation_id,
        author=ctx.agent.name,
        branch=ctx.branch,
        content=Content(role="model", parts=parts),
        long_running_tool_ids=long_running_tool_ids,
    )


def deep_merge_dicts(d1: dict[str, Any], d2: dict[str, Any]) -> dict[str, Any]:
    """
    Merge ``d2`` into a copy of ``d1``.

    Nested dicts merge recursively; any other value in ``d2``, lists
    included, replaces the one in ``d1``.
    """
    merged = dict(d1)
    for key, value in d2.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = deep_merge_dicts(merged[key], value)
        else:
            merged[key] = value
    return merged


def merge_parallel_function_response_events(function_response_events: list[Event]) -> Event:
    """
    Merge the response events of one model turn into a single event.

    A single event is returned as is. Otherwise parts are concatenated in
    input order, actions are deep-merged and the timestamp of the first
    event is kept.
    """
    if not function_response_events:
        raise ValueError("No function response events provided.")
    if len(function_response_events) == 1:
        return function_response_events[0]

    parts: list[Part] = []
    merged_actions: dict[str, Any] = {}
    for event in function_response_events:
        if event.content:
            parts.extend(event.content.parts)
        merged_actions = deep_merge_dicts(
            merged_actions, event.actions.model_dump(exclude_defaults=True)
        )

    base_event = function_response_events[0]
    return Event(
        invocation_id=base_event.invocation_id,
        author=base_event.author,
        branch=base_event.branch,
        content=Content(role="user", parts=parts),
        actions=EventActions.model_validate(merged_actions),
        timestamp=base_event.timestamp,
    )


def find_matching_function_call(events: list[Event]) -> Event | None:
    """The event holding the call answered by the last event, if it is a response."""
    if not events:
        return None
    function_responses = events[-1].get_function_responses()
    if not function_responses:
        return None

    call_id = function_responses[0].id
    for event in reversed(events[:-1]):
        if any(call.id == call_id for call in event.get_function_calls()):
            return event
    return None


class FunctionCallCoordinator:
    """
    Executes the function calls of one model turn.

    Args:
        ctx: Context of the agent that received the calls
        tools_dict: Function name to tool mapping
    """

    def __init__(self, ctx: "InvocationContext", tools_dict: dict[str, "BaseTool"]):
        self.ctx = ctx
        self.tools_dict = tools_dict
        # Agent-local tool callbacks only exist on LLM agents.
        self._agent = ctx.agent if ctx.agent.kind is AgentKind.LLM else None

    async def execute(self, function_call: FunctionCall) -> Event | None:
        """
        Execute a single function call.

        Returns:
            The function response event, or None for a long-running tool
            that produced no result yet

        Raises:
            ToolNotFoundError: If no tool implements the call
            Exception: The tool failure when no error callback recovers it
        """
        tool = self.tools_dict.get(function_call.name)
        if tool is None:
            raise ToolNotFoundError(
                f"Function {function_call.name} is not found in the tools_dict: "
                f"{sorted(self.tools_dict.keys())}"
            )

        plugin_manager = self.ctx.plugin_manager
        tool_context = ToolContext(self.ctx, function_call_id=function_call.id)
        args = copy.deepcopy(function_call.args)

        logger.debug("executing_tool", tool_name=tool.name, tool_call_id=function_call.id)

        result = await plugin_manager.run_before_tool_callback(
            tool=tool, tool_args=args, tool_context=tool_context
        )
        if result is None and self._agent is not None:
            result = await run_callback_chain(
                self._agent.before_tool_callback,
                "before_tool_callback",
                tool=tool,
                args=args,
                tool_context=tool_context,
            )

        if result is None:
            try:
                result = await tool.run_async(args=args, tool_context=tool_context)
            except Exception as e:
                logger.warning(
                    "tool_execution_exception",
                    tool_name=tool.name,
                    tool_call_id=function_call.id,
                    error=str(e),
                )
                result = await plugin_manager.run_on_tool_error_callback(
                    tool=tool, tool_args=args, tool_context=tool_context, error=e
                )
                if result is None and self._agent is not None:
                    result = await run_callback_chain(
                        self._agent.on_tool_error_callback,
                        "on_tool_error_callback",
                        tool=tool,
                        args=args,
                        tool_context=tool_context,
                        error=e,
                    )
                if result is None:
                    raise
                logger.info("tool_error_recovered", tool_name=tool.name)

        altered = await plugin_manager.run_after_tool_callback(
            tool=tool, tool_args=args, tool_context=tool_context, result=result
        )
        if altered is None and self._agent is not None:
            altered = await run_callback_chain(
                self._agent.after_tool_callback,
                "after_tool_callback",
                tool=tool,
                args=args,
                tool_context=tool_context,
                tool_response=result,
            )
        if altered is not None:
            result = altered

        if tool.is_long_running and result is None:
            logger.debug("tool_pending", tool_name=tool.name, tool_call_id=function_call.id)
            return None

        logger.debug("tool_execution_completed", tool_name=tool.name, tool_call_id=function_call.id)
        return self._build_response_event(tool, result, tool_context)

    async def execute_batch(self, function_calls: list[FunctionCall]) -> list[Event]:
        """
        Execute calls concurrently and wait for all of them.

        The first failure is re-raised only after every call has finished.
        """
        results = await asyncio.gather(
            *(self.execute(call) for call in function_calls), return_exceptions=True
        )
        for result in results:
            if isinstance(result, BaseException):
                raise result
        return [result for result in results if result is not None]

    def _build_response_event(
        self, tool: "BaseTool", result: Any, tool_context: ToolContext
    ) -> Event:
        if isinstance(result, BaseModel):
            result = result.model_dump()
        if not isinstance(result, dict):
            result = {"result": result}

        part = Part(
            function_response=FunctionResponse(
                id=tool_context.function_call_id, name=tool.name, response=result
            )
        )
        return Event(
            invocation_id=self.ctx.invocation_id,
            author=self.ctx.agent.name,
            branch=self.ctx.branch,
            content=Content(role="user", parts=[part]),
            actions=tool_context.actions,
        )


async def handle_function_calls_async(
    ctx: "InvocationContext",
    function_call_event: Event,
    tools_dict: dict[str, "BaseTool"],
    filters: set[str] | None = None,
) -> Event | None:
    """
    Execute the function calls of ``function_call_event``.

    Args:
        ctx: Context of the agent that received the calls
        function_call_event: Model event carrying the calls
        tools_dict: Function name to tool mapping
        filters: Only execute calls with these ids

    Returns:
        One merged function response event, or None when nothing ran or
        every call is still pending
    """
    function_calls = function_call_event.get_function_calls()
    if filters is not None:
        function_calls = [call for call in function_calls if call.id in filters]
    if not function_calls:
        return None

    events = await FunctionCallCoordinator(ctx, tools_dict).execute_batch(function_calls)
    if not events:
        return None

    merged = merge_parallel_function_response_events(events)
    logger.debug(
        "function_responses_merged",
        agent=ctx.agent.name,
        calls=len(function_calls),
        responses=len(events),
    )
    return merged


__all__ = [
    "AF_FUNCTION_CALL_ID_PREFIX",
    "REQUEST_CREDENTIAL_FUNCTION_CALL_NAME",
    "FunctionCallCoordinator",
    "deep_merge_dicts",
    "find_matching_function_call",
    "generate_auth_event",
    "generate_client_function_call_id",
    "get_long_running_function_calls",
    "handle_function_calls_async",
    "merge_parallel_function_response_events",
    "populate_client_function_call_id",
    "remove_client_function_call_id",
]
