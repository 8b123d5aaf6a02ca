"""
LLM flow: the model/tool loop of an LLM agent.

Each step builds a request from the session log, calls the model through
the model callback chains and executes any function calls the model made.
Steps repeat until the agent produces a final response.
"""

from contextlib import aclosing
from typing import TYPE_CHECKING, AsyncGenerator

from cordage.agents.callback_context import CallbackContext
from cordage.agents.callbacks import run_callback_chain
from cordage.agents.context import InvocationContext
from cordage.agents.run_config import StreamingMode
from cordage.domain.events import Event
from cordage.errors import AgentNotFoundError
from cordage.flows.contents import get_contents, get_current_turn_contents
from cordage.flows.functions import (
    generate_auth_event,
    get_long_running_function_calls,
    handle_function_calls_async,
    populate_client_function_call_id,
)
from cordage.models.base_llm import BaseLlm
from cordage.models.llm_request import LlmRequest
from cordage.models.llm_response import LlmResponse
from cordage.utils.logging import get_logger

if TYPE_CHECKING:
    from cordage.agents.base import BaseAgent
    from cordage.agents.llm_agent import LlmAgent

logger = get_logger(__name__)


class LlmFlow:
    """Runs an LlmAgent until it produces a final response."""

    async def run_async(self, ctx: InvocationContext) -> AsyncGenerator[Event, None]:
        while not ctx.end_invocation:
            last_event = None
            async with aclosing(self._run_one_step_async(ctx)) as events:
                async for event in events:
                    last_event = event
                    yield event

            if last_event is None or last_event.is_final_response() or last_event.partial:
                break

    async def _run_one_step_async(self, ctx: InvocationContext) -> AsyncGenerator[Event, None]:
        agent: "LlmAgent" = ctx.agent
        llm = agent.canonical_model(ctx)
        llm_request = await self._preprocess_async(ctx, llm)
        if ctx.end_invocation:
            return

        callback_context = CallbackContext(ctx)
        actions_attached = False

        async with aclosing(
            self._call_llm_async(ctx, llm, llm_request, callback_context)
        ) as responses:
            async for llm_response in responses:
                if not (
                    llm_response.content or llm_response.error_code or llm_response.interrupted
                ):
                    continue

                event = self._finalize_model_response_event(ctx, llm_request, llm_response)
                if not event.partial and not actions_attached:
                    event.actions = callback_context.actions
                    actions_attached = True
                yield event

                if event.partial or not event.get_function_calls():
                    continue
                async with aclosing(
                    self._handle_function_calls_async(ctx, event, llm_request)
                ) as follow_ups:
                    async for follow_up in follow_ups:
                        yield follow_up

    async def _preprocess_async(self, ctx: InvocationContext, llm: BaseLlm) -> LlmRequest:
        agent: "LlmAgent" = ctx.agent
        llm_request = LlmRequest(model=llm.model, config=dict(agent.generate_content_config))

        instruction = await agent.canonical_instruction(ctx)
        if instruction:
            llm_request.append_instructions([instruction])

        llm_request.append_tools(agent.canonical_tools)

        if agent.include_contents == "none":
            llm_request.contents = get_current_turn_contents(
                ctx.branch, ctx.session.events, agent.name
            )
        else:
            llm_request.contents = get_contents(ctx.branch, ctx.session.events, agent.name)

        logger.debug(
            "llm_request_built",
            agent=agent.name,
            model=llm_request.model,
            contents_count=len(llm_request.contents),
            tools=list(llm_request.tools_dict.keys()),
        )
        return llm_request

    async def _call_llm_async(
        self,
        ctx: InvocationContext,
        llm: BaseLlm,
        llm_request: LlmRequest,
        callback_context: CallbackContext,
    ) -> AsyncGenerator[LlmResponse, None]:
        agent: "LlmAgent" = ctx.agent

        response = await ctx.plugin_manager.run_before_model_callback(
            callback_context=callback_context, llm_request=llm_request
        )
        if response is None:
            response = await run_callback_chain(
                agent.before_model_callback,
                "before_model_callback",
                callback_context=callback_context,
                llm_request=llm_request,
            )
        if response is not None:
            logger.debug("llm_call_skipped_by_callback", agent=agent.name)
            yield response
            return

        call_count = ctx.increment_llm_call_count()
        stream = ctx.run_config.streaming_mode is StreamingMode.SSE
        logger.debug("llm_call_started", agent=agent.name, model=llm.model, call_count=call_count)

        async with aclosing(llm.generate_content_async(llm_request, stream=stream)) as responses:
            while True:
                try:
                    llm_response = await anext(responses)
                except StopAsyncIteration:
                    break
                except Exception as e:
                    logger.warning("llm_call_failed", agent=agent.name, error=str(e))
                    recovered = await ctx.plugin_manager.run_on_model_error_callback(
                        callback_context=callback_context, llm_request=llm_request, error=e
                    )
                    if recovered is None:
                        recovered = await run_callback_chain(
                            agent.on_model_error_callback,
                            "on_model_error_callback",
                            callback_context=callback_context,
                            llm_request=llm_request,
                            error=e,
                        )
                    if recovered is None:
                        raise
                    yield recovered
                    return

                altered = await ctx.plugin_manager.run_after_model_callback(
                    callback_context=callback_context, llm_response=llm_response
                )
                if altered is None:
                    altered = await run_callback_chain(
                        agent.after_model_callback,
                        "after_model_callback",
                        callback_context=callback_context,
                        llm_response=llm_response,
                    )
                yield altered if altered is not None else llm_response

    def _finalize_model_response_event(
        self, ctx: InvocationContext, llm_request: LlmRequest, llm_response: LlmResponse
    ) -> Event:
        copied = llm_response.model_copy(deep=True)
        fields = {name: getattr(copied, name) for name in LlmResponse.model_fields}
        event = Event(
            invocation_id=ctx.invocation_id,
            author=ctx.agent.name,
            branch=ctx.branch,
            **fields,
        )
        if event.content and not event.content.role:
            event.content.role = "model"

        function_calls = event.get_function_calls()
        if function_calls:
            populate_client_function_call_id(event)
            long_running = get_long_running_function_calls(function_calls, llm_request.tools_dict)
            event.long_running_tool_ids = long_running or None
        return event

    async def _handle_function_calls_async(
        self, ctx: InvocationContext, function_call_event: Event, llm_request: LlmRequest
    ) -> AsyncGenerator[Event, None]:
        response_event = await handle_function_calls_async(
            ctx, function_call_event, llm_request.tools_dict
        )
        if response_event is None:
            return
        yield response_event

        auth_event = generate_auth_event(ctx, response_event)
        if auth_event is not None:
            logger.info(
                "credential_requested",
                agent=ctx.agent.name,
                calls=list(response_event.actions.requested_auth_configs.keys()),
            )
            yield auth_event
            return

        transfer_to = response_event.actions.transfer_to_agent
        if transfer_to:
            agent_to_run = self._get_agent_to_run(ctx, transfer_to)
            logger.info("agent_transfer", source=ctx.agent.name, target=transfer_to)
            async with aclosing(agent_to_run.run_async(ctx)) as events:
                async for event in events:
                    yield event

    def _get_agent_to_run(self, ctx: InvocationContext, agent_name: str) -> "BaseAgent":
        agent = None
        if ctx.agent_tree is not None:
            agent = ctx.agent_tree.find_agent(agent_name)
        if agent is None:
            agent = ctx.agent.find_agent(agent_name)
        if agent is None:
            raise AgentNotFoundError(f"Agent {agent_name} not found in the agent tree.")
        return agent


__all__ = ["LlmFlow"]
