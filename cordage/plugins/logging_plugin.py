"""
Logging plugin.

Emits one structured log entry per callback. Never short-circuits.
"""

from typing import Any

from cordage.plugins.base import BasePlugin
from cordage.utils.logging import get_logger


def _preview(value: Any, limit: int = 200) -> str:
    text = str(value)
    return text if len(text) <= limit else text[:limit] + "..."


class LoggingPlugin(BasePlugin):
    """
    Plugin for logging invocation activity.
    """

    def __init__(self, name: str = "logging_plugin", logger_name: str = "cordage.plugins.trace"):
        super().__init__(name)
        self.logger = get_logger(logger_name)

    async def on_user_message_callback(self, *, invocation_context, user_message):
        self.logger.info(
            "user_message_received",
            invocation_id=invocation_context.invocation_id,
            session_id=invocation_context.session.id,
            parts=len(user_message.parts),
        )
        return None

    async def before_run_callback(self, *, invocation_context):
        self.logger.info(
            "run_started",
            invocation_id=invocation_context.invocation_id,
            agent=invocation_context.agent.name,
        )
        return None

    async def after_run_callback(self, *, invocation_context):
        self.logger.info("run_finished", invocation_id=invocation_context.invocation_id)
        return None

    async def on_event_callback(self, *, invocation_context, event):
        self.logger.debug(
            "event_emitted",
            event_id=event.id,
            author=event.author,
            branch=event.branch,
            function_calls=[call.name for call in event.get_function_calls()],
            final=event.is_final_response(),
        )
        return None

    async def before_agent_callback(self, *, agent, callback_context):
        self.logger.debug("agent_started", agent=agent.name, branch=callback_context.branch)
        return None

    async def after_agent_callback(self, *, agent, callback_context):
        self.logger.debug("agent_finished", agent=agent.name, branch=callback_context.branch)
        return None

    async def before_model_callback(self, *, callback_context, llm_request):
        self.logger.debug(
            "llm_request",
            agent=callback_context.agent_name,
            model=llm_request.model,
            contents_count=len(llm_request.contents),
            tools=list(llm_request.tools_dict.keys()),
        )
        return None

    async def after_model_callback(self, *, callback_context, llm_response):
        self.logger.debug(
            "llm_response",
            agent=callback_context.agent_name,
            partial=bool(llm_response.partial),
            error_code=llm_response.error_code,
            usage=llm_response.usage_metadata,
        )
        return None

    async def on_model_error_callback(self, *, callback_context, llm_request, error):
        self.logger.error(
            "llm_error", agent=callback_context.agent_name, model=llm_request.model, error=str(error)
        )
        return None

    async def before_tool_callback(self, *, tool, tool_args, tool_context):
        self.logger.debug(
            "tool_started",
            tool_name=tool.name,
            call_id=tool_context.function_call_id,
            args=_preview(tool_args),
        )
        return None

    async def after_tool_callback(self, *, tool, tool_args, tool_context, result):
        self.logger.debug(
            "tool_finished",
            tool_name=tool.name,
            call_id=tool_context.function_call_id,
            result=_preview(result),
        )
        return None

    async def on_tool_error_callback(self, *, tool, tool_args, tool_context, error):
        self.logger.error(
            "tool_failed", tool_name=tool.name, call_id=tool_context.function_call_id, error=str(error)
        )
        return None


__all__ = ["LoggingPlugin"]
