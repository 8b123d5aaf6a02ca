"""
Flows: function-call coordination, content reconstruction and the LLM loop.
"""

from cordage.flows.contents import get_contents, get_current_turn_contents
from cordage.flows.functions import (
    FunctionCallCoordinator,
    handle_function_calls_async,
    merge_parallel_function_response_events,
)
from cordage.flows.llm_flow import LlmFlow

__all__ = [
    "FunctionCallCoordinator",
    "LlmFlow",
    "get_contents",
    "get_current_turn_contents",
    "handle_function_calls_async",
    "merge_parallel_function_response_events",
]
