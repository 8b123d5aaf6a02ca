"""
Event record for the append-only session log.

Every model turn, tool result, user message and state change an agent makes
is recorded as an Event. The log of events is the only source of truth for
conversation history; session state is derived from the deltas they carry.
"""

import time
from uuid import uuid4

from pydantic import ConfigDict, Field

from cordage.domain.actions import EventActions
from cordage.domain.content import FunctionCall, FunctionResponse
from cordage.models.llm_response import LlmResponse


def new_event_id() -> str:
    return str(uuid4())


class Event(LlmResponse):
    """
    An immutable-after-append record in a session.

    Attributes:
        id: Globally unique event id
        invocation_id: Id shared by every event of one top-level run
        author: "user" or the name of the agent that produced the event
        branch: Dot-separated path of the composition sub-tree, None at the root
        timestamp: Seconds since the epoch
        actions: Side effects to apply when the event is appended
        long_running_tool_ids: Ids of calls in this event that will be resolved later
    """

    model_config = ConfigDict(extra="forbid")

    id: str = Field(default_factory=new_event_id)
    invocation_id: str = ""
    author: str
    branch: str | None = None
    timestamp: float = Field(default_factory=time.time)
    actions: EventActions = Field(default_factory=EventActions)
    long_running_tool_ids: set[str] | None = None

    @staticmethod
    def new_id() -> str:
        return new_event_id()

    def get_function_calls(self) -> list[FunctionCall]:
        if not self.content:
            return []
        return [part.function_call for part in self.content.parts if part.function_call]

    def get_function_responses(self) -> list[FunctionResponse]:
        if not self.content:
            return []
        return [
            part.function_response for part in self.content.parts if part.function_response
        ]

    def has_trailing_code_execution_result(self) -> bool:
        if not self.content or not self.content.parts:
            return False
        return self.content.parts[-1].code_execution_result is not None

    def is_final_response(self) -> bool:
        """Whether this event ends the agent's turn.

        Skipped summarization and pending long-running calls end the turn
        early; otherwise the event must be a complete, non-tool response.
        """
        if self.actions.skip_summarization or self.long_running_tool_ids:
            return True
        return (
            not self.get_function_calls()
            and not self.get_function_responses()
            and not self.partial
            and not self.has_trailing_code_execution_result()
        )


__all__ = ["Event", "new_event_id"]
