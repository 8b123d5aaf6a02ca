"""
Content reconstruction.

Builds the list of conversation turns sent to the model from the session's
event log: filters events the current branch may not see, hides credential
plumbing, turns other agents' output into context prose for the current
agent, and pairs every function call with its (possibly late) response.
"""

import json
from typing import Any

from cordage.domain.content import Content, Part
from cordage.domain.events import Event
from cordage.errors import ContentReconstructionError
from cordage.flows.functions import (
    REQUEST_CREDENTIAL_FUNCTION_CALL_NAME,
    remove_client_function_call_id,
)
from cordage.utils.logging import get_logger

logger = get_logger(__name__)


def _to_json(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False, default=str)


def is_event_visible_to_branch(current_branch: str | None, event: Event) -> bool:
    """
    Whether ``event`` belongs to ``current_branch`` or one of its ancestors.

    Root events (no branch) are visible everywhere. A branch sees its own
    events and those of ancestor branches, never siblings or descendants.
    """
    if not event.branch:
        return True
    if not current_branch:
        return False
    return current_branch == event.branch or current_branch.startswith(event.branch + ".")


def is_auth_event(event: Event) -> bool:
    if not event.content:
        return False
    for part in event.content.parts:
        if part.function_call and part.function_call.name == REQUEST_CREDENTIAL_FUNCTION_CALL_NAME:
            return True
        if (
            part.function_response
            and part.function_response.name == REQUEST_CREDENTIAL_FUNCTION_CALL_NAME
        ):
            return True
    return False


def is_other_agent_reply(current_agent_name: str, event: Event) -> bool:
    return bool(
        current_agent_name and event.author != current_agent_name and event.author != "user"
    )


def convert_foreign_event(event: Event) -> Event:
    """
    Rewrite another agent's event as user-role context.

    Text becomes ``[author] said: ...``; calls and responses are described
    in prose so the current agent does not mistake them for its own turns.
    Thoughts are dropped.
    """
    if not event.content or not event.content.parts:
        return event

    parts = [Part(text="For context:")]
    for part in event.content.parts:
        if part.text and not part.thought:
            parts.append(Part(text=f"[{event.author}] said: {part.text}"))
        elif part.function_call:
            parts.append(
                Part(
                    text=(
                        f"[{event.author}] called tool `{part.function_call.name}` "
                        f"with parameters: {_to_json(part.function_call.args)}"
                    )
                )
            )
        elif part.function_response:
            parts.append(
                Part(
                    text=(
                        f"[{event.author}] `{part.function_response.name}` tool "
                        f"returned result: {_to_json(part.function_response.response)}"
                    )
                )
            )
        elif part.thought:
            continue
        else:
            parts.append(part.model_copy(deep=True))

    return Event(
        timestamp=event.timestamp,
        author="user",
        content=Content(role="user", parts=parts),
        branch=event.branch,
        invocation_id=event.invocation_id,
    )


def merge_function_response_events(function_response_events: list[Event]) -> Event:
    """
    Merge response events so that every call id appears once.

    A later response for the same id replaces the earlier one in place.
    """
    if not function_response_events:
        raise ValueError("At least one function_response event is required.")

    merged_event = function_response_events[0].model_copy(deep=True)
    if not merged_event.content or not merged_event.content.parts:
        raise ValueError("There should be at least one function_response part.")
    parts = merged_event.content.parts

    part_indices: dict[str, int] = {}
    for index, part in enumerate(parts):
        if part.function_response and part.function_response.id:
            part_indices[part.function_response.id] = index

    for event in function_response_events[1:]:
        if not event.content or not event.content.parts:
            raise ValueError("There should be at least one function_response part.")
        for part in event.content.parts:
            if part.function_response and part.function_response.id:
                call_id = part.function_response.id
                if call_id in part_indices:
                    parts[part_indices[call_id]] = part
                else:
                    parts.append(part)
                    part_indices[call_id] = len(parts) - 1
            else:
                parts.append(part)

    return merged_event


def rearrange_events_for_latest_function_response(events: list[Event]) -> list[Event]:
    """
    Move the latest function response next to its call.

    When the last event answers a call that is not immediately before it,
    everything between the call and the last event is dropped except the
    responses to the same call event, which are merged with the last event.

    Raises:
        ContentReconstructionError: If the responses do not belong to a single
            call event or no call event exists
    """
    if not events:
        return events

    function_responses = events[-1].get_function_responses()
    if not function_responses:
        return events

    response_ids = {response.id for response in function_responses if response.id}

    if len(events) >= 2:
        for function_call in events[-2].get_function_calls():
            if function_call.id and function_call.id in response_ids:
                return events

    call_event_index = -1
    for index in range(len(events) - 2, -1, -1):
        function_calls = events[index].get_function_calls()
        if not any(call.id and call.id in response_ids for call in function_calls):
            continue

        call_event_index = index
        call_ids = {call.id for call in function_calls if call.id}
        if not response_ids.issubset(call_ids):
            raise ContentReconstructionError(
                "Last response event should only contain the responses for the function "
                f"calls in the same function call event. Function call ids found: "
                f"{sorted(call_ids)}, function response ids provided: {sorted(response_ids)}"
            )
        response_ids = call_ids
        break

    if call_event_index == -1:
        raise ContentReconstructionError(
            f"No function call event found for function responses ids: {sorted(response_ids)}"
        )

    response_events = [
        event
        for event in events[call_event_index + 1 : -1]
        if any(response.id in response_ids for response in event.get_function_responses())
    ]
    response_events.append(events[-1])

    logger.debug(
        "latest_function_response_rearranged",
        dropped=len(events) - call_event_index - 1 - len(response_events),
        merged=len(response_events),
    )

    result = list(events[: call_event_index + 1])
    result.append(merge_function_response_events(response_events))
    return result


def rearrange_events_for_async_function_responses_in_history(events: list[Event]) -> list[Event]:
    """
    Place each function call event directly before its responses.

    Responses are removed from where they landed and re-inserted after the
    call they answer, merged into one event when they arrived separately.
    Responses that match no call are dropped.
    """
    response_index_by_call_id: dict[str, int] = {}
    for index, event in enumerate(events):
        for response in event.get_function_responses():
            if response.id:
                response_index_by_call_id[response.id] = index

    result: list[Event] = []
    for event in events:
        if event.get_function_responses():
            continue

        function_calls = event.get_function_calls()
        result.append(event)
        if not function_calls:
            continue

        indices = sorted(
            {
                response_index_by_call_id[call.id]
                for call in function_calls
                if call.id and call.id in response_index_by_call_id
            }
        )
        if not indices:
            continue
        if len(indices) == 1:
            result.append(events[indices[0]])
        else:
            result.append(merge_function_response_events([events[i] for i in indices]))

    return result


def _is_renderable(event: Event) -> bool:
    content = event.content
    if not content or not content.role or not content.parts:
        return False
    return content.parts[0].text != ""


def get_contents(
    current_branch: str | None, events: list[Event], agent_name: str = ""
) -> list[Content]:
    """
    Conversation contents for a model call.

    Args:
        current_branch: Branch of the invocation asking for contents
        events: Session event log
        agent_name: Agent the contents are built for

    Returns:
        Deep-copied contents with engine-assigned call ids removed
    """
    filtered: list[Event] = []
    for event in events:
        if not _is_renderable(event):
            continue
        if not is_event_visible_to_branch(current_branch, event):
            continue
        if is_auth_event(event):
            continue
        filtered.append(
            convert_foreign_event(event) if is_other_agent_reply(agent_name, event) else event
        )

    result = rearrange_events_for_latest_function_response(filtered)
    result = rearrange_events_for_async_function_responses_in_history(result)

    contents = []
    for event in result:
        content = event.content.model_copy(deep=True)
        remove_client_function_call_id(content)
        contents.append(content)
    return contents


def get_current_turn_contents(
    current_branch: str | None, events: list[Event], agent_name: str = ""
) -> list[Content]:
    """Contents from the latest user message or other-agent reply onwards."""
    for index in range(len(events) - 1, -1, -1):
        event = events[index]
        if event.author == "user" or is_other_agent_reply(agent_name, event):
            return get_contents(current_branch, events[index:], agent_name)
    return []


__all__ = [
    "convert_foreign_event",
    "get_contents",
    "get_current_turn_contents",
    "is_auth_event",
    "is_event_visible_to_branch",
    "is_other_agent_reply",
    "merge_function_response_events",
    "rearrange_events_for_async_function_responses_in_history",
    "rearrange_events_for_latest_function_response",
]
