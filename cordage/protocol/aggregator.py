"""
Task result aggregation.

Watches the outbound status updates of one task and decides its terminal
state with the precedence failed > auth-required > input-required > working.
"""

from uuid import uuid4

from cordage.protocol.models import (
    ProtocolEvent,
    ProtocolMessage,
    TaskArtifactUpdateEvent,
    TaskState,
    TaskStatus,
    TaskStatusUpdateEvent,
)

_PRECEDENCE = {
    TaskState.WORKING: 0,
    TaskState.INPUT_REQUIRED: 1,
    TaskState.AUTH_REQUIRED: 2,
    TaskState.FAILED: 3,
}


class TaskResultAggregator:
    """
    Running aggregate of a task's status updates.

    Interim updates are forwarded to clients as ``working``; the aggregated
    state is only reported once the task ends.
    """

    def __init__(self):
        self._state = TaskState.WORKING
        self._message: ProtocolMessage | None = None

    @property
    def task_state(self) -> TaskState:
        return self._state

    @property
    def task_status_message(self) -> ProtocolMessage | None:
        return self._message

    @property
    def final_state(self) -> TaskState:
        """Terminal state: a task still working when the run ends has completed."""
        return TaskState.COMPLETED if self._state is TaskState.WORKING else self._state

    def process_event(self, event: ProtocolEvent) -> None:
        if not isinstance(event, TaskStatusUpdateEvent):
            return

        state = event.status.state
        if state in _PRECEDENCE and _PRECEDENCE[state] > _PRECEDENCE[self._state]:
            self._state = state
            self._message = event.status.message
        elif self._state is TaskState.WORKING:
            self._message = event.status.message

        event.status.state = TaskState.WORKING

    def final_events(self, task_id: str = "", context_id: str = "") -> list[ProtocolEvent]:
        """
        Events that close the task.

        A completed task publishes its last message as an artifact followed
        by a final ``completed`` status; any other state is reported with its
        message.
        """
        state = self.final_state
        if state is TaskState.COMPLETED and self._message and self._message.parts:
            return [
                TaskArtifactUpdateEvent(
                    task_id=task_id,
                    context_id=context_id,
                    artifact_id=str(uuid4()),
                    parts=self._message.parts,
                ),
                TaskStatusUpdateEvent(
                    task_id=task_id,
                    context_id=context_id,
                    status=TaskStatus(state=state),
                    final=True,
                ),
            ]
        return [
            TaskStatusUpdateEvent(
                task_id=task_id,
                context_id=context_id,
                status=TaskStatus(state=state, message=self._message),
                final=True,
            )
        ]


__all__ = ["TaskResultAggregator"]
