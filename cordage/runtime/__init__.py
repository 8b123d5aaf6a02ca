"""Runtime: event channel and runners."""

from cordage.runtime.wire import Wire
from cordage.runtime.runner import InMemoryRunner, Runner

__all__ = ["InMemoryRunner", "Runner", "Wire"]
