"""Agent-local callback chains."""

import inspect
from typing import Any, Callable

from cordage.errors import CallbackError
from cordage.utils.logging import get_logger

logger = get_logger(__name__)

Callback = Callable[..., Any]


def as_callback_list(callbacks: "Callback | list[Callback] | None") -> list[Callback]:
    if callbacks is None:
        return []
    if callable(callbacks):
        return [callbacks]
    return list(callbacks)


async def run_callback_chain(callbacks: list[Callback], callback_kind: str, **kwargs: Any) -> Any:
    """
    Run agent-local callbacks in order, stopping at the first non-None result.

    Callbacks may be plain functions or coroutines and receive keyword
    arguments only.

    Raises:
        CallbackError: When a callback raises, labelled with its name and the callback kind
    """
    for callback in callbacks:
        name = getattr(callback, "__name__", type(callback).__name__)
        try:
            result = callback(**kwargs)
            if inspect.isawaitable(result):
                result = await result
        except CallbackError:
            raise
        except Exception as e:
            logger.error(
                "agent_callback_failed",
                callback=name,
                callback_kind=callback_kind,
                error=str(e),
                exc_info=True,
            )
            raise CallbackError(name, callback_kind, str(e)) from e
        if result is not None:
            logger.debug("agent_callback_short_circuit", callback=name, callback_kind=callback_kind)
            return result
    return None


__all__ = ["Callback", "as_callback_list", "run_callback_chain"]
