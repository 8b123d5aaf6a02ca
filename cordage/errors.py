"""Engine exceptions.

Every exception carries a machine-readable ``code`` so the runner can turn a
failure into a terminal event without inspecting exception types.
"""


class CordageError(Exception):
    """Base exception for cordage errors."""

    code: str = "INTERNAL_ERROR"


class LlmCallsLimitExceededError(CordageError):
    """The invocation made more model calls than its run config allows."""

    code = "LLM_CALLS_LIMIT_EXCEEDED"


class CallbackError(CordageError):
    """An interceptor raised while a callback chain was running."""

    code = "CALLBACK_FAILED"

    def __init__(self, interceptor: str, callback_kind: str, message: str):
        self.interceptor = interceptor
        self.callback_kind = callback_kind
        super().__init__(
            f"Error in '{interceptor}' during '{callback_kind}' callback: {message}"
        )


class ToolNotFoundError(CordageError):
    """The model requested a function that no tool implements."""

    code = "TOOL_NOT_FOUND"


class ContentReconstructionError(CordageError):
    """Function responses in the log do not line up with their calls."""

    code = "INCONSISTENT_FUNCTION_RESPONSES"


class SessionNotFoundError(CordageError):
    """Session not found."""

    code = "SESSION_NOT_FOUND"


class AgentNotFoundError(CordageError):
    """Agent not found."""

    code = "AGENT_NOT_FOUND"


class AgentTreeError(CordageError):
    """Invalid agent name or agent hierarchy."""

    code = "INVALID_AGENT_TREE"


class ModelNotFoundError(CordageError):
    """No registered model class handles the requested model name."""

    code = "MODEL_NOT_FOUND"


class PluginRegistrationError(CordageError):
    """Plugin name already registered."""

    code = "DUPLICATE_PLUGIN"


__all__ = [
    "CordageError",
    "LlmCallsLimitExceededError",
    "CallbackError",
    "ToolNotFoundError",
    "ContentReconstructionError",
    "SessionNotFoundError",
    "AgentNotFoundError",
    "AgentTreeError",
    "ModelNotFoundError",
    "PluginRegistrationError",
]
