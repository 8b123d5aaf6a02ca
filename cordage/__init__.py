"""
Cordage - Agent Orchestration Core

Top-level exports for easy access to core functionality.
"""

# Config
from cordage.config import CordageSettings, settings

# Errors
from cordage.errors import (
    AgentNotFoundError,
    AgentTreeError,
    CallbackError,
    ContentReconstructionError,
    CordageError,
    LlmCallsLimitExceededError,
    ModelNotFoundError,
    PluginRegistrationError,
    SessionNotFoundError,
    ToolNotFoundError,
)

# Domain models
from cordage.domain import (
    AuthConfig,
    Content,
    Event,
    EventActions,
    FunctionCall,
    FunctionResponse,
    Part,
    Session,
    State,
)

# Models
from cordage.models import BaseLlm, LlmRequest, LlmResponse, ModelRegistry

# Services
from cordage.sessions import BaseSessionService, GetSessionConfig, InMemorySessionService
from cordage.artifacts import BaseArtifactService, InMemoryArtifactService
from cordage.memory import BaseMemoryService, InMemoryMemoryService

# Agents
from cordage.agents import (
    Agent,
    AgentKind,
    BaseAgent,
    CallbackContext,
    InvocationContext,
    LlmAgent,
    LoopAgent,
    ParallelAgent,
    RunConfig,
    SequentialAgent,
    StreamingMode,
)

# Tools
from cordage.tools import BaseTool, FunctionTool, LongRunningFunctionTool, ToolContext, tool

# Plugins
from cordage.plugins import BasePlugin, LoggingPlugin, PluginManager

# Runtime
from cordage.runtime import InMemoryRunner, Runner

__version__ = "0.1.0"

__all__ = [
    # Config
    "CordageSettings",
    "settings",
    # Errors
    "AgentNotFoundError",
    "AgentTreeError",
    "CallbackError",
    "ContentReconstructionError",
    "CordageError",
    "LlmCallsLimitExceededError",
    "ModelNotFoundError",
    "PluginRegistrationError",
    "SessionNotFoundError",
    "ToolNotFoundError",
    # Domain
    "AuthConfig",
    "Content",
    "Event",
    "EventActions",
    "FunctionCall",
    "FunctionResponse",
    "Part",
    "Session",
    "State",
    # Models
    "BaseLlm",
    "LlmRequest",
    "LlmResponse",
    "ModelRegistry",
    # Services
    "BaseSessionService",
    "GetSessionConfig",
    "InMemorySessionService",
    "BaseArtifactService",
    "InMemoryArtifactService",
    "BaseMemoryService",
    "InMemoryMemoryService",
    # Agents
    "Agent",
    "AgentKind",
    "BaseAgent",
    "CallbackContext",
    "InvocationContext",
    "LlmAgent",
    "LoopAgent",
    "ParallelAgent",
    "RunConfig",
    "SequentialAgent",
    "StreamingMode",
    # Tools
    "BaseTool",
    "FunctionTool",
    "LongRunningFunctionTool",
    "ToolContext",
    "tool",
    # Plugins
    "BasePlugin",
    "LoggingPlugin",
    "PluginManager",
    # Runtime
    "InMemoryRunner",
    "Runner",
]
