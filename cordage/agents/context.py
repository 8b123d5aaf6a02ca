"""
Invocation context.

One InvocationContext exists per agent activation. The runner creates the
root context for a top-level run; each agent derives a copy for itself and
the Parallel operator derives a branch-extended copy per child. The LLM call
counter and the plugin manager are shared by reference across every copy.
"""

from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING
from uuid import uuid4

from cordage.agents.run_config import RunConfig
from cordage.domain.content import Content
from cordage.domain.session import Session
from cordage.errors import LlmCallsLimitExceededError

if TYPE_CHECKING:
    from cordage.agents.base import BaseAgent
    from cordage.agents.tree import AgentTree
    from cordage.artifacts.base import BaseArtifactService
    from cordage.memory.base import BaseMemoryService
    from cordage.models.registry import ModelRegistry
    from cordage.plugins.manager import PluginManager
    from cordage.sessions.base import BaseSessionService


def new_invocation_id() -> str:
    return "e-" + str(uuid4())


@dataclass
class LlmCallCounter:
    """Model call budget shared by every context of one invocation."""

    limit: int = 0
    count: int = 0

    def increment(self) -> int:
        self.count += 1
        if self.limit > 0 and self.count > self.limit:
            raise LlmCallsLimitExceededError(
                f"Max number of llm calls limit of {self.limit} exceeded"
            )
        return self.count


@dataclass
class InvocationContext:
    """
    Per-activation execution context.

    Attributes:
        invocation_id: Shared by every event produced during one top-level run
        agent: Agent currently executing
        session: Live session the runner appends to
        session_service: Service owning the session
        plugin_manager: Interceptor chain shared by the whole invocation
        branch: Dot-separated composition path, None at the root
        user_content: The message that started the invocation
        end_invocation: Set to stop the current agent after the current event
        run_config: Options of the run
        agent_tree: Index of the agent hierarchy, for parent lookups and transfers
        model_registry: Resolves model names for LLM agents
    """

    invocation_id: str
    agent: "BaseAgent"
    session: Session
    session_service: "BaseSessionService"
    plugin_manager: "PluginManager"
    branch: str | None = None
    user_content: Content | None = None
    end_invocation: bool = False
    run_config: RunConfig = field(default_factory=RunConfig)
    artifact_service: "BaseArtifactService | None" = None
    memory_service: "BaseMemoryService | None" = None
    agent_tree: "AgentTree | None" = None
    model_registry: "ModelRegistry | None" = None
    llm_call_counter: LlmCallCounter | None = None

    def __post_init__(self):
        if self.llm_call_counter is None:
            self.llm_call_counter = LlmCallCounter(limit=self.run_config.max_llm_calls)

    @property
    def app_name(self) -> str:
        return self.session.app_name

    @property
    def user_id(self) -> str:
        return self.session.user_id

    def derive_for_agent(self, agent: "BaseAgent") -> "InvocationContext":
        """Copy with ``agent`` as the executing agent."""
        return replace(self, agent=agent)

    def derive_for_branch(self, operator_name: str, child_name: str) -> "InvocationContext":
        """Copy whose branch is extended by ``operator_name.child_name``."""
        suffix = f"{operator_name}.{child_name}"
        branch = f"{self.branch}.{suffix}" if self.branch else suffix
        return replace(self, branch=branch)

    def increment_llm_call_count(self) -> int:
        """
        Count one model call against the invocation budget.

        Raises:
            LlmCallsLimitExceededError: When a positive ceiling is passed
        """
        return self.llm_call_counter.increment()


__all__ = ["InvocationContext", "LlmCallCounter", "new_invocation_id"]
