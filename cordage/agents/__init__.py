"""
Agents and the invocation context they run in.
"""

from cordage.agents.run_config import RunConfig, StreamingMode
from cordage.agents.context import InvocationContext, LlmCallCounter, new_invocation_id
from cordage.agents.callback_context import CallbackContext, ReadonlyContext
from cordage.agents.callbacks import run_callback_chain
from cordage.agents.tree import AgentTree
from cordage.agents.base import AgentKind, BaseAgent
from cordage.agents.sequential import SequentialAgent
from cordage.agents.loop import LoopAgent
from cordage.agents.parallel import ParallelAgent
from cordage.agents.llm_agent import Agent, LlmAgent

__all__ = [
    "Agent",
    "AgentKind",
    "AgentTree",
    "BaseAgent",
    "CallbackContext",
    "InvocationContext",
    "LlmAgent",
    "LlmCallCounter",
    "LoopAgent",
    "ParallelAgent",
    "ReadonlyContext",
    "RunConfig",
    "SequentialAgent",
    "StreamingMode",
    "new_invocation_id",
    "run_callback_chain",
]
