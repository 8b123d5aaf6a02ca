"""
LoopAgent - repeats its sub-agents.

Each iteration runs every sub-agent in order on the shared context. The
loop stops right after any event that escalates, or once max_iterations
full iterations have run.
"""

from contextlib import aclosing
from typing import AsyncGenerator, ClassVar

from cordage.agents.base import AgentKind, BaseAgent
from cordage.agents.callbacks import Callback
from cordage.agents.context import InvocationContext
from cordage.domain.events import Event
from cordage.utils.logging import get_logger

logger = get_logger(__name__)


class LoopAgent(BaseAgent):
    """
    Loop composition.

    Args:
        max_iterations: Iteration cap, None for no cap
    """

    kind: ClassVar[AgentKind] = AgentKind.LOOP

    def __init__(
        self,
        name: str,
        description: str = "",
        sub_agents: list[BaseAgent] | None = None,
        max_iterations: int | None = None,
        before_agent_callback: Callback | list[Callback] | None = None,
        after_agent_callback: Callback | list[Callback] | None = None,
    ):
        super().__init__(
            name=name,
            description=description,
            sub_agents=sub_agents,
            before_agent_callback=before_agent_callback,
            after_agent_callback=after_agent_callback,
        )
        self.max_iterations = max_iterations

    async def _run_async_impl(self, ctx: InvocationContext) -> AsyncGenerator[Event, None]:
        if not self.sub_agents:
            return

        iteration = 0
        while self.max_iterations is None or iteration < self.max_iterations:
            logger.debug("loop_iteration_started", agent=self.name, iteration=iteration)
            for sub_agent in self.sub_agents:
                async with aclosing(sub_agent.run_async(ctx)) as events:
                    async for event in events:
                        yield event
                        if event.actions.escalate:
                            logger.debug(
                                "loop_escalated",
                                agent=self.name,
                                iteration=iteration,
                                source=event.author,
                            )
                            return
            iteration += 1

        logger.debug("loop_max_iterations_reached", agent=self.name, iterations=iteration)


__all__ = ["LoopAgent"]
