"""
SequentialAgent - runs sub-agents one after another.
"""

from contextlib import aclosing
from typing import AsyncGenerator, ClassVar

from cordage.agents.base import AgentKind, BaseAgent
from cordage.agents.context import InvocationContext
from cordage.domain.events import Event


class SequentialAgent(BaseAgent):
    """
    Sequential composition.

    Each sub-agent runs to completion in listed order on the same context,
    so all of them share one branch and see each other's events.
    """

    kind: ClassVar[AgentKind] = AgentKind.SEQUENTIAL

    async def _run_async_impl(self, ctx: InvocationContext) -> AsyncGenerator[Event, None]:
        for sub_agent in self.sub_agents:
            async with aclosing(sub_agent.run_async(ctx)) as events:
                async for event in events:
                    yield event


__all__ = ["SequentialAgent"]
