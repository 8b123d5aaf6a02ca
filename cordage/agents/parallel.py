"""
ParallelAgent - runs sub-agents concurrently on isolated branches.

Every sub-agent runs in its own worker task on a branch-extended context.
Workers hand events to the operator through a shared Wire and then wait
until the operator has passed that event on to its consumer, so no worker
ever gets more than one event ahead of what the consumer has taken.
"""

import asyncio
from contextlib import aclosing
from dataclasses import dataclass
from typing import AsyncGenerator, ClassVar

from cordage.agents.base import AgentKind, BaseAgent
from cordage.agents.context import InvocationContext
from cordage.domain.events import Event
from cordage.runtime.wire import Wire
from cordage.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class _Delivery:
    event: Event
    resume: asyncio.Event


@dataclass
class _WorkerDone:
    agent_name: str
    error: BaseException | None = None


class ParallelAgent(BaseAgent):
    """
    Parallel composition.

    Events are forwarded in whichever order workers produce them. The
    combined stream ends once every worker has finished; a worker failure
    cancels the others and is re-raised.
    """

    kind: ClassVar[AgentKind] = AgentKind.PARALLEL

    async def _run_async_impl(self, ctx: InvocationContext) -> AsyncGenerator[Event, None]:
        if not self.sub_agents:
            return

        # One outstanding item per worker at most, so writes never block.
        wire = Wire(maxsize=len(self.sub_agents))
        workers = [
            asyncio.create_task(
                self._run_worker(sub_agent, ctx.derive_for_branch(self.name, sub_agent.name), wire),
                name=f"{self.name}.{sub_agent.name}",
            )
            for sub_agent in self.sub_agents
        ]
        remaining = len(workers)

        try:
            async with aclosing(wire.read()) as items:
                async for item in items:
                    if isinstance(item, _WorkerDone):
                        remaining -= 1
                        logger.debug(
                            "parallel_branch_finished",
                            agent=self.name,
                            branch=item.agent_name,
                            remaining=remaining,
                        )
                        if item.error is not None:
                            raise item.error
                        if remaining == 0:
                            break
                        continue

                    yield item.event
                    item.resume.set()
        finally:
            for worker in workers:
                if not worker.done():
                    worker.cancel()
            await asyncio.gather(*workers, return_exceptions=True)
            await wire.close()

    async def _run_worker(self, agent: BaseAgent, ctx: InvocationContext, wire: Wire) -> None:
        try:
            async with aclosing(agent.run_async(ctx)) as events:
                async for event in events:
                    resume = asyncio.Event()
                    await wire.write(_Delivery(event=event, resume=resume))
                    await resume.wait()
        except Exception as e:
            logger.error("parallel_branch_failed", agent=self.name, branch=agent.name, error=str(e))
            await wire.write(_WorkerDone(agent_name=agent.name, error=e))
            return
        await wire.write(_WorkerDone(agent_name=agent.name))


__all__ = ["ParallelAgent"]
