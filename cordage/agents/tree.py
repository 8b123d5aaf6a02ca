"""
Agent hierarchy index.

Agents own their sub-agents but never hold a reference back to their
parent. Parent lookups go through an AgentTree: agents are stored in a flat
list and the parent of each is stored as an index into that list.
"""

from typing import TYPE_CHECKING, Iterator

from cordage.errors import AgentTreeError

if TYPE_CHECKING:
    from cordage.agents.base import BaseAgent


class AgentTree:
    """
    Flat table of an agent hierarchy.

    Args:
        root: Root agent; every agent reachable through sub_agents is indexed

    Raises:
        AgentTreeError: If two agents share a name or one agent has two parents
    """

    def __init__(self, root: "BaseAgent"):
        self._agents: list["BaseAgent"] = []
        self._parents: list[int | None] = []
        self._index: dict[str, int] = {}

        pending: list[tuple["BaseAgent", int | None]] = [(root, None)]
        while pending:
            agent, parent = pending.pop(0)
            existing = self._index.get(agent.name)
            if existing is not None:
                if self._agents[existing] is agent:
                    raise AgentTreeError(
                        f"Agent `{agent.name}` already has a parent agent and cannot "
                        "be added as a sub-agent of another agent."
                    )
                raise AgentTreeError(f"Duplicate agent name `{agent.name}` in agent tree.")

            index = len(self._agents)
            self._agents.append(agent)
            self._parents.append(parent)
            self._index[agent.name] = index
            pending.extend((sub_agent, index) for sub_agent in agent.sub_agents)

    @property
    def root(self) -> "BaseAgent":
        return self._agents[0]

    def find_agent(self, name: str) -> "BaseAgent | None":
        index = self._index.get(name)
        return None if index is None else self._agents[index]

    def parent_of(self, name: str) -> "BaseAgent | None":
        index = self._index.get(name)
        if index is None:
            return None
        parent = self._parents[index]
        return None if parent is None else self._agents[parent]

    def ancestors(self, name: str) -> list["BaseAgent"]:
        """Ancestors of ``name``, nearest first."""
        result = []
        parent = self.parent_of(name)
        while parent is not None:
            result.append(parent)
            parent = self.parent_of(parent.name)
        return result

    def __contains__(self, name: object) -> bool:
        return name in self._index

    def __iter__(self) -> Iterator["BaseAgent"]:
        return iter(self._agents)

    def __len__(self) -> int:
        return len(self._agents)


__all__ = ["AgentTree"]
