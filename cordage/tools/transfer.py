"""Built-in tool that hands the conversation to another agent."""

from cordage.tools.function_tool import FunctionTool


def transfer_to_agent(agent_name: str, tool_context) -> None:
    """Transfer the question to another agent.

    Use this when another agent is better suited to answer the user.
    """
    tool_context.actions.transfer_to_agent = agent_name


transfer_to_agent_tool = FunctionTool(transfer_to_agent)


__all__ = ["transfer_to_agent", "transfer_to_agent_tool"]
