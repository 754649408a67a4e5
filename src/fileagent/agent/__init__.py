"""
fileagent agent module.

This module provides the agent loop that connects the model gateway to
the filesystem tools.

Each user turn runs one cycle:
1. The user's line is sent to the model
2. Model text is displayed, requested tool calls are dispatched
3. All tool results go back to the model in one follow-up request
4. The follow-up text is displayed and the loop waits for the next line

Usage:
    from fileagent.agent import AgentConfig, AgentLoop

    loop = AgentLoop(gateway, registry, read_line)
    result = loop.run()
"""

from fileagent.agent.loop import (
    AgentConfig,
    AgentLoop,
    AgentState,
    SessionResult,
    TurnResult,
)

__all__ = [
    "AgentConfig",
    "AgentLoop",
    "AgentState",
    "SessionResult",
    "TurnResult",
]
