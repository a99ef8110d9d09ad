# =============================================================================
# agent/plausible_agent.py  -  Google ADK Agent Configuration
# =============================================================================
#
# WHAT THIS FILE DOES:
#   Creates the Google ADK agent that answers analytics questions by
#   calling the Plausible MCP tools.
#
# HOW IT FITS TOGETHER:
#
#   ADK Agent (LiteLlm model) ──stdio──▶ tools/mcp_server.py ──HTTPS──▶ Plausible
#        │                                     │
#        └─ system prompt (agent/prompt.py)    └─ plausible/ (validation, client)
#
#   ADK starts the tool server as a subprocess and talks to it over
#   stdin/stdout.  The agent has no analytics logic of its own: it decides
#   which query to run and explains the results.
#
# MODEL:
#   Any LiteLlm model string works.  The default goes through OpenRouter
#   (reads OPENROUTER_API_KEY); override it with AGENT_MODEL.
# =============================================================================

import os
import sys

from google.adk.agents import Agent
from google.adk.models.lite_llm import LiteLlm
from google.adk.tools.mcp_tool import MCPToolset
from mcp import StdioServerParameters

from agent.prompt import get_analytics_prompt

DEFAULT_MODEL = "openrouter/openai/gpt-4o"


def create_agent() -> Agent:
    """Create the Plausible analytics agent.

    The tool server is launched as `python -m tools.mcp_server` from the
    project root, with the same interpreter as this process so it sees the
    same installed packages.

    Returns:
        A configured Google ADK Agent instance.
    """
    project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

    mcp_tools = MCPToolset(
        connection_params=StdioServerParameters(
            command=sys.executable,
            args=["-m", "tools.mcp_server"],
            cwd=project_root,
            # The stdio transport only forwards a minimal environment by
            # default; the server needs PLAUSIBLE_API_KEY and DEBUG_*.
            env=dict(os.environ),
        ),
    )

    return Agent(
        name="plausible_analytics_assistant",
        model=LiteLlm(model=os.environ.get("AGENT_MODEL", DEFAULT_MODEL)),
        instruction=get_analytics_prompt(),
        tools=[mcp_tools],
    )
