# =============================================================================
# smoke_client.py  -  Smoke-test MCP client for the tool server
# =============================================================================
#
# HOW TO RUN:
#   python smoke_client.py [site_id]
#
# Starts tools/mcp_server.py as a stdio subprocess, lists its tools and
# runs a single plausible_query (visitors + pageviews, last 30 days).  Use
# it to check an API key or a self-hosted PLAUSIBLE_API_URL without going
# through the LLM agent.  DEBUG_STDIO=true makes both sides verbose.
# =============================================================================

import asyncio
import json
import logging
import os
import sys

from dotenv import load_dotenv
from fastmcp import Client
from fastmcp.client.transports import StdioTransport

from plausible.config import LoggingConfig

DEFAULT_SITE_ID = "example.com"

logger = logging.getLogger("plausible.client_smoke")


async def run(site_id: str) -> None:
    project_root = os.path.dirname(os.path.abspath(__file__))
    transport = StdioTransport(
        command=sys.executable,
        args=["-m", "tools.mcp_server"],
        env=dict(os.environ),
        cwd=project_root,
    )
    logger.debug("Spawning tool server from %s", project_root)

    async with Client(transport) as client:
        tools = await client.list_tools()
        print("Tools:", [tool.name for tool in tools])

        arguments = {
            "site_id": site_id,
            "metrics": ["visitors", "pageviews"],
            "date_range": "30d",
        }
        logger.debug("Calling plausible_query with %s", arguments)
        result = await client.call_tool("plausible_query", arguments)
        for block in result.content:
            text = getattr(block, "text", None)
            if text is None:
                continue
            try:
                print("Result:", json.dumps(json.loads(text), indent=2))
            except json.JSONDecodeError:
                print("Result:", text)


def main() -> None:
    load_dotenv()
    config = LoggingConfig.from_env()
    logging.basicConfig(
        level=logging.DEBUG if config.debug else logging.WARNING,
        format="%(asctime)s [CLIENT] %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )
    site_id = sys.argv[1] if len(sys.argv) > 1 else DEFAULT_SITE_ID
    asyncio.run(run(site_id))


if __name__ == "__main__":
    main()
