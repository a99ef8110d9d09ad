# =============================================================================
# main.py  -  Entry Point for the Plausible Analytics Assistant
# =============================================================================
#
# HOW TO RUN:
#   uv run python main.py
#
# WHAT HAPPENS:
#   1. Creates the Google ADK agent (agent/plausible_agent.py)
#   2. ADK launches the MCP tool server (tools/mcp_server.py) over stdio
#   3. You ask questions; the agent builds Plausible queries, runs them
#      through the tools and explains the results
#
# ENVIRONMENT (.env is loaded automatically):
#   PLAUSIBLE_API_KEY    Stats API key (required by the tool server)
#   PLAUSIBLE_API_URL    Self-hosted instance, e.g. https://stats.example.com/api/v2
#   OPENROUTER_API_KEY   For the default LiteLlm model
#   AGENT_MODEL          Any other LiteLlm model string
# =============================================================================

import asyncio

from dotenv import load_dotenv

# Must run BEFORE the agent is created: LiteLlm reads its API key from the
# environment when it initializes.
load_dotenv()

from google.adk.runners import Runner
from google.adk.sessions import InMemorySessionService
from google.genai import types

from agent.plausible_agent import create_agent

APP_NAME = "plausible_analytics"
USER_ID = "analyst"


async def run_agent():
    """Run the analytics assistant interactively until the user quits."""
    print("=" * 70)
    print("  PLAUSIBLE ANALYTICS ASSISTANT")
    print("  Google ADK + FastMCP + Plausible Stats API v2")
    print("=" * 70)
    print("\n🔧 Initializing agent...")
    agent = create_agent()

    session_service = InMemorySessionService()
    runner = Runner(
        agent=agent,
        app_name=APP_NAME,
        session_service=session_service,
    )
    session = await session_service.create_session(
        app_name=APP_NAME,
        user_id=USER_ID,
    )

    print("✅ Agent initialized and ready!\n")
    print("💬 Ask about your site's traffic, e.g. 'Top sources for example.com last month?'")
    print("   (Type 'quit' to exit)\n")
    print("-" * 70)

    while True:
        try:
            user_input = input("\n🧑 You: ").strip()
        except (EOFError, KeyboardInterrupt):
            print("\n\n👋 Goodbye!")
            break

        if user_input.lower() in ("quit", "exit", "q"):
            print("\n👋 Goodbye!")
            break

        if not user_input:
            continue

        user_message = types.Content(
            role="user",
            parts=[types.Part(text=user_input)],
        )

        print("\n🤖 Agent is thinking...\n")
        print("-" * 70)

        final_response = ""
        async for event in runner.run_async(
            user_id=USER_ID,
            session_id=session.id,
            new_message=user_message,
        ):
            if event.content and event.content.parts:
                for part in event.content.parts:
                    if getattr(part, "text", None):
                        final_response = part.text

                    if getattr(part, "function_call", None):
                        print(f"  🔧 Calling tool: {part.function_call.name}")

        print("-" * 70)
        if final_response:
            print(f"\n🤖 Agent:\n\n{final_response}")
        else:
            print("\n⚠️  No response generated. The agent may have encountered an error.")

        print("\n" + "=" * 70)


if __name__ == "__main__":
    asyncio.run(run_agent())
