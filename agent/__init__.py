# =============================================================================
# agent/__init__.py
# =============================================================================
# This package contains the Google ADK agent configuration.
#
# ARCHITECTURAL ROLE:
#   The agent/ layer turns a question ("How did the pricing page do last
#   month?") into Plausible queries, runs them through the MCP tools and
#   explains the numbers.
#
# WHAT THE AGENT IS NOT:
#   - It is NOT the query logic (that's in plausible/)
#   - It is NOT the tool implementations (that's in tools/)
#   - It does NOT validate queries itself; the tools do, and the agent
#     reads their error messages
# =============================================================================
