# =============================================================================
# plausible/__init__.py
# =============================================================================
# This package contains ALL query logic for the Plausible MCP server.
#
# CRITICAL ARCHITECTURAL RULE:
#   Nothing in this package imports FastMCP, Google ADK, or any orchestration
#   framework.  The query model, the filter engine and the validator are pure
#   Python: you can import them in a bare REPL with zero internet access.
#
#   The one module that touches the network is client.py, and it only does
#   so when execute_query() is called with an explicit PlausibleConfig.
#   Nothing here reads os.environ except config.from_env(), which the entry
#   points call once at startup.
# =============================================================================
