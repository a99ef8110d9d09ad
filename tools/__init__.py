# =============================================================================
# tools/__init__.py
# =============================================================================
# This package contains the FastMCP tool server.
#
# ARCHITECTURAL ROLE:
#   tools/ is the translation layer between MCP and plausible/.  The server:
#     1. Declares typed tool parameters (FastMCP derives the JSON schema)
#     2. Hands the raw parameters to plausible.validation
#     3. Sends valid queries through plausible.client
#     4. Turns validation and API failures into {"error": ...} dicts
#
# WHAT TOOLS DO NOT DO:
#   - They do NOT contain validation rules (that's plausible/validation.py)
#   - They do NOT know about Google ADK
# =============================================================================
