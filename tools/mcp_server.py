# =============================================================================
# tools/mcp_server.py  -  FastMCP Tool Server (ALL tools in one place)
# =============================================================================
#
# WHAT THIS FILE DOES:
#   Exposes the Plausible Stats API as MCP tools.  Each tool is a thin
#   wrapper around plausible/: it validates the parameters, forwards a
#   valid query to the Stats API and turns every expected failure into a
#   dict the agent can read and act on.
#
# HOW IT WORKS (the flow):
#   1. The agent calls "plausible_query" with raw parameters
#   2. FastMCP checks the parameter SHAPES against the schema it derived
#      from the type hints below (enums, arrays, objects)
#   3. validate_all_parameters() checks how the fields RELATE to each other
#      (percentage needs a dimension, bounce_rate can't group by event:page...)
#   4. PlausibleClient POSTs the query and we return the response as-is,
#      annotated with the query that produced it
#
# ERROR CONTRACT:
#   Validation failures and API failures come back as {"error": ...} dicts,
#   never as exceptions.  The agent is expected to read the message, fix the
#   query and call again.
#
# RUNNING THIS SERVER:
#   a) Standalone:  python -m tools.mcp_server   (needs PLAUSIBLE_API_KEY)
#   b) From the ADK agent (agent/plausible_agent.py) via stdio transport
# =============================================================================

import json
import logging
import sys
from typing import Any, Optional, Union

from dotenv import load_dotenv
from fastmcp import FastMCP

from plausible.client import PlausibleClient
from plausible.config import LoggingConfig, PlausibleConfig
from plausible.constants import DateRangeName, Metric
from plausible.errors import ConfigError, PlausibleApiError, PlausibleError
from plausible.query import query_to_payload
from plausible.validation import validate_all_parameters

# The stdio transport does not forward the parent's environment, so the
# server loads .env itself.
load_dotenv()

# =============================================================================
# Logging Setup
# =============================================================================
# We log to STDERR because the MCP server talks to the agent over STDOUT.
# Anything else written to stdout corrupts the JSON-RPC stream.
#
#   DEBUG_STDIO=true      -> DEBUG level (request bodies, validation verdicts)
#   DEBUG_LOG_FILE=path   -> also append every record to that file
#
# ANSI COLOR CODES:
#     - CYAN for incoming requests (tool name + parameters)
#     - GREEN for responses
#     - YELLOW for intermediate status messages
# =============================================================================

_CYAN = "\033[36m"     # Requests (tool calls with params)
_GREEN = "\033[32m"    # Responses
_YELLOW = "\033[33m"   # Status/progress messages
_RESET = "\033[0m"     # Reset to default terminal color


def configure_logging(config: LoggingConfig) -> None:
    """Send log records to stderr, and to DEBUG_LOG_FILE when it is set."""
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if config.log_file:
        handlers.append(logging.FileHandler(config.log_file, mode="a", encoding="utf-8"))
    logging.basicConfig(
        level=logging.DEBUG if config.debug else logging.INFO,
        format="%(asctime)s [MCP] %(message)s",
        datefmt="%H:%M:%S",
        handlers=handlers,
        force=True,
    )


configure_logging(LoggingConfig.from_env())
logger = logging.getLogger(__name__)


def _log_request(tool_name: str, **params) -> None:
    """Log an incoming tool call with its parameters in CYAN."""
    param_str = ", ".join(f"{k}={v!r}" for k, v in params.items() if v is not None)
    logger.info(f"{_CYAN}{tool_name} called with: {param_str}{_RESET}")


def _log_status(message: str) -> None:
    """Log an intermediate status message in YELLOW."""
    logger.info(f"{_YELLOW}  → {message}{_RESET}")


def _log_response(tool_name: str, result: dict) -> dict:
    """Log the tool response in GREEN, then return it."""
    if "error" in result:
        summary = result["error"]
    elif result.get("valid"):
        summary = "valid"
    else:
        summary = f"{len(result.get('results') or [])} rows"
    logger.info(f"{_GREEN}  ← {tool_name} response: {summary}{_RESET}")
    logger.debug("%s full response: %s", tool_name, json.dumps(result, separators=(",", ":")))
    return result


# =============================================================================
# Backend wiring
# =============================================================================
# The client is built on first use from the environment.  __main__ builds
# it eagerly so a missing API key stops the server at startup instead of
# on the first tool call.
# =============================================================================
_client: Optional[PlausibleClient] = None


def get_client() -> PlausibleClient:
    global _client
    if _client is None:
        _client = PlausibleClient(PlausibleConfig.from_env())
    return _client


def check_query(params: dict[str, Any]) -> dict:
    """Validate raw parameters without calling the API."""
    result = validate_all_parameters(params)
    if not result.ok:
        return _validation_error(result.error)
    return {"valid": True, "query": query_to_payload(result.query)}


def run_query(params: dict[str, Any], client: Optional[PlausibleClient] = None) -> dict:
    """Validate raw parameters, then execute them against the Stats API."""
    result = validate_all_parameters(params)
    if not result.ok:
        _log_status(f"Validation failed: {result.error.message}")
        return _validation_error(result.error)

    _log_status("Parameters valid, querying Plausible")
    try:
        backend = client or get_client()
        return backend.execute_query(result.query)
    except ConfigError as e:
        return {"error": f"Plausible MCP server is not configured: {e}"}
    except PlausibleApiError as e:
        _log_status(f"Plausible API error (status {e.status}): {e}")
        return {"error": f"Error querying Plausible API: {e}", "status": e.status}
    except PlausibleError as e:
        _log_status(f"Plausible API unreachable: {e}")
        return {"error": f"Error querying Plausible API: {e}"}


def _validation_error(error) -> dict:
    message = f"Parameter validation error: {error.message}"
    if error.details:
        message = f"{message}\n\n{error.details}"
    return {
        "error": message,
        "code": error.code,
        "hint": "Fix the parameters named above and call the tool again.",
    }


def _collect(**params) -> dict[str, Any]:
    return {k: v for k, v in params.items() if v is not None}


# =============================================================================
# Create the FastMCP server instance
# =============================================================================
mcp = FastMCP(
    "plausible-mcp",
    instructions="Use this server to query analytics data from Plausible Analytics API.",
)


# =============================================================================
# TOOL 1: plausible_query
# =============================================================================
# The docstring is the tool description the LLM reads.  It carries the full
# metric / dimension / filter reference and the cross-field restrictions, so
# a well-behaved agent gets the query right on the first try.
# =============================================================================
@mcp.tool()
def plausible_query(
    site_id: str,
    metrics: list[Metric],
    date_range: Union[DateRangeName, list[str]],
    dimensions: Optional[list[str]] = None,
    filters: Optional[list[list[Any]]] = None,
    order_by: Optional[list[list[str]]] = None,
    include: Optional[dict[str, bool]] = None,
    pagination: Optional[dict[str, int]] = None,
) -> dict:
    """Query analytics data from Plausible.

    Fetch metrics for a site and date range, optionally grouped by
    dimensions, filtered, ordered and paginated.

    METRICS:
    • visitors, visits, pageviews, events
    • views_per_visit, bounce_rate, visit_duration (session metrics: cannot be
      used with event:* or time:* dimensions)
    • percentage (REQUIRES at least one dimension)
    • scroll_depth, time_on_page (REQUIRE an event:page filter or dimension)
    • conversion_rate, group_conversion_rate (REQUIRE an event:goal filter or dimension)
    • average_revenue, total_revenue (REQUIRE a revenue goal via event:goal)

    DIMENSIONS for grouping:
    • Event: event:goal, event:page, event:hostname, event:props:<custom_prop>
    • Visit: visit:entry_page, visit:exit_page, visit:source, visit:referrer,
      visit:channel, visit:utm_medium, visit:utm_source, visit:utm_campaign,
      visit:utm_content, visit:utm_term, visit:device, visit:browser,
      visit:browser_version, visit:os, visit:os_version, visit:country,
      visit:region, visit:city, visit:country_name, visit:region_name,
      visit:city_name
    • Time: time, time:hour, time:day, time:week, time:month

    FILTERS:
    • Simple: [operator, dimension, [values]] with operator one of is, is_not,
      contains, contains_not, matches, matches_not, plus an optional
      {"case_sensitive": false}
    • Logical: ["and", [...]], ["or", [...]], ["not", filter]
    • Behavioral: ["has_done", ["is", "event:goal", ["Signup"]]], has_not_done
    • Segments: ["is", "segment", [segment_id]]
    • Time dimensions cannot be used in filters

    Args:
        site_id: Domain of the site as registered in Plausible.
        metrics: Metrics to fetch (at least one).
        date_range: A named range (day, 7d, 28d, 30d, 91d, month, 6mo, 12mo,
            year, all) or [start_date, end_date] in YYYY-MM-DD with start
            before end.
        dimensions: Dimensions to group by.
        filters: Filters limiting which events or sessions are counted.
        order_by: [[dimension_or_metric, "asc" | "desc"], ...].
        include: {"imports": bool, "time_labels": bool, "total_rows": bool}.
            time_labels requires a time dimension.
        pagination: {"limit": int, "offset": int}, limit at most 10000.

    Returns:
        {"results": [{"dimensions": [...], "metrics": [...]}], "meta": {...},
        "query": {...}} on success, or {"error": ...} explaining what to fix.

    EXAMPLES:
        {"site_id": "example.com", "metrics": ["visitors", "pageviews"], "date_range": "7d"}
        {"site_id": "example.com", "metrics": ["visitors"], "date_range": "30d",
         "dimensions": ["visit:country_name"],
         "filters": [["is", "visit:device", ["Mobile", "Tablet"]]]}
        {"site_id": "example.com", "metrics": ["conversion_rate"], "date_range": "month",
         "dimensions": ["visit:source"], "filters": [["is", "event:goal", ["Signup"]]]}
    """
    _log_request("plausible_query", site_id=site_id, metrics=metrics,
                 date_range=date_range, dimensions=dimensions, filters=filters,
                 order_by=order_by, include=include, pagination=pagination)
    params = _collect(site_id=site_id, metrics=metrics, date_range=date_range,
                      dimensions=dimensions, filters=filters, order_by=order_by,
                      include=include, pagination=pagination)
    return _log_response("plausible_query", run_query(params))


# =============================================================================
# TOOL 2: plausible_validate_query
# =============================================================================
# Same parameters, no API call.  Cheap for the agent to check a complex
# filter tree before spending a request on it.
# =============================================================================
@mcp.tool()
def plausible_validate_query(
    site_id: str,
    metrics: list[Metric],
    date_range: Union[DateRangeName, list[str]],
    dimensions: Optional[list[str]] = None,
    filters: Optional[list[list[Any]]] = None,
    order_by: Optional[list[list[str]]] = None,
    include: Optional[dict[str, bool]] = None,
    pagination: Optional[dict[str, int]] = None,
) -> dict:
    """Check a Plausible query without running it.

    Takes exactly the same parameters as plausible_query and applies the
    same rules, but never calls the Plausible API.

    Returns:
        {"valid": true, "query": {...}} with the request body that
        plausible_query would send, or {"error": ...} explaining what to fix.
    """
    _log_request("plausible_validate_query", site_id=site_id, metrics=metrics,
                 date_range=date_range, dimensions=dimensions, filters=filters,
                 order_by=order_by, include=include, pagination=pagination)
    params = _collect(site_id=site_id, metrics=metrics, date_range=date_range,
                      dimensions=dimensions, filters=filters, order_by=order_by,
                      include=include, pagination=pagination)
    return _log_response("plausible_validate_query", check_query(params))


# =============================================================================
# Server entry point
# =============================================================================
if __name__ == "__main__":
    try:
        get_client()
    except ConfigError as e:
        logger.error(str(e))
        sys.exit(1)
    logger.info("Plausible MCP Server running on stdio")
    mcp.run()
