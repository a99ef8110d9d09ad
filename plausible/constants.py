# =============================================================================
# plausible/constants.py  -  The fixed vocabularies of the Plausible Stats API
# =============================================================================
#
# Every enumerated value the validator checks against lives here: metrics,
# dimensions, named date ranges, filter operators and the metric requirement
# table.  These mirror the Plausible Stats API v2 reference; if Plausible
# adds a metric, this is the only file that changes.
# =============================================================================

from typing import Literal

DEFAULT_API_URL = "https://plausible.io/api/v2"

PREDEFINED_DATE_RANGES: tuple[str, ...] = (
    "day", "7d", "28d", "30d", "91d", "month", "6mo", "12mo", "year", "all",
)

VALID_METRICS: tuple[str, ...] = (
    # traffic
    "visitors", "visits", "pageviews", "views_per_visit", "bounce_rate",
    "visit_duration", "events", "percentage",
    # engagement
    "scroll_depth", "time_on_page",
    # goals
    "conversion_rate", "group_conversion_rate",
    # revenue
    "average_revenue", "total_revenue",
)

# Literal aliases used for the MCP tool signature, so the generated JSON
# schema advertises the enumerations to the calling agent.
Metric = Literal[
    "visitors", "visits", "pageviews", "views_per_visit", "bounce_rate",
    "visit_duration", "events", "percentage", "scroll_depth", "time_on_page",
    "conversion_rate", "group_conversion_rate", "average_revenue",
    "total_revenue",
]
DateRangeName = Literal[
    "day", "7d", "28d", "30d", "91d", "month", "6mo", "12mo", "year", "all",
]

EVENT_DIMENSIONS: tuple[str, ...] = ("event:goal", "event:page", "event:hostname")

VISIT_DIMENSIONS: tuple[str, ...] = (
    "visit:entry_page", "visit:exit_page", "visit:source", "visit:referrer",
    "visit:channel", "visit:utm_medium", "visit:utm_source", "visit:utm_campaign",
    "visit:utm_content", "visit:utm_term", "visit:device", "visit:browser",
    "visit:browser_version", "visit:os", "visit:os_version", "visit:country",
    "visit:region", "visit:city", "visit:country_name", "visit:region_name",
    "visit:city_name",
)

TIME_DIMENSIONS: tuple[str, ...] = ("time", "time:hour", "time:day", "time:week", "time:month")

CUSTOM_PROPERTY_PREFIX = "event:props:"

FILTER_OPERATORS: tuple[str, ...] = (
    "is", "is_not", "contains", "contains_not", "matches", "matches_not",
)
LOGICAL_OPERATORS: tuple[str, ...] = ("and", "or")
NOT_OPERATOR = "not"
BEHAVIORAL_OPERATORS: tuple[str, ...] = ("has_done", "has_not_done")

# Legacy behavioral payloads name their target as "goal" or "page".
BEHAVIORAL_TARGETS: dict[str, str] = {
    "goal": "event:goal",
    "page": "event:page",
}

ORDER_DIRECTIONS: tuple[str, ...] = ("asc", "desc")

INCLUDE_FLAGS: tuple[str, ...] = ("imports", "time_labels", "total_rows")

SESSION_METRICS: tuple[str, ...] = ("bounce_rate", "views_per_visit", "visit_duration")

PAGE_METRICS: tuple[str, ...] = ("scroll_depth", "time_on_page")
GOAL_METRICS: tuple[str, ...] = ("conversion_rate", "group_conversion_rate")
REVENUE_METRICS: tuple[str, ...] = ("average_revenue", "total_revenue")

# What each metric needs before Plausible will compute it.  Used for the
# tool description and the agent prompt; the rules themselves live in
# validation.py.
METRIC_REQUIREMENTS: dict[str, str] = {
    "percentage": "at least one dimension",
    "scroll_depth": "event:page filter or dimension",
    "time_on_page": "event:page filter or dimension",
    "conversion_rate": "event:goal filter or dimension",
    "group_conversion_rate": "event:goal filter or dimension",
    "average_revenue": "event:goal filter or dimension for a revenue goal",
    "total_revenue": "event:goal filter or dimension for a revenue goal",
}


def is_time_dimension(name: str) -> bool:
    """True for "time" and any "time:<granularity>" dimension."""
    return name == "time" or name.startswith("time:")


def is_known_dimension(name: str) -> bool:
    """True for the fixed event/visit/time dimensions and event:props:<name>."""
    if name in EVENT_DIMENSIONS or name in VISIT_DIMENSIONS or name in TIME_DIMENSIONS:
        return True
    return name.startswith(CUSTOM_PROPERTY_PREFIX) and len(name) > len(CUSTOM_PROPERTY_PREFIX)
