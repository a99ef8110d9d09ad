# =============================================================================
# plausible/validation.py  -  Query Validator
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Rejects queries the Stats API would reject, BEFORE a request is sent,
#   and says exactly which field to fix.  The API's own errors for these
#   cases are terse; an agent retrying blindly against them wastes calls.
#
# THE RULES (checked in this order, first failure wins):
#   0. site_id, metrics and date_range are present          (required fields)
#   1. date_range is a named range or a valid [start, end]  (start < end)
#   2. percentage needs at least one dimension
#   3. scroll_depth / time_on_page need event:page          (dimension or filter)
#   4. conversion_rate / group_conversion_rate need event:goal
#   5. average_revenue / total_revenue need event:goal      (a revenue goal)
#   6. session metrics cannot be mixed with event:/time: dimensions
#   7. include.time_labels needs a time dimension
#
#   Each rule function raises ValidationError.  The two public entry points,
#   validate() and validate_all_parameters(), catch it and hand back a
#   ValidationResult so callers never need try/except for an invalid query.
#
# PURITY:
#   No I/O, no globals, no clock.  The same input always produces the same
#   verdict and the same error text.
# =============================================================================

import logging
import re
from datetime import date
from typing import Any, Iterable, Mapping, Optional, Sequence

from plausible.constants import (
    GOAL_METRICS,
    PAGE_METRICS,
    PREDEFINED_DATE_RANGES,
    REVENUE_METRICS,
    SESSION_METRICS,
    is_time_dimension,
)
from plausible.filters import has_filter_for_dimension
from plausible.models import Filter, Include, Query, ValidationError, ValidationResult
from plausible.query import parse_query

logger = logging.getLogger(__name__)

# Error codes, one per cause.
MISSING_REQUIRED_FIELD = "missing_required_field"
INVALID_DATE_RANGE = "invalid_date_range"
METRIC_REQUIREMENT = "metric_requires_dimension_or_filter"
SESSION_METRIC_CONFLICT = "session_metric_conflict"
TIME_LABELS_REQUIREMENT = "time_labels_requires_time_dimension"

_ISO_DATE = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")


def _unique(items: Iterable[str]) -> list[str]:
    return list(dict.fromkeys(items))


def _has_dimension_or_filter(
    dimension: str,
    dimensions: Optional[Sequence[str]],
    filters: Optional[Sequence[Filter]],
) -> bool:
    return dimension in (dimensions or ()) or has_filter_for_dimension(filters, dimension)


# =============================================================================
# REQUIRED FIELDS
# =============================================================================
def validate_required_fields(params: Mapping[str, Any]) -> None:
    """Check site_id, metrics and date_range are present, in that order."""
    site_id = params.get("site_id")
    if not site_id or (isinstance(site_id, str) and not site_id.strip()):
        raise ValidationError(
            "site_id is required",
            "Pass the domain of the site as registered in Plausible, e.g. 'example.com'.",
            code=MISSING_REQUIRED_FIELD,
        )
    if not params.get("metrics"):
        raise ValidationError(
            "At least one metric is required",
            "Pass metrics as a non-empty array, e.g. [\"visitors\", \"pageviews\"].",
            code=MISSING_REQUIRED_FIELD,
        )
    date_range = params.get("date_range")
    if date_range is None or (isinstance(date_range, (str, list, tuple)) and not date_range):
        raise ValidationError(
            "date_range is required",
            f"Pass a named range ({', '.join(PREDEFINED_DATE_RANGES)}) or "
            "[start_date, end_date] in YYYY-MM-DD format.",
            code=MISSING_REQUIRED_FIELD,
        )


# =============================================================================
# DATE RANGE
# =============================================================================
def validate_date_range(date_range: Any) -> None:
    """Accept a named range, or two ISO-8601 dates with start strictly before end.

    Ordering is checked on parsed calendar dates, never on the strings.
    """
    if isinstance(date_range, str):
        if date_range not in PREDEFINED_DATE_RANGES:
            raise ValidationError(
                f"Invalid predefined date range: {date_range}",
                f"Must be one of: {', '.join(PREDEFINED_DATE_RANGES)}",
                code=INVALID_DATE_RANGE,
            )
        return

    if not isinstance(date_range, (list, tuple)):
        raise ValidationError(
            "Invalid date range",
            f"Use a named range ({', '.join(PREDEFINED_DATE_RANGES)}) or "
            "[start_date, end_date] in YYYY-MM-DD format.",
            code=INVALID_DATE_RANGE,
        )

    if len(date_range) != 2:
        raise ValidationError(
            "Custom date range must have exactly 2 dates",
            "Provide [start_date, end_date] in ISO8601 format (YYYY-MM-DD)",
            code=INVALID_DATE_RANGE,
        )

    start, end = (_parse_iso_date(value) for value in date_range)
    if start >= end:
        raise ValidationError(
            "Start date must be before end date",
            f"The custom date range starts on {start.isoformat()} and ends on "
            f"{end.isoformat()}. Swap the dates or widen the range; the end date "
            "must be strictly after the start date.",
            code=INVALID_DATE_RANGE,
        )


def _parse_iso_date(value: Any) -> date:
    if isinstance(value, str) and _ISO_DATE.fullmatch(value):
        try:
            return date.fromisoformat(value)
        except ValueError:
            pass
    raise ValidationError(
        "Invalid date format in custom date range",
        f"Dates must be real calendar dates in ISO8601 format (YYYY-MM-DD); got {value!r}",
        code=INVALID_DATE_RANGE,
    )


# =============================================================================
# METRIC REQUIREMENTS
# =============================================================================
def validate_percentage_metric(
    metrics: Sequence[str],
    dimensions: Optional[Sequence[str]] = None,
) -> None:
    if "percentage" in metrics and not dimensions:
        raise ValidationError(
            "Metric 'percentage' requires dimensions",
            "The 'percentage' metric calculates the percentage of visitors in each "
            "dimension group and requires at least one dimension to be specified.",
            code=METRIC_REQUIREMENT,
        )


def validate_page_metrics(
    metrics: Sequence[str],
    dimensions: Optional[Sequence[str]] = None,
    filters: Optional[Sequence[Filter]] = None,
) -> None:
    used = _unique(m for m in metrics if m in PAGE_METRICS)
    if used and not _has_dimension_or_filter("event:page", dimensions, filters):
        raise ValidationError(
            f"Metrics {', '.join(used)} require event:page",
            "These metrics require either an 'event:page' dimension or filter to "
            "calculate page-specific metrics.",
            code=METRIC_REQUIREMENT,
        )


def validate_goal_metrics(
    metrics: Sequence[str],
    dimensions: Optional[Sequence[str]] = None,
    filters: Optional[Sequence[Filter]] = None,
) -> None:
    used = _unique(m for m in metrics if m in GOAL_METRICS)
    if used and not _has_dimension_or_filter("event:goal", dimensions, filters):
        raise ValidationError(
            f"Metrics {', '.join(used)} require event:goal",
            "These metrics require either an 'event:goal' dimension or filter. "
            "You need to set up goals in Plausible first.",
            code=METRIC_REQUIREMENT,
        )


def validate_revenue_metrics(
    metrics: Sequence[str],
    dimensions: Optional[Sequence[str]] = None,
    filters: Optional[Sequence[Filter]] = None,
) -> None:
    used = _unique(m for m in metrics if m in REVENUE_METRICS)
    if used and not _has_dimension_or_filter("event:goal", dimensions, filters):
        raise ValidationError(
            f"Metrics {', '.join(used)} require revenue goal",
            "Revenue metrics require a revenue goal to be specified. Ensure you have "
            "revenue goals configured in Plausible and use an 'event:goal' dimension "
            "or filter.",
            code=METRIC_REQUIREMENT,
        )


def validate_metric_requirements(
    metrics: Sequence[str],
    dimensions: Optional[Sequence[str]] = None,
    filters: Optional[Sequence[Filter]] = None,
) -> None:
    validate_percentage_metric(metrics, dimensions)
    validate_page_metrics(metrics, dimensions, filters)
    validate_goal_metrics(metrics, dimensions, filters)
    validate_revenue_metrics(metrics, dimensions, filters)


# =============================================================================
# SESSION METRICS vs EVENT DIMENSIONS
# =============================================================================
def validate_session_metrics_with_event_dimensions(
    metrics: Sequence[str],
    dimensions: Optional[Sequence[str]] = None,
) -> None:
    """Session metrics are computed per visit, so they cannot be grouped by
    event-level or time dimensions.  The error names both sides."""
    session_used = _unique(m for m in metrics if m in SESSION_METRICS)
    event_dimensions = _unique(
        d for d in (dimensions or ()) if d.startswith("event:") or d.startswith("time:")
    )
    if session_used and event_dimensions:
        raise ValidationError(
            "Session metrics cannot be mixed with event dimensions",
            f"Session metrics ({', '.join(session_used)}) calculate values per "
            f"visit/session and cannot be used with event-level dimensions "
            f"({', '.join(event_dimensions)}). Use visit dimensions instead.",
            code=SESSION_METRIC_CONFLICT,
        )


# =============================================================================
# TIME LABELS
# =============================================================================
def validate_time_label_requirements(
    include: Optional[Include],
    dimensions: Optional[Sequence[str]] = None,
) -> None:
    if include is None or include.time_labels is not True:
        return
    if not any(is_time_dimension(d) for d in (dimensions or ())):
        raise ValidationError(
            "time_labels requires a time dimension",
            "The time_labels option requires at least one time dimension (e.g., time, "
            "time:hour, time:day, time:week, time:month) to be included in the query.",
            code=TIME_LABELS_REQUIREMENT,
        )


# =============================================================================
# PUBLIC ENTRY POINTS
# =============================================================================
def _check(query: Query) -> None:
    validate_date_range(query.date_range)
    validate_metric_requirements(query.metrics, query.dimensions, query.filters)
    validate_session_metrics_with_event_dimensions(query.metrics, query.dimensions)
    validate_time_label_requirements(query.include, query.dimensions)


def validate(query: Query) -> ValidationResult:
    """Run the semantic rules against an already-parsed Query."""
    try:
        validate_required_fields(
            {"site_id": query.site_id, "metrics": query.metrics, "date_range": query.date_range}
        )
        _check(query)
    except ValidationError as error:
        logger.debug("Query for %s rejected: %s", query.site_id, error.message)
        return ValidationResult(error=error)
    return ValidationResult(query=query)


def validate_all_parameters(params: Mapping[str, Any]) -> ValidationResult:
    """Validate raw tool parameters end to end.

    Required fields are checked first and independently of everything else,
    then the parameters are parsed into a Query, then the semantic rules run.

    Returns:
        ValidationResult with .query set on success, .error set on failure.
    """
    try:
        validate_required_fields(params)
        query = parse_query(params)
    except ValidationError as error:
        logger.debug("Parameters rejected: %s", error.message)
        return ValidationResult(error=error)
    return validate(query)
