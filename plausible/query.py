# =============================================================================
# plausible/query.py  -  Raw tool parameters <-> Query
# =============================================================================
#
# parse_query() is the schema step: it checks the SHAPE of every field
# (types, enumerations, ranges) and builds a frozen Query.  It does not
# check how fields relate to each other; that is validation.py's job.
#
# query_to_payload() is the inverse: it renders a Query as the JSON body
# POSTed to the Stats API, omitting every optional field that was not set.
# =============================================================================

from typing import Any, Mapping, Optional

from plausible.constants import (
    INCLUDE_FLAGS,
    ORDER_DIRECTIONS,
    VALID_METRICS,
    is_known_dimension,
)
from plausible.filters import filter_to_payload, parse_filters
from plausible.models import Include, OrderBy, Pagination, Query, ValidationError

MAX_PAGINATION_LIMIT = 10000


def parse_query(params: Mapping[str, Any]) -> Query:
    """Build a Query from raw tool parameters.

    Args:
        params: The parameters as received from the caller.  Missing optional
            fields may be absent or None.

    Returns:
        A frozen Query.

    Raises:
        ValidationError: if a field has the wrong type or an unknown value.
    """
    return Query(
        site_id=_parse_site_id(params.get("site_id")),
        metrics=_parse_metrics(params.get("metrics")),
        date_range=_parse_date_range(params.get("date_range")),
        dimensions=_parse_dimensions(params.get("dimensions")),
        filters=parse_filters(params.get("filters")),
        order_by=_parse_order_by(params.get("order_by")),
        include=_parse_include(params.get("include")),
        pagination=_parse_pagination(params.get("pagination")),
    )


def _parse_site_id(value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(
            "site_id must be a non-empty string",
            "Use the site's domain as registered in Plausible, e.g. 'example.com'.",
        )
    return value


def _parse_metrics(value: Any) -> tuple[str, ...]:
    if not isinstance(value, (list, tuple)):
        raise ValidationError(
            "metrics must be an array",
            f"Provide an array of metric names from: {', '.join(VALID_METRICS)}",
        )
    unknown = [m for m in value if m not in VALID_METRICS]
    if unknown:
        raise ValidationError(
            f"Unknown metrics: {', '.join(map(str, unknown))}",
            f"Valid metrics are: {', '.join(VALID_METRICS)}",
        )
    return tuple(value)


def _parse_date_range(value: Any) -> Any:
    # Only the container type is normalised here; validate_date_range()
    # decides whether the range itself is acceptable.
    if isinstance(value, list):
        return tuple(value)
    return value


def _parse_dimensions(value: Any) -> tuple[str, ...]:
    if value is None:
        return ()
    if not isinstance(value, (list, tuple)):
        raise ValidationError(
            "dimensions must be an array",
            "Provide an array of dimension names, e.g. [\"visit:source\"]",
        )
    for dimension in value:
        if not isinstance(dimension, str) or not is_known_dimension(dimension):
            raise ValidationError(
                f"Unknown dimension: {dimension}",
                "Dimensions must be an event (event:goal, event:page, event:hostname), "
                "visit (visit:source, visit:country, ...) or time (time, time:hour, "
                "time:day, time:week, time:month) dimension, or a custom property "
                "written as event:props:<name>.",
            )
    return tuple(value)


def _parse_order_by(value: Any) -> tuple[OrderBy, ...]:
    if value is None:
        return ()
    if not isinstance(value, (list, tuple)):
        raise ValidationError(
            "order_by must be an array",
            "Provide [[field, direction], ...] with direction 'asc' or 'desc'.",
        )
    order = []
    for entry in value:
        if (
            not isinstance(entry, (list, tuple))
            or len(entry) != 2
            or not isinstance(entry[0], str)
            or not entry[0]
            or entry[1] not in ORDER_DIRECTIONS
        ):
            raise ValidationError(
                f"Invalid order_by entry: {entry!r}",
                "Each order_by entry is [dimension_or_metric, direction] with "
                "direction 'asc' or 'desc'.",
            )
        order.append(OrderBy(field=entry[0], direction=entry[1]))
    return tuple(order)


def _parse_include(value: Any) -> Optional[Include]:
    if value is None:
        return None
    if not isinstance(value, Mapping):
        raise ValidationError(
            "include must be an object",
            f"Supported flags: {', '.join(INCLUDE_FLAGS)}",
        )
    unknown = set(value) - set(INCLUDE_FLAGS)
    if unknown:
        raise ValidationError(
            f"Unknown include flags: {', '.join(sorted(map(str, unknown)))}",
            f"Supported flags: {', '.join(INCLUDE_FLAGS)}",
        )
    for flag, enabled in value.items():
        if enabled is not None and not isinstance(enabled, bool):
            raise ValidationError(
                f"include.{flag} must be true or false",
                f"Supported flags: {', '.join(INCLUDE_FLAGS)}",
            )
    return Include(**value)


def _parse_pagination(value: Any) -> Optional[Pagination]:
    if value is None:
        return None
    if not isinstance(value, Mapping) or set(value) - {"limit", "offset"}:
        raise ValidationError(
            "pagination must be an object with limit and/or offset",
            f"limit is 0-{MAX_PAGINATION_LIMIT}, offset is 0 or more.",
        )
    for key, number in value.items():
        if number is None:
            continue
        if not isinstance(number, int) or isinstance(number, bool) or number < 0:
            raise ValidationError(
                f"pagination.{key} must be a non-negative integer",
                f"limit is 0-{MAX_PAGINATION_LIMIT}, offset is 0 or more.",
            )
    limit = value.get("limit")
    if limit is not None and limit > MAX_PAGINATION_LIMIT:
        raise ValidationError(
            f"pagination.limit cannot exceed {MAX_PAGINATION_LIMIT}",
            "Page through larger result sets with offset.",
        )
    return Pagination(limit=limit, offset=value.get("offset"))


def query_to_payload(query: Query) -> dict:
    """Render a Query as the Stats API request body."""
    payload: dict[str, Any] = {
        "site_id": query.site_id,
        "metrics": list(query.metrics),
        "date_range": (
            query.date_range if isinstance(query.date_range, str) else list(query.date_range)
        ),
    }
    if query.dimensions:
        payload["dimensions"] = list(query.dimensions)
    if query.filters:
        payload["filters"] = [filter_to_payload(f) for f in query.filters]
    if query.order_by:
        payload["order_by"] = [[o.field, o.direction] for o in query.order_by]
    if query.include is not None:
        flags = {
            flag: getattr(query.include, flag)
            for flag in INCLUDE_FLAGS
            if getattr(query.include, flag) is not None
        }
        if flags:
            payload["include"] = flags
    if query.pagination is not None:
        page = {
            key: getattr(query.pagination, key)
            for key in ("limit", "offset")
            if getattr(query.pagination, key) is not None
        }
        if page:
            payload["pagination"] = page
    return payload
