# =============================================================================
# plausible/filters.py  -  Filter Expression Engine
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   1. parse_filter() turns the nested JSON arrays an agent sends into the
#      closed set of filter dataclasses from models.py.
#   2. filter_to_payload() turns them back into the arrays the Stats API
#      expects (Plausible v2 order: operator first).
#   3. has_filter_for_dimension() answers "is this dimension constrained
#      anywhere in the filter tree?", which the validator needs for metrics
#      such as scroll_depth (needs event:page) or conversion_rate (needs
#      event:goal).
#
# SHAPES ACCEPTED BY THE PARSER:
#   ["is", "event:page", ["/blog"]]                      simple, v2 order
#   ["contains", "visit:city", ["ber"], {"case_sensitive": false}]
#   ["event:page", "is", ["/blog"]]                      simple, legacy order
#   ["and", [f1, f2]]  /  ["or", [f1, f2]]               logical
#   ["not", f]  /  ["not", [f]]                          negation
#   ["has_done", ["is", "event:goal", ["Signup"]]]       behavioral
#   ["has_done", ["is", "goal", "Signup"]]               behavioral, legacy
#   ["has_done", "goal", "Signup"]                       behavioral, flat legacy
#   ["has_done", ["is", "goal"]]                         behavioral, any goal
#   ["is", "segment", [12, 34]]                          segment
#
#   Arity is only ever inspected here.  Everything downstream matches on
#   the dataclass type.
# =============================================================================

import json
import logging
from typing import Any, Iterable, Optional

from plausible.constants import (
    BEHAVIORAL_OPERATORS,
    BEHAVIORAL_TARGETS,
    FILTER_OPERATORS,
    LOGICAL_OPERATORS,
    NOT_OPERATOR,
    is_time_dimension,
)
from plausible.models import (
    BehavioralFilter,
    Filter,
    LogicalFilter,
    NotFilter,
    SegmentFilter,
    SimpleFilter,
    ValidationError,
)

logger = logging.getLogger(__name__)

# Regex matching every goal name or page path.
MATCH_ANY = ".*"


def _invalid(raw: Any, reason: str) -> ValidationError:
    return ValidationError(
        "Invalid filter",
        f"{reason}. Got: {json.dumps(raw, default=str)}",
    )


def _is_sequence(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def _behavioral_target(value: Any) -> Optional[str]:
    """Map the legacy "goal" / "page" shorthand to its event dimension."""
    if isinstance(value, str):
        return BEHAVIORAL_TARGETS.get(value)
    return None


# =============================================================================
# PARSING
# =============================================================================
def parse_filters(raw_filters: Optional[Iterable[Any]]) -> tuple[Filter, ...]:
    """Parse a list of raw filters.  None or an empty list yields ()."""
    if raw_filters is None:
        return ()
    if not _is_sequence(raw_filters):
        raise ValidationError(
            "filters must be an array",
            "Provide filters as an array of filter expressions, e.g. "
            '[["is", "event:page", ["/pricing"]]]',
        )
    return tuple(parse_filter(raw) for raw in raw_filters)


def parse_filter(raw: Any) -> Filter:
    """Parse one raw filter expression into its dataclass variant.

    Raises:
        ValidationError: if the expression matches none of the known shapes.
    """
    if not _is_sequence(raw) or len(raw) == 0:
        raise _invalid(raw, "A filter must be a non-empty array")

    head = raw[0]
    if not isinstance(head, str):
        raise _invalid(raw, "A filter must start with an operator or dimension name")

    if head in LOGICAL_OPERATORS:
        return _parse_logical(raw)
    if head == NOT_OPERATOR:
        return _parse_not(raw)
    if head in BEHAVIORAL_OPERATORS:
        return _parse_behavioral(raw)
    if len(raw) == 3 and head == "is" and raw[1] == "segment":
        return _parse_segment(raw)
    return _parse_simple(raw)


def _parse_logical(raw: list) -> LogicalFilter:
    if len(raw) != 2 or not _is_sequence(raw[1]) or len(raw[1]) == 0:
        raise _invalid(raw, f"'{raw[0]}' takes a non-empty array of filters")
    return LogicalFilter(
        operator=raw[0],
        children=tuple(parse_filter(child) for child in raw[1]),
    )


def _parse_not(raw: list) -> NotFilter:
    if len(raw) != 2 or not _is_sequence(raw[1]) or len(raw[1]) == 0:
        raise _invalid(raw, "'not' takes exactly one filter")

    wrapped = raw[1]
    # ["not", [f]] wraps the child in a list; ["not", f] does not.
    if _is_sequence(wrapped[0]):
        if len(wrapped) != 1:
            raise _invalid(raw, "'not' takes exactly one filter")
        wrapped = wrapped[0]
    return NotFilter(child=parse_filter(wrapped))


def _parse_behavioral(raw: list) -> BehavioralFilter:
    operator = raw[0]

    # ["has_done", "goal", "Signup"]
    if len(raw) == 3 and _behavioral_target(raw[1]):
        return BehavioralFilter(
            operator=operator,
            inner=SimpleFilter(
                dimension=_behavioral_target(raw[1]),
                operator="is",
                values=_parse_values(raw, raw[2]),
            ),
        )

    if len(raw) != 2 or not _is_sequence(raw[1]):
        raise _invalid(raw, f"'{operator}' takes one filter describing an event")

    inner = raw[1]
    # ["has_done", ["is", "goal"]] names no value: any goal / any page.
    if len(inner) == 2 and inner[0] in FILTER_OPERATORS and _behavioral_target(inner[1]):
        return BehavioralFilter(
            operator=operator,
            inner=SimpleFilter(
                dimension=_behavioral_target(inner[1]),
                operator="matches",
                values=(MATCH_ANY,),
            ),
        )

    # ["has_done", ["is", "goal", "Signup"]]
    if len(inner) == 3 and inner[0] in FILTER_OPERATORS and _behavioral_target(inner[1]):
        values = _parse_values(raw, inner[2])
        if not values:
            raise _invalid(raw, "A filter needs at least one value")
        return BehavioralFilter(
            operator=operator,
            inner=SimpleFilter(
                dimension=_behavioral_target(inner[1]),
                operator=inner[0],
                values=values,
            ),
        )

    simple = _parse_simple(inner)
    if not simple.dimension.startswith("event:"):
        raise _invalid(raw, f"'{operator}' can only filter on event dimensions")
    return BehavioralFilter(operator=operator, inner=simple)


def _parse_segment(raw: list) -> SegmentFilter:
    ids = raw[2]
    if (
        not _is_sequence(ids)
        or len(ids) == 0
        or not all(isinstance(i, int) and not isinstance(i, bool) for i in ids)
    ):
        raise _invalid(raw, "A segment filter takes a non-empty array of integer segment ids")
    return SegmentFilter(segment_ids=tuple(ids))


def _parse_simple(raw: Any) -> SimpleFilter:
    if not _is_sequence(raw) or len(raw) not in (3, 4):
        raise _invalid(raw, "A simple filter is [operator, dimension, values] "
                            "with an optional {\"case_sensitive\": bool}")

    first, second = raw[0], raw[1]
    if first in FILTER_OPERATORS:
        operator, dimension = first, second
    elif second in FILTER_OPERATORS:
        dimension, operator = first, second
    else:
        raise _invalid(raw, f"Unrecognized filter operator; use one of {', '.join(FILTER_OPERATORS)}")

    if not isinstance(dimension, str) or not dimension:
        raise _invalid(raw, "The filter dimension must be a non-empty string")
    if is_time_dimension(dimension):
        raise _invalid(raw, "Time dimensions cannot be used in filters")

    values = _parse_values(raw, raw[2])
    if not values:
        raise _invalid(raw, "A filter needs at least one value")

    case_sensitive = None
    if len(raw) == 4:
        modifiers = raw[3]
        if not isinstance(modifiers, dict) or set(modifiers) - {"case_sensitive"}:
            raise _invalid(raw, "The only filter modifier is {\"case_sensitive\": bool}")
        case_sensitive = modifiers.get("case_sensitive")
        if case_sensitive is not None and not isinstance(case_sensitive, bool):
            raise _invalid(raw, "case_sensitive must be true or false")

    return SimpleFilter(
        dimension=dimension,
        operator=operator,
        values=values,
        case_sensitive=case_sensitive,
    )


def _parse_values(raw: Any, values: Any) -> tuple[str, ...]:
    # A bare string is accepted as a single value.
    if isinstance(values, str):
        return (values,)
    if _is_sequence(values) and all(isinstance(v, str) for v in values):
        return tuple(values)
    raise _invalid(raw, "Filter values must be a string or an array of strings")


# =============================================================================
# SERIALIZATION
# =============================================================================
def filter_to_payload(node: Filter) -> list:
    """Render a filter in the operator-first array form the Stats API expects."""
    if isinstance(node, SimpleFilter):
        payload: list = [node.operator, node.dimension, list(node.values)]
        if node.case_sensitive is not None:
            payload.append({"case_sensitive": node.case_sensitive})
        return payload
    if isinstance(node, LogicalFilter):
        return [node.operator, [filter_to_payload(child) for child in node.children]]
    if isinstance(node, NotFilter):
        return [NOT_OPERATOR, filter_to_payload(node.child)]
    if isinstance(node, BehavioralFilter):
        return [node.operator, filter_to_payload(node.inner)]
    if isinstance(node, SegmentFilter):
        return ["is", "segment", list(node.segment_ids)]
    raise TypeError(f"Not a filter: {node!r}")


# =============================================================================
# DIMENSION MEMBERSHIP SEARCH
# =============================================================================
def has_filter_for_dimension(
    filters: Optional[Iterable[Filter]],
    dimension: Optional[str],
) -> bool:
    """Return True if any filter in the tree constrains `dimension`.

    This is a presence search, not an evaluation of the filter: "and", "or"
    and "not" are all walked the same way, because the Stats API only cares
    that the dimension is constrained somewhere.  Behavioral filters count
    for the dimension their inner filter targets.  Segment filters never
    count.
    """
    if not filters or not dimension:
        return False
    return any(_targets_dimension(node, dimension) for node in filters)


def _targets_dimension(node: Any, dimension: str) -> bool:
    if isinstance(node, SimpleFilter):
        return node.dimension == dimension
    if isinstance(node, LogicalFilter):
        return any(_targets_dimension(child, dimension) for child in node.children)
    if isinstance(node, NotFilter):
        return _targets_dimension(node.child, dimension)
    if isinstance(node, BehavioralFilter):
        return node.inner.dimension == dimension
    if isinstance(node, SegmentFilter):
        return False
    logger.debug("Skipping unrecognized filter node %r", node)
    return False
