# =============================================================================
# plausible/models.py  -  Data Models (the "nouns" of a Plausible query)
# =============================================================================
#
# These dataclasses define the *shape* of a query as it flows from the MCP
# tool, through the validator, to the Stats API.  They are frozen: a Query is
# built once per tool call, validated, sent, and thrown away.  Nothing
# mutates it along the way.
#
# FILTERS ARE A CLOSED SET:
#   The Stats API describes filters as nested JSON arrays whose meaning
#   depends on their length and first element.  That ambiguity stops at
#   filters.parse_filter().  Past that point every filter is one of the five
#   variants below, and code that walks filters matches on the variant type.
# =============================================================================

from dataclasses import dataclass
from typing import Optional, Union


# -----------------------------------------------------------------------------
# Filter variants
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class SimpleFilter:
    """A predicate on one dimension: ["is", "visit:country", ["DE", "FR"]]."""

    dimension: str                     # "event:page", "visit:source", ...
    operator: str                      # one of FILTER_OPERATORS
    values: tuple[str, ...]            # never empty
    case_sensitive: Optional[bool] = None
    # None means "not specified": the modifier object is omitted on the wire.


@dataclass(frozen=True)
class LogicalFilter:
    """An "and" / "or" combination of child filters."""

    operator: str                      # "and" or "or"
    children: tuple["Filter", ...]     # never empty


@dataclass(frozen=True)
class NotFilter:
    """Negation of exactly one child filter."""

    child: "Filter"


@dataclass(frozen=True)
class BehavioralFilter:
    """Sessions that have (or have not) done something.

    The inner filter always targets an event dimension, usually event:goal
    or event:page; the legacy "goal" / "page" shorthands are normalised to
    those by the parser.
    """

    operator: str                      # "has_done" or "has_not_done"
    inner: SimpleFilter


@dataclass(frozen=True)
class SegmentFilter:
    """Reference to saved segments by numeric id: ["is", "segment", [1, 2]]."""

    segment_ids: tuple[int, ...]


Filter = Union[SimpleFilter, LogicalFilter, NotFilter, BehavioralFilter, SegmentFilter]


# -----------------------------------------------------------------------------
# Query parts
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class OrderBy:
    """One sort key: a dimension or metric name and a direction."""

    field: str
    direction: str                     # "asc" or "desc"


@dataclass(frozen=True)
class Include:
    """Optional extras the API can attach to a response."""

    imports: Optional[bool] = None
    time_labels: Optional[bool] = None
    total_rows: Optional[bool] = None


@dataclass(frozen=True)
class Pagination:
    limit: Optional[int] = None
    offset: Optional[int] = None


# -----------------------------------------------------------------------------
# Query - the unit of work submitted to the Stats API
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class Query:
    """A Plausible Stats API v2 query.

    date_range is either a named range ("7d", "month", ...) or a
    (start, end) pair of ISO-8601 date strings.  It is kept in its raw form
    here; validation.validate_date_range() decides whether it is acceptable.
    """

    site_id: str
    metrics: tuple[str, ...]
    date_range: Union[str, tuple[str, ...]]
    dimensions: tuple[str, ...] = ()
    filters: tuple[Filter, ...] = ()
    order_by: tuple[OrderBy, ...] = ()
    include: Optional[Include] = None
    pagination: Optional[Pagination] = None


# -----------------------------------------------------------------------------
# Validation outcome
# -----------------------------------------------------------------------------
class ValidationError(Exception):
    """A query the Stats API would reject, caught before any network call.

    message is short and stable enough to match on; details explains the
    requirement and how to fix the query; code names the rule that failed.
    """

    def __init__(self, message: str, details: Optional[str] = None,
                 code: str = "invalid_parameter"):
        super().__init__(message)
        self.message = message
        self.details = details
        self.code = code

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ValidationError):
            return NotImplemented
        return (self.message, self.details, self.code) == (
            other.message, other.details, other.code,
        )

    def __hash__(self) -> int:
        return hash((self.message, self.details, self.code))

    def __repr__(self) -> str:
        return f"ValidationError(code={self.code!r}, message={self.message!r})"

    def to_dict(self) -> dict:
        return {"code": self.code, "message": self.message, "details": self.details}


@dataclass(frozen=True)
class ValidationResult:
    """Either a well-formed Query or the first ValidationError found."""

    query: Optional[Query] = None
    error: Optional[ValidationError] = None

    @property
    def ok(self) -> bool:
        return self.error is None
