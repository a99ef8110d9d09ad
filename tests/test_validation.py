"""
Query validator tests.

Every rule is exercised on its own, plus the end-to-end scenarios an agent
is most likely to hit: metrics that need event:page or event:goal, session
metrics grouped by event dimensions, and reversed custom date ranges.
"""

import pytest

from plausible.models import Include, Query, SegmentFilter, SimpleFilter, ValidationResult
from plausible.validation import (
    INVALID_DATE_RANGE,
    METRIC_REQUIREMENT,
    MISSING_REQUIRED_FIELD,
    SESSION_METRIC_CONFLICT,
    TIME_LABELS_REQUIREMENT,
    validate,
    validate_all_parameters,
)

BASE = {"site_id": "a.com", "metrics": ["visitors"], "date_range": "30d"}


def _validate(**overrides) -> ValidationResult:
    return validate_all_parameters({**BASE, **overrides})


def _assert_fails(result: ValidationResult, code: str, message: str) -> None:
    assert not result.ok
    assert result.query is None
    assert result.error.code == code
    assert message in result.error.message


# --- Required fields ---


class TestRequiredFields:
    @pytest.mark.parametrize("site_id", [None, "", "   ", "\t\n"])
    def test_missing_site_id(self, site_id):
        # Every other field is invalid too; site_id is still what gets reported.
        result = validate_all_parameters(
            {"site_id": site_id, "metrics": ["percentage"], "date_range": "bogus"}
        )
        _assert_fails(result, MISSING_REQUIRED_FIELD, "site_id is required")

    @pytest.mark.parametrize("metrics", [None, []])
    def test_missing_metrics(self, metrics):
        result = validate_all_parameters(
            {"site_id": "a.com", "metrics": metrics, "date_range": ["2024-02-01", "2024-01-01"]}
        )
        _assert_fails(result, MISSING_REQUIRED_FIELD, "At least one metric is required")

    @pytest.mark.parametrize("date_range", [None, "", []])
    def test_missing_date_range(self, date_range):
        result = validate_all_parameters(
            {"site_id": "a.com", "metrics": ["bounce_rate"], "date_range": date_range,
             "dimensions": ["event:page"]}
        )
        _assert_fails(result, MISSING_REQUIRED_FIELD, "date_range is required")

    def test_absent_keys(self):
        _assert_fails(validate_all_parameters({}), MISSING_REQUIRED_FIELD, "site_id")
        _assert_fails(validate_all_parameters({"site_id": "a.com"}), MISSING_REQUIRED_FIELD, "metric")
        _assert_fails(
            validate_all_parameters({"site_id": "a.com", "metrics": ["visitors"]}),
            MISSING_REQUIRED_FIELD,
            "date_range",
        )


# --- Date range ---


class TestDateRange:
    @pytest.mark.parametrize(
        "date_range", ["day", "7d", "28d", "30d", "91d", "month", "6mo", "12mo", "year", "all"]
    )
    def test_named_ranges(self, date_range):
        assert _validate(date_range=date_range).ok

    @pytest.mark.parametrize("date_range", ["14d", "week", "7D"])
    def test_unknown_named_range(self, date_range):
        _assert_fails(_validate(date_range=date_range), INVALID_DATE_RANGE, "Invalid predefined date range")

    def test_custom_range(self):
        assert _validate(date_range=["2024-01-01", "2024-01-31"]).ok

    def test_leap_day(self):
        assert _validate(date_range=["2024-02-28", "2024-02-29"]).ok

    def test_start_after_end(self):
        # The scenario from the tool docs: February to January.
        result = _validate(date_range=["2024-02-01", "2024-01-01"])
        _assert_fails(result, INVALID_DATE_RANGE, "Start date must be before end date")
        assert "2024-02-01" in result.error.details

    def test_equal_dates_are_rejected(self):
        _assert_fails(
            _validate(date_range=["2024-01-01", "2024-01-01"]),
            INVALID_DATE_RANGE,
            "Start date must be before end date",
        )

    @pytest.mark.parametrize(
        "date_range",
        [["2024-01-01"], ["2024-01-01", "2024-01-02", "2024-01-03"]],
    )
    def test_wrong_arity(self, date_range):
        _assert_fails(_validate(date_range=date_range), INVALID_DATE_RANGE, "exactly 2 dates")

    @pytest.mark.parametrize(
        "date_range",
        [
            ["2024/01/01", "2024-01-31"],
            ["2024-02-30", "2024-03-01"],
            ["2024-1-1", "2024-01-31"],
            ["2024-01-01", 20240131],
            ["2024-01-01T00:00:00", "2024-01-31"],
        ],
    )
    def test_bad_format(self, date_range):
        _assert_fails(_validate(date_range=date_range), INVALID_DATE_RANGE, "Invalid date format")

    def test_non_string_non_pair(self):
        _assert_fails(_validate(date_range=30), INVALID_DATE_RANGE, "Invalid date range")


# --- Metric requirements ---


class TestPercentage:
    def test_requires_dimensions(self):
        _assert_fails(_validate(metrics=["percentage"]), METRIC_REQUIREMENT, "'percentage' requires dimensions")
        _assert_fails(
            _validate(metrics=["percentage"], dimensions=[]),
            METRIC_REQUIREMENT,
            "'percentage' requires dimensions",
        )

    @pytest.mark.parametrize("dimension", ["visit:country", "event:page", "time:day", "event:props:plan"])
    def test_any_dimension_satisfies(self, dimension):
        assert _validate(metrics=["percentage"], dimensions=[dimension]).ok

    def test_filter_does_not_satisfy(self):
        result = _validate(metrics=["percentage"], filters=[["is", "visit:country", ["DE"]]])
        _assert_fails(result, METRIC_REQUIREMENT, "'percentage' requires dimensions")


class TestPageMetrics:
    @pytest.mark.parametrize("metric", ["scroll_depth", "time_on_page"])
    def test_requires_event_page(self, metric):
        _assert_fails(_validate(metrics=[metric], date_range="7d"), METRIC_REQUIREMENT, "require event:page")

    def test_scenario_dimension_then_filter(self):
        query = {"site_id": "a.com", "metrics": ["scroll_depth"], "date_range": "7d"}
        assert not validate_all_parameters(query).ok
        assert validate_all_parameters({**query, "dimensions": ["event:page"]}).ok
        assert validate_all_parameters({**query, "filters": [["event:page", "is", ["/x"]]]}).ok

    def test_lists_each_offending_metric_once(self):
        result = _validate(metrics=["scroll_depth", "time_on_page", "scroll_depth"])
        assert result.error.message == "Metrics scroll_depth, time_on_page require event:page"

    def test_nested_filter_satisfies(self):
        filters = [["and", [["is", "visit:source", ["Google"]], ["not", ["is", "event:page", ["/x"]]]]]]
        assert _validate(metrics=["time_on_page"], filters=filters).ok

    def test_behavioral_page_filter_satisfies(self):
        assert _validate(metrics=["scroll_depth"], filters=[["has_done", "page", "/pricing"]]).ok

    def test_segment_does_not_satisfy(self):
        result = _validate(metrics=["scroll_depth"], filters=[["is", "segment", [1]]])
        _assert_fails(result, METRIC_REQUIREMENT, "require event:page")

    def test_other_dimension_does_not_satisfy(self):
        result = _validate(metrics=["scroll_depth"], dimensions=["event:hostname"])
        _assert_fails(result, METRIC_REQUIREMENT, "require event:page")


class TestGoalAndRevenueMetrics:
    @pytest.mark.parametrize("metric", ["conversion_rate", "group_conversion_rate"])
    def test_goal_metrics_require_event_goal(self, metric):
        _assert_fails(_validate(metrics=[metric]), METRIC_REQUIREMENT, "require event:goal")

    @pytest.mark.parametrize("metric", ["average_revenue", "total_revenue"])
    def test_revenue_metrics_require_goal(self, metric):
        _assert_fails(_validate(metrics=[metric]), METRIC_REQUIREMENT, "require revenue goal")

    def test_goal_dimension(self):
        assert _validate(metrics=["conversion_rate", "total_revenue"], dimensions=["event:goal"]).ok

    def test_goal_filter(self):
        result = _validate(
            metrics=["conversion_rate"],
            dimensions=["visit:source"],
            filters=[["is", "event:goal", ["Signup"]]],
        )
        assert result.ok

    def test_behavioral_goal_filter(self):
        filters = [["has_done", ["is", "event:goal", ["Purchase"]]]]
        assert _validate(metrics=["average_revenue"], filters=filters).ok

    def test_page_filter_does_not_satisfy_goal(self):
        result = _validate(metrics=["conversion_rate"], filters=[["is", "event:page", ["/x"]]])
        _assert_fails(result, METRIC_REQUIREMENT, "require event:goal")


# --- Session metrics vs event dimensions ---


class TestSessionMetrics:
    def test_scenario_bounce_rate_by_page(self):
        result = validate_all_parameters(
            {"metrics": ["bounce_rate"], "dimensions": ["event:page"], "date_range": "30d", "site_id": "a.com"}
        )
        _assert_fails(result, SESSION_METRIC_CONFLICT, "Session metrics cannot be mixed with event dimensions")
        assert "bounce_rate" in result.error.details
        assert "event:page" in result.error.details

    def test_names_every_offender(self):
        result = _validate(
            metrics=["visitors", "bounce_rate", "visit_duration"],
            dimensions=["visit:source", "event:goal", "time:day"],
        )
        details = result.error.details
        assert "(bounce_rate, visit_duration)" in details
        assert "(event:goal, time:day)" in details
        assert "visitors" not in details
        assert "visit:source" not in details

    @pytest.mark.parametrize("metric", ["bounce_rate", "views_per_visit", "visit_duration"])
    def test_visit_dimensions_are_fine(self, metric):
        assert _validate(metrics=[metric], dimensions=["visit:source", "visit:country"]).ok

    def test_event_filter_is_fine(self):
        assert _validate(metrics=["bounce_rate"], filters=[["is", "event:page", ["/x"]]]).ok

    def test_non_session_metrics_with_event_dimension(self):
        assert _validate(metrics=["visitors", "pageviews"], dimensions=["event:page", "time:day"]).ok


# --- Time labels ---


class TestTimeLabels:
    def test_requires_time_dimension(self):
        result = _validate(include={"time_labels": True}, dimensions=["visit:source"])
        _assert_fails(result, TIME_LABELS_REQUIREMENT, "time_labels requires a time dimension")

    @pytest.mark.parametrize("dimension", ["time", "time:hour", "time:day", "time:week", "time:month"])
    def test_time_dimension_satisfies(self, dimension):
        assert _validate(include={"time_labels": True}, dimensions=[dimension]).ok

    def test_false_or_other_flags(self):
        assert _validate(include={"time_labels": False}).ok
        assert _validate(include={"total_rows": True, "imports": True}).ok


# --- Ordering, purity, direct validate() ---


class TestRuleOrder:
    def test_date_range_before_metric_rules(self):
        result = _validate(metrics=["percentage"], date_range="14d")
        assert result.error.code == INVALID_DATE_RANGE

    def test_percentage_before_page_metrics(self):
        result = _validate(metrics=["scroll_depth", "percentage"])
        assert result.error.message == "Metric 'percentage' requires dimensions"

    def test_page_before_goal(self):
        result = _validate(metrics=["conversion_rate", "scroll_depth"])
        assert result.error.message == "Metrics scroll_depth require event:page"

    def test_metric_rules_before_session_rule(self):
        result = _validate(metrics=["bounce_rate", "conversion_rate"], dimensions=["event:page"])
        assert result.error.code == METRIC_REQUIREMENT

    def test_session_rule_before_time_labels(self):
        result = _validate(
            metrics=["bounce_rate"], dimensions=["event:page"], include={"time_labels": True}
        )
        assert result.error.code == SESSION_METRIC_CONFLICT

    def test_schema_errors_before_semantic_rules(self):
        result = _validate(metrics=["percentage"], dimensions=["visit:planet"])
        assert result.error.code == "invalid_parameter"


class TestPurity:
    @pytest.mark.parametrize(
        "params",
        [
            BASE,
            {**BASE, "metrics": ["bounce_rate"], "dimensions": ["event:page"]},
            {**BASE, "date_range": ["2024-02-01", "2024-01-01"]},
        ],
    )
    def test_same_input_same_verdict(self, params):
        first = validate_all_parameters(params)
        second = validate_all_parameters(params)
        assert first == second
        if not first.ok:
            assert first.error.to_dict() == second.error.to_dict()

    def test_input_is_not_mutated(self):
        params = {**BASE, "dimensions": ["visit:source"], "filters": [["is", "event:page", ["/x"]]]}
        snapshot = {k: (list(v) if isinstance(v, list) else v) for k, v in params.items()}
        validate_all_parameters(params)
        assert params == snapshot


class TestValidateQuery:
    def test_valid_query(self):
        query = Query(site_id="a.com", metrics=("visitors",), date_range="7d")
        result = validate(query)
        assert result.ok
        assert result.query is query

    def test_invalid_query(self):
        query = Query(
            site_id="a.com",
            metrics=("scroll_depth",),
            date_range=("2024-01-01", "2024-02-01"),
            filters=(SegmentFilter((3,)),),
        )
        _assert_fails(validate(query), METRIC_REQUIREMENT, "require event:page")

    def test_filters_given_as_dataclasses(self):
        query = Query(
            site_id="a.com",
            metrics=("scroll_depth",),
            date_range="7d",
            filters=(SimpleFilter("event:page", "is", ("/x",)),),
            include=Include(time_labels=False),
        )
        assert validate(query).ok

    def test_missing_site_id(self):
        query = Query(site_id="", metrics=("visitors",), date_range="7d")
        _assert_fails(validate(query), MISSING_REQUIRED_FIELD, "site_id is required")
