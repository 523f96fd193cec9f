"""Tests for the Condition Evaluator."""

from datetime import datetime, timedelta, timezone

import pytest

from builder_core.conditions.evaluator import (
    evaluate_condition,
    evaluate_group,
    evaluate_groups,
    explain_group,
)
from builder_core.conditions.operators import (
    ValueArity,
    arity_of,
    is_operator_supported,
    label_for,
    operators_for_field_type,
)
from builder_core.models.conditions import (
    ConditionGroup,
    FieldType,
    GroupOperator,
    TriggerCondition,
)

NOW = datetime(2025, 3, 15, 12, 0, tzinfo=timezone.utc)


def _make_condition(field: str, field_type: str, operator: str, value=None, id: str = "c1"):
    return TriggerCondition(id=id, field=field, field_type=field_type, operator=operator, value=value)


def _matches(condition: TriggerCondition, record: dict) -> bool:
    return evaluate_condition(condition, record, NOW)


class TestTruthTable:
    @pytest.mark.parametrize("score,expected", [
        (25, True), (10, True), (50, True), (5, False), (51, False),
    ])
    def test_numeric_between(self, score, expected):
        cond = _make_condition("lead_score", "numeric", "between", [10, 50])
        assert _matches(cond, {"lead_score": score}) is expected

    def test_select_is_one_of(self):
        cond = _make_condition("source", "select", "is_one_of", ["Web", "Ads"])
        assert _matches(cond, {"source": "Ads"})
        assert not _matches(cond, {"source": "Referral"})

    @pytest.mark.parametrize("record,expected", [
        ({"email": "maria@example.edu"}, True),
        ({"email": None}, False),
        ({}, False),
        ({"email": ""}, False),
    ])
    def test_text_is_known(self, record, expected):
        cond = _make_condition("email", "text", "is_known")
        assert _matches(cond, record) is expected

    def test_or_and_groups(self):
        conditions = [
            _make_condition("source", "select", "is", "Ads", id="c1"),
            _make_condition("lead_score", "numeric", "greater_than", 70, id="c2"),
        ]
        record = {"source": "Web", "lead_score": 90}
        assert evaluate_group(ConditionGroup(operator=GroupOperator.OR, conditions=conditions), record, NOW)
        assert not evaluate_group(ConditionGroup(operator=GroupOperator.AND, conditions=conditions), record, NOW)

    def test_date_within_last_with_injected_now(self):
        cond = _make_condition("created_at", "date", "is_within_last", [7, "days"])
        assert _matches(cond, {"created_at": NOW - timedelta(days=3)})
        assert not _matches(cond, {"created_at": NOW - timedelta(days=10)})


class TestTextOperators:
    def test_comparisons_ignore_case(self):
        record = {"city": "Boston"}
        assert _matches(_make_condition("city", "text", "equals", "boston"), record)
        assert _matches(_make_condition("city", "text", "contains", "OST"), record)
        assert _matches(_make_condition("city", "text", "starts_with", "bo"), record)
        assert _matches(_make_condition("city", "text", "ends_with", "TON"), record)
        assert not _matches(_make_condition("city", "text", "not_equals", "BOSTON"), record)
        assert _matches(_make_condition("city", "text", "not_contains", "york"), record)

    def test_is_unknown(self):
        cond = _make_condition("phone", "text", "is_unknown")
        assert _matches(cond, {"phone": "   "})
        assert not _matches(cond, {"phone": "555-0100"})

    def test_missing_value_does_not_match(self):
        assert not _matches(_make_condition("city", "text", "not_equals", "Boston"), {})


class TestNumericOperators:
    def test_comparisons(self):
        record = {"lead_score": 42}
        assert _matches(_make_condition("lead_score", "numeric", "equals", 42), record)
        assert _matches(_make_condition("lead_score", "numeric", "not_equals", "41"), record)
        assert _matches(_make_condition("lead_score", "numeric", "less_than", 50), record)
        assert not _matches(_make_condition("lead_score", "numeric", "greater_than", 42), record)

    def test_numeric_strings_accepted(self):
        assert _matches(_make_condition("lead_score", "numeric", "greater_than", "10"), {"lead_score": "11"})

    def test_between_bounds_in_any_order(self):
        cond = _make_condition("lead_score", "numeric", "between", [50, 10])
        assert _matches(cond, {"lead_score": 10})

    def test_non_numeric_record_fails_closed(self):
        cond = _make_condition("lead_score", "numeric", "greater_than", 10)
        assert not _matches(cond, {"lead_score": "high"})

    def test_bool_is_not_numeric(self):
        assert not _matches(_make_condition("lead_score", "numeric", "equals", 1), {"lead_score": True})


class TestArrayOperators:
    def test_contains_any_and_all(self):
        record = {"tags": ["hot", "mba"]}
        assert _matches(_make_condition("tags", "array", "contains_any", ["mba", "msc"]), record)
        assert not _matches(_make_condition("tags", "array", "contains_all", ["mba", "msc"]), record)
        assert _matches(_make_condition("tags", "array", "contains_all", ["mba", "hot"]), record)

    def test_empty(self):
        assert _matches(_make_condition("tags", "array", "is_empty"), {"tags": []})
        assert _matches(_make_condition("tags", "array", "is_empty"), {})
        assert _matches(_make_condition("tags", "array", "is_not_empty"), {"tags": ["x"]})

    def test_scalar_record_value_treated_as_list(self):
        assert _matches(_make_condition("tags", "array", "contains_any", ["hot"]), {"tags": "hot"})


class TestDateOperators:
    def test_before_and_after(self):
        record = {"created_at": "2025-01-10T09:00:00Z"}
        assert _matches(_make_condition("created_at", "date", "is_before", "2025-02-01"), record)
        assert _matches(_make_condition("created_at", "date", "is_after", "2024-12-31"), record)

    def test_is_between(self):
        cond = _make_condition("created_at", "date", "is_between", ["2025-01-01", "2025-01-31"])
        assert _matches(cond, {"created_at": "2025-01-15"})
        assert not _matches(cond, {"created_at": "2025-02-15"})

    def test_is_older_than(self):
        cond = _make_condition("last_contacted_at", "date", "is_older_than", [2, "weeks"])
        assert _matches(cond, {"last_contacted_at": NOW - timedelta(days=20)})
        assert not _matches(cond, {"last_contacted_at": NOW - timedelta(days=3)})

    def test_month_is_thirty_days(self):
        cond = _make_condition("created_at", "date", "is_within_last", [1, "months"])
        assert _matches(cond, {"created_at": NOW - timedelta(days=29)})
        assert not _matches(cond, {"created_at": NOW - timedelta(days=31)})

    def test_naive_datetime_treated_as_utc(self):
        cond = _make_condition("created_at", "date", "is_within_last", [1, "hours"])
        naive = (NOW - timedelta(minutes=30)).replace(tzinfo=None)
        assert _matches(cond, {"created_at": naive})

    def test_future_date_not_within_last(self):
        cond = _make_condition("created_at", "date", "is_within_last", [7, "days"])
        assert not _matches(cond, {"created_at": NOW + timedelta(days=1)})

    def test_unparseable_date_fails_closed(self):
        cond = _make_condition("created_at", "date", "is_before", "2025-02-01")
        assert not _matches(cond, {"created_at": "last tuesday"})


class TestSelectOperators:
    def test_is_and_is_not(self):
        record = {"status": "Applied"}
        assert _matches(_make_condition("status", "select", "is", "Applied"), record)
        assert not _matches(_make_condition("status", "select", "is", "applied"), record)
        assert _matches(_make_condition("status", "select", "is_not", "Lost"), record)

    def test_is_not_one_of(self):
        cond = _make_condition("status", "select", "is_not_one_of", ["Converted", "Lost"])
        assert _matches(cond, {"status": "Applied"})
        assert not _matches(cond, {"status": "Lost"})
        assert not _matches(cond, {})


class TestFailClosed:
    def test_unsupported_operator(self):
        cond = _make_condition("email", "text", "greater_than", 3)
        evaluation = explain_group(ConditionGroup(conditions=[cond]), {"email": "x"}, NOW)
        assert not evaluation.matched
        assert "not supported" in evaluation.diagnostics[0]

    def test_missing_condition_value(self):
        cond = _make_condition("city", "text", "equals", None)
        evaluation = explain_group(ConditionGroup(conditions=[cond]), {"city": "Boston"}, NOW)
        assert not evaluation.matched
        assert evaluation.results[0].diagnostic

    @pytest.mark.parametrize("value", [[7], [7, "fortnights"], "7 days", [-1, "days"]])
    def test_malformed_duration(self, value):
        cond = _make_condition("created_at", "date", "is_within_last", value)
        assert not _matches(cond, {"created_at": NOW})

    @pytest.mark.parametrize("operator", ["is_within_last", "is_older_than"])
    @pytest.mark.parametrize("value", [
        [1000000, "days"],
        [1e10, "days"],
        [10**400, "hours"],
        ["nan", "days"],
        [float("inf"), "weeks"],
    ])
    def test_out_of_range_duration(self, operator, value):
        cond = _make_condition("created_at", "date", operator, value)
        record = {"created_at": datetime(1, 1, 2, tzinfo=timezone.utc)}
        evaluation = explain_group(ConditionGroup(conditions=[cond]), record, NOW)
        assert not evaluation.matched
        assert evaluation.results[0].diagnostic

    @pytest.mark.parametrize("actual, expected", [
        (10**400, 5),
        (50, "nan"),
        (50, float("inf")),
        ("1e999", 5),
    ])
    def test_non_finite_number(self, actual, expected):
        cond = _make_condition("lead_score", "numeric", "greater_than", expected)
        evaluation = explain_group(ConditionGroup(conditions=[cond]), {"lead_score": actual}, NOW)
        assert not evaluation.matched
        assert evaluation.results[0].diagnostic

    def test_unsupported_condition_poisons_and_group(self):
        group = ConditionGroup(operator=GroupOperator.AND, conditions=[
            _make_condition("email", "text", "is_known", id="c1"),
            _make_condition("email", "text", "between", [1, 2], id="c2"),
        ])
        assert not evaluate_group(group, {"email": "a@b.c"}, NOW)

    def test_or_group_survives_one_bad_condition(self):
        group = ConditionGroup(operator=GroupOperator.OR, conditions=[
            _make_condition("email", "text", "between", [1, 2], id="c1"),
            _make_condition("email", "text", "is_known", id="c2"),
        ])
        evaluation = explain_group(group, {"email": "a@b.c"}, NOW)
        assert evaluation.matched
        assert len(evaluation.diagnostics) == 1


class TestGroups:
    def test_empty_group_never_matches(self):
        assert not evaluate_group(ConditionGroup(operator=GroupOperator.AND), {}, NOW)
        assert not evaluate_group(ConditionGroup(operator=GroupOperator.OR), {}, NOW)

    def test_no_groups_never_match(self):
        assert not evaluate_groups([], {"email": "x"}, NOW)

    def test_every_group_must_match(self):
        known = ConditionGroup(id="g1", conditions=[_make_condition("email", "text", "is_known")])
        hot = ConditionGroup(id="g2", conditions=[_make_condition("lead_score", "numeric", "greater_than", 70)])
        assert evaluate_groups([known, hot], {"email": "x", "lead_score": 80}, NOW)
        assert not evaluate_groups([known, hot], {"email": "x", "lead_score": 20}, NOW)

    def test_nested_groups(self):
        group = ConditionGroup(
            operator=GroupOperator.AND,
            conditions=[_make_condition("email", "text", "is_known", id="c1")],
            groups=[ConditionGroup(id="either", operator=GroupOperator.OR, conditions=[
                _make_condition("source", "select", "is", "Web", id="c2"),
                _make_condition("source", "select", "is", "Ads", id="c3"),
            ])],
        )
        assert evaluate_group(group, {"email": "x", "source": "Ads"}, NOW)
        assert not evaluate_group(group, {"email": "x", "source": "Fair"}, NOW)

    def test_now_defaults_to_current_time(self):
        cond = _make_condition("created_at", "date", "is_within_last", [1, "hours"])
        assert evaluate_condition(cond, {"created_at": datetime.now(timezone.utc)})


class TestOperatorTables:
    def test_operators_per_field_type(self):
        assert "between" in operators_for_field_type(FieldType.NUMERIC)
        assert "between" not in operators_for_field_type(FieldType.TEXT)
        assert operators_for_field_type(FieldType.ARRAY) == [
            "is_empty", "is_not_empty", "contains_any", "contains_all",
        ]

    def test_every_listed_operator_is_evaluable(self):
        for field_type in FieldType:
            for operator in operators_for_field_type(field_type):
                assert is_operator_supported(field_type, operator)
                cond = _make_condition("f", field_type.value, operator, None)
                evaluation = explain_group(ConditionGroup(conditions=[cond]), {}, NOW)
                assert "not supported" not in " ".join(evaluation.diagnostics)

    def test_arity_and_labels(self):
        assert arity_of("is_known") == ValueArity.NONE
        assert arity_of("is_within_last") == ValueArity.PAIR
        assert arity_of("is_one_of") == ValueArity.LIST
        assert arity_of("equals") == ValueArity.SCALAR
        assert label_for("not_contains") == "doesn't contain"
