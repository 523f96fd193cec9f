"""
Condition Evaluator — decides whether a record matches a trigger's conditions.

Behavioral Contract:
- Pure: the only time source is the `now` argument (resolved once per call
  when omitted).
- AND requires every operand, OR at least one. A group with no conditions
  and no nested groups never matches: an unconfigured trigger must not fire.
- Text comparisons are case-insensitive. Select and array comparisons are
  exact, since their values come from fixed option lists.
- Comparisons against a missing record value do not match.
- Unknown (field type, operator) pairs and malformed values fail closed:
  the condition is False, a diagnostic is recorded and a warning logged.
"""

import logging
import math
from datetime import date, datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from builder_core.conditions.operators import TIME_UNITS
from builder_core.models.conditions import (
    ConditionGroup,
    ConditionResult,
    FieldType,
    GroupEvaluation,
    GroupOperator,
    TriggerCondition,
)

logger = logging.getLogger(__name__)

# Relative date arithmetic treats a month as 30 days.
DAYS_PER_MONTH = 30


class ConditionMismatch(Exception):
    """A condition's value or the record's value has the wrong shape."""


# --- Value coercion ---

def _is_present(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return value.strip() != ""
    if isinstance(value, (list, tuple, set, dict)):
        return len(value) > 0
    return True


def _scalar(value: Any) -> Any:
    """The single value a scalar operator compares against."""
    if isinstance(value, (list, tuple)):
        if len(value) != 1:
            raise ConditionMismatch(f"expected a single value, got {len(value)} values")
        value = value[0]
    if not _is_present(value):
        raise ConditionMismatch("condition has no value")
    return value


def _pair(value: Any) -> Tuple[Any, Any]:
    if not isinstance(value, (list, tuple)) or len(value) != 2:
        raise ConditionMismatch(f"expected a pair of values, got {value!r}")
    return value[0], value[1]


def _values(value: Any) -> List[Any]:
    """The value list of a membership operator."""
    if isinstance(value, (list, tuple, set)):
        items = [v for v in value if _is_present(v)]
    elif _is_present(value):
        items = [value]
    else:
        items = []
    if not items:
        raise ConditionMismatch("condition has no values")
    return items


def _as_list(value: Any) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, (list, tuple, set)):
        return list(value)
    return [value]


def _text(value: Any) -> str:
    return str(value).casefold()


def _number(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        raise ConditionMismatch(f"{value!r} is not numeric")
    try:
        number = float(value.strip() if isinstance(value, str) else value)
    except (ValueError, OverflowError):
        raise ConditionMismatch(f"{value!r} is not numeric")
    if not math.isfinite(number):
        raise ConditionMismatch(f"{value!r} is not a finite number")
    return number


def _aware(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


def _date(value: Any) -> datetime:
    if isinstance(value, datetime):
        return _aware(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return _aware(datetime.fromisoformat(text))
        except ValueError:
            raise ConditionMismatch(f"{value!r} is not a date")
    raise ConditionMismatch(f"{value!r} is not a date")


def _duration(value: Any) -> timedelta:
    """Convert an `[amount, unit]` pair into a timedelta."""
    amount, unit = _pair(value)
    amount = _number(amount)
    if amount < 0:
        raise ConditionMismatch(f"negative duration {amount}")
    unit = str(unit).lower()
    if unit not in TIME_UNITS:
        raise ConditionMismatch(f"unknown time unit {unit!r}")
    try:
        if unit == "hours":
            return timedelta(hours=amount)
        if unit == "days":
            return timedelta(days=amount)
        if unit == "weeks":
            return timedelta(weeks=amount)
        return timedelta(days=amount * DAYS_PER_MONTH)
    except OverflowError:
        raise ConditionMismatch(f"duration {amount} {unit} is out of range")


def _window_start(now: datetime, window: timedelta) -> datetime:
    try:
        return now - window
    except OverflowError:
        raise ConditionMismatch(f"window of {window} reaches before the earliest date")


# --- Operators shared by several field types ---

def _is_known(actual: Any, expected: Any, now: datetime) -> bool:
    return _is_present(actual)


def _is_unknown(actual: Any, expected: Any, now: datetime) -> bool:
    return not _is_present(actual)


# --- Text ---

def _text_equals(actual, expected, now):
    return _is_present(actual) and _text(actual) == _text(_scalar(expected))


def _text_not_equals(actual, expected, now):
    return _is_present(actual) and _text(actual) != _text(_scalar(expected))


def _text_contains(actual, expected, now):
    return _is_present(actual) and _text(_scalar(expected)) in _text(actual)


def _text_not_contains(actual, expected, now):
    return _is_present(actual) and _text(_scalar(expected)) not in _text(actual)


def _text_starts_with(actual, expected, now):
    return _is_present(actual) and _text(actual).startswith(_text(_scalar(expected)))


def _text_ends_with(actual, expected, now):
    return _is_present(actual) and _text(actual).endswith(_text(_scalar(expected)))


# --- Numeric ---

def _num_equals(actual, expected, now):
    target = _number(_scalar(expected))
    return _is_present(actual) and _number(actual) == target


def _num_not_equals(actual, expected, now):
    target = _number(_scalar(expected))
    return _is_present(actual) and _number(actual) != target


def _num_greater_than(actual, expected, now):
    target = _number(_scalar(expected))
    return _is_present(actual) and _number(actual) > target


def _num_less_than(actual, expected, now):
    target = _number(_scalar(expected))
    return _is_present(actual) and _number(actual) < target


def _num_between(actual, expected, now):
    low, high = sorted(_number(v) for v in _pair(expected))
    return _is_present(actual) and low <= _number(actual) <= high


# --- Array ---

def _array_is_empty(actual, expected, now):
    return len([v for v in _as_list(actual) if _is_present(v)]) == 0


def _array_is_not_empty(actual, expected, now):
    return not _array_is_empty(actual, expected, now)


def _array_contains_any(actual, expected, now):
    items = _as_list(actual)
    return any(v in items for v in _values(expected))


def _array_contains_all(actual, expected, now):
    items = _as_list(actual)
    return all(v in items for v in _values(expected))


# --- Date ---

def _date_is_before(actual, expected, now):
    target = _date(_scalar(expected))
    return _is_present(actual) and _date(actual) < target


def _date_is_after(actual, expected, now):
    target = _date(_scalar(expected))
    return _is_present(actual) and _date(actual) > target


def _date_is_between(actual, expected, now):
    start, end = sorted(_date(v) for v in _pair(expected))
    return _is_present(actual) and start <= _date(actual) <= end


def _date_is_within_last(actual, expected, now):
    window = _duration(expected)
    start = _window_start(now, window)
    return _is_present(actual) and start <= _date(actual) <= now


def _date_is_older_than(actual, expected, now):
    window = _duration(expected)
    start = _window_start(now, window)
    return _is_present(actual) and _date(actual) < start


# --- Select ---

def _select_is(actual, expected, now):
    return _is_present(actual) and actual == _scalar(expected)


def _select_is_not(actual, expected, now):
    return _is_present(actual) and actual != _scalar(expected)


def _select_is_one_of(actual, expected, now):
    return _is_present(actual) and actual in _values(expected)


def _select_is_not_one_of(actual, expected, now):
    return _is_present(actual) and actual not in _values(expected)


Evaluator = Callable[[Any, Any, datetime], bool]

_EVALUATORS: Dict[Tuple[FieldType, str], Evaluator] = {
    (FieldType.TEXT, "is_known"): _is_known,
    (FieldType.TEXT, "is_unknown"): _is_unknown,
    (FieldType.TEXT, "equals"): _text_equals,
    (FieldType.TEXT, "not_equals"): _text_not_equals,
    (FieldType.TEXT, "contains"): _text_contains,
    (FieldType.TEXT, "not_contains"): _text_not_contains,
    (FieldType.TEXT, "starts_with"): _text_starts_with,
    (FieldType.TEXT, "ends_with"): _text_ends_with,

    (FieldType.NUMERIC, "is_known"): _is_known,
    (FieldType.NUMERIC, "is_unknown"): _is_unknown,
    (FieldType.NUMERIC, "equals"): _num_equals,
    (FieldType.NUMERIC, "not_equals"): _num_not_equals,
    (FieldType.NUMERIC, "greater_than"): _num_greater_than,
    (FieldType.NUMERIC, "less_than"): _num_less_than,
    (FieldType.NUMERIC, "between"): _num_between,

    (FieldType.ARRAY, "is_empty"): _array_is_empty,
    (FieldType.ARRAY, "is_not_empty"): _array_is_not_empty,
    (FieldType.ARRAY, "contains_any"): _array_contains_any,
    (FieldType.ARRAY, "contains_all"): _array_contains_all,

    (FieldType.DATE, "is_known"): _is_known,
    (FieldType.DATE, "is_unknown"): _is_unknown,
    (FieldType.DATE, "is_before"): _date_is_before,
    (FieldType.DATE, "is_after"): _date_is_after,
    (FieldType.DATE, "is_between"): _date_is_between,
    (FieldType.DATE, "is_within_last"): _date_is_within_last,
    (FieldType.DATE, "is_older_than"): _date_is_older_than,

    (FieldType.SELECT, "is_known"): _is_known,
    (FieldType.SELECT, "is_unknown"): _is_unknown,
    (FieldType.SELECT, "is"): _select_is,
    (FieldType.SELECT, "is_not"): _select_is_not,
    (FieldType.SELECT, "is_one_of"): _select_is_one_of,
    (FieldType.SELECT, "is_not_one_of"): _select_is_not_one_of,
}


def evaluator_for(field_type: FieldType, operator: str) -> Optional[Evaluator]:
    return _EVALUATORS.get((FieldType(field_type), operator))


def _resolve_now(now: Optional[datetime]) -> datetime:
    if now is None:
        return datetime.now(timezone.utc)
    return _aware(now)


def _check_condition(
    condition: TriggerCondition,
    record: Mapping[str, Any],
    now: datetime,
) -> ConditionResult:
    evaluate = evaluator_for(condition.field_type, condition.operator)
    if evaluate is None:
        message = (
            f"Condition {condition.id}: operator '{condition.operator}' is not "
            f"supported for {condition.field_type.value} fields"
        )
        logger.warning(message)
        return ConditionResult(condition_id=condition.id, matched=False, diagnostic=message)

    try:
        matched = evaluate(record.get(condition.field), condition.value, now)
    except ConditionMismatch as e:
        message = f"Condition {condition.id} on '{condition.field}': {e}"
        logger.warning(message)
        return ConditionResult(condition_id=condition.id, matched=False, diagnostic=message)

    return ConditionResult(condition_id=condition.id, matched=bool(matched))


def _explain(
    group: ConditionGroup,
    record: Mapping[str, Any],
    now: datetime,
) -> GroupEvaluation:
    results = [_check_condition(c, record, now) for c in group.conditions]
    nested = [_explain(g, record, now) for g in group.groups]

    diagnostics = [r.diagnostic for r in results if r.diagnostic]
    for sub in nested:
        diagnostics.extend(sub.diagnostics)

    outcomes = [r.matched for r in results] + [n.matched for n in nested]
    if not outcomes:
        diagnostics.append(f"Group {group.id} has no conditions")
        matched = False
    elif group.operator == GroupOperator.AND:
        matched = all(outcomes)
    else:
        matched = any(outcomes)

    return GroupEvaluation(
        group_id=group.id,
        matched=matched,
        results=results,
        diagnostics=diagnostics,
    )


def explain_group(
    group: ConditionGroup,
    record: Mapping[str, Any],
    now: Optional[datetime] = None,
) -> GroupEvaluation:
    """Evaluate a group and report per-condition outcomes and diagnostics."""
    return _explain(group, record, _resolve_now(now))


def evaluate_condition(
    condition: TriggerCondition,
    record: Mapping[str, Any],
    now: Optional[datetime] = None,
) -> bool:
    """Evaluate a single condition against a record."""
    return _check_condition(condition, record, _resolve_now(now)).matched


def evaluate_group(
    group: ConditionGroup,
    record: Mapping[str, Any],
    now: Optional[datetime] = None,
) -> bool:
    """True if the record satisfies the group."""
    return explain_group(group, record, now).matched


def evaluate_groups(
    groups: List[ConditionGroup],
    record: Mapping[str, Any],
    now: Optional[datetime] = None,
) -> bool:
    """True if the record satisfies every group. No groups never matches."""
    if not groups:
        return False
    now = _resolve_now(now)
    return all(_explain(g, record, now).matched for g in groups)
