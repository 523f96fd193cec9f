"""
Operator tables: which operators apply to which field type, and what shape
of value each operator takes.
"""

from enum import Enum
from typing import Dict, List, Tuple

from builder_core.models.conditions import FieldType


class ValueArity(str, Enum):
    NONE = "none"           # is_known, is_empty, ...
    SCALAR = "scalar"       # equals, greater_than, is_before, ...
    PAIR = "pair"           # between, is_between, is_within_last
    LIST = "list"           # is_one_of, contains_any, ...


OPERATOR_LABELS: Dict[str, str] = {
    "is_known": "is known",
    "is_unknown": "is unknown",
    "equals": "equals",
    "not_equals": "not equals",
    "contains": "contains",
    "not_contains": "doesn't contain",
    "starts_with": "starts with",
    "ends_with": "ends with",
    "greater_than": "greater than",
    "less_than": "less than",
    "between": "between",
    "is_empty": "is empty",
    "is_not_empty": "is not empty",
    "contains_any": "contains any",
    "contains_all": "contains all",
    "is_before": "is before",
    "is_after": "is after",
    "is_between": "is between",
    "is_within_last": "is within last",
    "is_older_than": "is older than",
    "is": "is",
    "is_not": "is not",
    "is_one_of": "is one of",
    "is_not_one_of": "is not one of",
}

OPERATOR_ARITY: Dict[str, ValueArity] = {
    "is_known": ValueArity.NONE,
    "is_unknown": ValueArity.NONE,
    "is_empty": ValueArity.NONE,
    "is_not_empty": ValueArity.NONE,
    "between": ValueArity.PAIR,
    "is_between": ValueArity.PAIR,
    "is_within_last": ValueArity.PAIR,
    "is_older_than": ValueArity.PAIR,
    "is_one_of": ValueArity.LIST,
    "is_not_one_of": ValueArity.LIST,
    "contains_any": ValueArity.LIST,
    "contains_all": ValueArity.LIST,
}

OPERATORS_BY_FIELD_TYPE: Dict[FieldType, Tuple[str, ...]] = {
    FieldType.TEXT: (
        "is_known", "is_unknown", "equals", "not_equals",
        "contains", "not_contains", "starts_with", "ends_with",
    ),
    FieldType.NUMERIC: (
        "is_known", "is_unknown", "equals", "not_equals",
        "greater_than", "less_than", "between",
    ),
    FieldType.ARRAY: (
        "is_empty", "is_not_empty", "contains_any", "contains_all",
    ),
    FieldType.DATE: (
        "is_known", "is_unknown", "is_before", "is_after",
        "is_between", "is_within_last", "is_older_than",
    ),
    FieldType.SELECT: (
        "is_known", "is_unknown", "is", "is_one_of", "is_not", "is_not_one_of",
    ),
}

TIME_UNITS = ("hours", "days", "weeks", "months")


def operators_for_field_type(field_type: FieldType) -> List[str]:
    """Operators the builder offers for a field type."""
    return list(OPERATORS_BY_FIELD_TYPE.get(FieldType(field_type), ()))


def is_operator_supported(field_type: FieldType, operator: str) -> bool:
    return operator in OPERATORS_BY_FIELD_TYPE.get(FieldType(field_type), ())


def arity_of(operator: str) -> ValueArity:
    return OPERATOR_ARITY.get(operator, ValueArity.SCALAR)


def needs_value(operator: str) -> bool:
    return arity_of(operator) != ValueArity.NONE


def label_for(operator: str) -> str:
    return OPERATOR_LABELS.get(operator, operator.replace("_", " "))
