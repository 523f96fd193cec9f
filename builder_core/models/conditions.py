"""Trigger conditions and the results of evaluating them."""

from __future__ import annotations

from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class FieldType(str, Enum):
    TEXT = "text"
    NUMERIC = "numeric"
    ARRAY = "array"
    DATE = "date"
    SELECT = "select"


class GroupOperator(str, Enum):
    AND = "AND"
    OR = "OR"


class TriggerCondition(BaseModel):
    """
    A single field test against a lead/contact record.

    `value` depends on the operator: absent for is_known / is_empty style
    operators, a scalar for comparisons, a pair for ranges (`between`,
    `is_between`, `[amount, unit]` for relative dates) and a list for
    membership operators.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    field: str                              # e.g., "lead_score", "source"
    field_type: FieldType
    operator: str                           # e.g., "between", "is_one_of"
    value: Any = None


class ConditionGroup(BaseModel):
    """AND/OR combination of conditions. Nested groups are extra operands."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str = "main"
    operator: GroupOperator = GroupOperator.AND
    conditions: List[TriggerCondition] = []
    groups: List[ConditionGroup] = Field(default_factory=list)


class ConditionResult(BaseModel):
    condition_id: str
    matched: bool
    diagnostic: Optional[str] = None


class GroupEvaluation(BaseModel):
    """Outcome of evaluating a group, with per-condition detail."""

    group_id: str
    matched: bool
    results: List[ConditionResult] = []
    diagnostics: List[str] = []
