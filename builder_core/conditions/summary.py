"""One-line summaries of a trigger's conditions, as shown on the canvas."""

from typing import Any, List, Optional

from builder_core.conditions.operators import label_for, needs_value
from builder_core.models.builder import ElementBase
from builder_core.models.conditions import ConditionGroup

NO_CONDITIONS = "No conditions set"


def trigger_condition_groups(element: ElementBase) -> List[ConditionGroup]:
    """
    Condition groups of a trigger element.

    Groups live on the element itself or, for documents written by older
    editors, under `config["conditionGroups"]`.
    """
    groups: Optional[List[Any]] = getattr(element, "condition_groups", None)
    if not groups:
        groups = element.config.get("conditionGroups") or element.config.get("condition_groups")
    if not groups:
        return []
    return [g if isinstance(g, ConditionGroup) else ConditionGroup.model_validate(g)
            for g in groups]


def _format_value(value: Any) -> str:
    if isinstance(value, (list, tuple)):
        return ", ".join(str(v) for v in value)
    return "" if value is None else str(value)


def summarize_condition_groups(groups: List[ConditionGroup]) -> str:
    if not groups or not groups[0].conditions:
        return NO_CONDITIONS

    conditions = groups[0].conditions
    if len(conditions) == 1:
        cond = conditions[0]
        text = f"{cond.field} {label_for(cond.operator)}"
        if needs_value(cond.operator):
            text = f"{text} {_format_value(cond.value)}"
        return text

    if len(conditions) == 2:
        return f"{conditions[0].field} {groups[0].operator.value} {conditions[1].field}"

    return f"{len(conditions)} conditions defined"


def summarize_trigger(element: ElementBase) -> str:
    return summarize_condition_groups(trigger_condition_groups(element))
