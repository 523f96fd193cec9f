"""
Validation boundary — checks a configuration before it is handed to save.

validate(config) is pure and returns every issue it finds; errors block a
save, warnings do not.
"""

from typing import List

from croniter import croniter
from pydantic import ValidationError

from builder_core.conditions.operators import (
    ValueArity,
    arity_of,
    is_operator_supported,
)
from builder_core.conditions.summary import trigger_condition_groups
from builder_core.models.builder import BuilderConfig, BuilderType
from builder_core.models.conditions import ConditionGroup, TriggerCondition
from builder_core.models.validation import IssueSeverity, ValidationIssue

TRIGGERED_BUILDERS = (BuilderType.WORKFLOW, BuilderType.CAMPAIGN)


def _check_name(config: BuilderConfig) -> List[ValidationIssue]:
    if not config.name or not config.name.strip():
        return [ValidationIssue(
            code="name_required",
            message="Please enter a name for your configuration",
        )]
    return []


def _check_elements(config: BuilderConfig) -> List[ValidationIssue]:
    issues = []
    seen = set()
    for index, element in enumerate(config.elements):
        if element.id in seen:
            issues.append(ValidationIssue(
                code="duplicate_element_id",
                message=f"Element id {element.id} is used more than once",
                element_id=element.id,
            ))
        seen.add(element.id)

        if element.position != index:
            issues.append(ValidationIssue(
                code="position_mismatch",
                message=f"Element {element.id} has position {element.position} at index {index}",
                element_id=element.id,
            ))

    if config.type in TRIGGERED_BUILDERS:
        seen_action = False
        for element in config.elements:
            if not element.is_trigger:
                seen_action = True
            elif seen_action:
                issues.append(ValidationIssue(
                    code="trigger_not_first",
                    message=f"Trigger {element.id} must come before all actions",
                    element_id=element.id,
                ))
    return issues


def _check_value_shape(condition: TriggerCondition) -> str:
    """Empty string if the value fits the operator's arity, else a message."""
    arity = arity_of(condition.operator)
    value = condition.value
    if arity == ValueArity.NONE:
        return ""
    if arity == ValueArity.PAIR:
        if not isinstance(value, (list, tuple)) or len(value) != 2:
            return f"'{condition.operator}' needs two values"
        if any(v is None or v == "" for v in value):
            return f"'{condition.operator}' needs two values"
        return ""
    if arity == ValueArity.LIST:
        items = value if isinstance(value, (list, tuple)) else [value]
        if not [v for v in items if v not in (None, "")]:
            return f"'{condition.operator}' needs at least one value"
        return ""
    if isinstance(value, (list, tuple)):
        if len(value) != 1:
            return f"'{condition.operator}' needs a single value"
        value = value[0]
    if value is None or value == "":
        return f"'{condition.operator}' needs a value"
    return ""


def _check_group(element_id: str, group: ConditionGroup) -> List[ValidationIssue]:
    issues = []
    for condition in group.conditions:
        if not is_operator_supported(condition.field_type, condition.operator):
            issues.append(ValidationIssue(
                code="unsupported_operator",
                message=(
                    f"Operator '{condition.operator}' cannot be used with "
                    f"{condition.field_type.value} field '{condition.field}'"
                ),
                element_id=element_id,
                condition_id=condition.id,
            ))
            continue
        problem = _check_value_shape(condition)
        if problem:
            issues.append(ValidationIssue(
                code="invalid_condition_value",
                message=f"Condition on '{condition.field}': {problem}",
                element_id=element_id,
                condition_id=condition.id,
            ))
    for nested in group.groups:
        issues.extend(_check_group(element_id, nested))
    return issues


def _check_triggers(config: BuilderConfig) -> List[ValidationIssue]:
    issues = []
    triggers = [e for e in config.elements if e.is_trigger]

    if config.type in TRIGGERED_BUILDERS and not triggers:
        issues.append(ValidationIssue(
            code="trigger_missing",
            message=f"This {config.type.value} has no trigger and will never start",
            severity=IssueSeverity.WARNING,
        ))

    for element in config.elements:
        try:
            groups = trigger_condition_groups(element)
        except ValidationError:
            issues.append(ValidationIssue(
                code="invalid_condition_groups",
                message=f"Element '{element.title}' has malformed condition groups",
                element_id=element.id,
            ))
            continue
        if element.is_trigger and not any(g.conditions or g.groups for g in groups):
            issues.append(ValidationIssue(
                code="trigger_without_conditions",
                message=f"Trigger '{element.title}' has no conditions set",
                severity=IssueSeverity.WARNING,
                element_id=element.id,
            ))
        for group in groups:
            issues.extend(_check_group(element.id, group))
    return issues


def _check_schedule(config: BuilderConfig) -> List[ValidationIssue]:
    schedule = config.settings.get("schedule")
    if schedule and not croniter.is_valid(schedule):
        return [ValidationIssue(
            code="invalid_schedule",
            message=f"Schedule '{schedule}' is not a valid cron expression",
        )]
    return []


def validate(config: BuilderConfig) -> List[ValidationIssue]:
    """All issues found in a configuration."""
    return (
        _check_name(config)
        + _check_elements(config)
        + _check_triggers(config)
        + _check_schedule(config)
    )


def has_errors(issues: List[ValidationIssue]) -> bool:
    return any(i.severity == IssueSeverity.ERROR for i in issues)
