"""
Trigger activation — decides whether a workflow or campaign fires for a record.

A configuration fires when:
  1. it is switched on (`settings.isActive`, or `settings.autoActivate` for
     campaigns),
  2. the evaluation instant falls inside `settings.schedule` when one is set
     (a cron expression; an invalid expression never matches), and
  3. every trigger element's condition groups match the record.
"""

import logging
from datetime import datetime, timezone
from typing import Any, List, Mapping, Optional

from croniter import croniter
from pydantic import ValidationError

from builder_core.conditions.evaluator import evaluate_groups
from builder_core.conditions.summary import trigger_condition_groups
from builder_core.models.builder import BuilderConfig, BuilderType
from builder_core.models.conditions import ConditionGroup

logger = logging.getLogger(__name__)


def is_active(config: BuilderConfig) -> bool:
    settings = config.settings
    if settings.get("isActive"):
        return True
    return config.type == BuilderType.CAMPAIGN and bool(settings.get("autoActivate"))


def is_within_schedule(config: BuilderConfig, now: datetime) -> bool:
    """True if no schedule is set or `now`, taken in UTC, matches the cron schedule."""
    schedule = config.settings.get("schedule")
    if not schedule:
        return True
    if now.tzinfo is not None:
        now = now.astimezone(timezone.utc)
    try:
        # croniter matches naive datetimes field by field
        return croniter.match(schedule, now.replace(tzinfo=None))
    except (ValueError, KeyError):
        logger.warning("Invalid schedule %r on %s, treating as inactive", schedule, config.id)
        return False


def trigger_groups(config: BuilderConfig) -> List[ConditionGroup]:
    """Condition groups of every trigger element, in order."""
    groups: List[ConditionGroup] = []
    for element in config.elements:
        if element.is_trigger:
            groups.extend(trigger_condition_groups(element))
    return groups


def trigger_fires(
    config: BuilderConfig,
    record: Mapping[str, Any],
    now: Optional[datetime] = None,
) -> bool:
    """Whether the configuration starts for this record at `now`."""
    if now is None:
        now = datetime.now(timezone.utc)

    if not is_active(config):
        return False
    if not is_within_schedule(config, now):
        return False

    try:
        groups = trigger_groups(config)
    except ValidationError as e:
        logger.warning("Malformed trigger conditions on %s: %s", config.id, e)
        return False

    return evaluate_groups(groups, record, now)
