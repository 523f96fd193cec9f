"""Tests for trigger activation."""

from datetime import datetime, timedelta, timezone

from builder_core.models.builder import BuilderType, WorkflowElement, new_config
from builder_core.models.conditions import ConditionGroup, TriggerCondition
from builder_core.scheduling.activation import (
    is_active,
    is_within_schedule,
    trigger_fires,
    trigger_groups,
)

# A Wednesday
WEDNESDAY_10AM = datetime(2025, 3, 12, 10, 0, tzinfo=timezone.utc)
SATURDAY_10AM = datetime(2025, 3, 15, 10, 0, tzinfo=timezone.utc)

_HOT_LEAD = TriggerCondition(
    id="c1", field="lead_score", field_type="numeric", operator="greater_than", value=70,
)


def _make_workflow(settings: dict, *conditions):
    trigger = WorkflowElement(
        id="t1",
        type="trigger",
        title="Trigger",
        condition_groups=[ConditionGroup(conditions=list(conditions))],
    )
    return new_config(BuilderType.WORKFLOW, name="Hot leads").model_copy(update={
        "elements": [trigger],
        "settings": settings,
    })


class TestIsActive:
    def test_workflow_needs_is_active(self):
        assert not is_active(_make_workflow({}))
        assert is_active(_make_workflow({"isActive": True}))

    def test_campaign_auto_activate(self):
        campaign = new_config(BuilderType.CAMPAIGN).model_copy(update={"settings": {"autoActivate": True}})
        assert is_active(campaign)
        workflow = new_config(BuilderType.WORKFLOW).model_copy(update={"settings": {"autoActivate": True}})
        assert not is_active(workflow)


class TestSchedule:
    def test_no_schedule_always_matches(self):
        assert is_within_schedule(_make_workflow({}), SATURDAY_10AM)

    def test_weekday_schedule(self):
        config = _make_workflow({"schedule": "* 9-17 * * 1-5"})
        assert is_within_schedule(config, WEDNESDAY_10AM)
        assert not is_within_schedule(config, SATURDAY_10AM)

    def test_schedule_matched_in_utc(self):
        config = _make_workflow({"schedule": "* 14-16 * * *"})
        eastern = timezone(timedelta(hours=-5))
        assert is_within_schedule(config, datetime(2025, 3, 12, 10, 0, tzinfo=eastern))
        assert not is_within_schedule(config, datetime(2025, 3, 12, 15, 0, tzinfo=eastern))

    def test_invalid_schedule_never_matches(self):
        assert not is_within_schedule(_make_workflow({"schedule": "whenever"}), WEDNESDAY_10AM)


class TestTriggerFires:
    def test_fires_for_matching_record(self):
        config = _make_workflow({"isActive": True}, _HOT_LEAD)
        assert trigger_fires(config, {"lead_score": 85}, WEDNESDAY_10AM)
        assert not trigger_fires(config, {"lead_score": 40}, WEDNESDAY_10AM)

    def test_inactive_never_fires(self):
        config = _make_workflow({"isActive": False}, _HOT_LEAD)
        assert not trigger_fires(config, {"lead_score": 85}, WEDNESDAY_10AM)

    def test_outside_schedule_never_fires(self):
        config = _make_workflow({"isActive": True, "schedule": "* 9-17 * * 1-5"}, _HOT_LEAD)
        assert trigger_fires(config, {"lead_score": 85}, WEDNESDAY_10AM)
        assert not trigger_fires(config, {"lead_score": 85}, SATURDAY_10AM)

    def test_trigger_without_conditions_never_fires(self):
        config = _make_workflow({"isActive": True})
        assert not trigger_fires(config, {"lead_score": 85}, WEDNESDAY_10AM)

    def test_every_trigger_must_match(self):
        config = _make_workflow({"isActive": True}, _HOT_LEAD)
        second = WorkflowElement(
            id="t2", type="trigger", title="Web only",
            condition_groups=[ConditionGroup(conditions=[TriggerCondition(
                id="c2", field="source", field_type="select", operator="is", value="Web",
            )])],
        )
        config = config.model_copy(update={"elements": config.elements + [second]})
        assert len(trigger_groups(config)) == 2
        assert trigger_fires(config, {"lead_score": 85, "source": "Web"}, WEDNESDAY_10AM)
        assert not trigger_fires(config, {"lead_score": 85, "source": "Ads"}, WEDNESDAY_10AM)

    def test_malformed_conditions_never_fire(self):
        trigger = WorkflowElement(id="t1", type="trigger", title="Trigger",
                                  config={"conditionGroups": [{"operator": "XOR"}]})
        config = new_config(BuilderType.WORKFLOW).model_copy(update={
            "elements": [trigger], "settings": {"isActive": True},
        })
        assert not trigger_fires(config, {"lead_score": 85}, WEDNESDAY_10AM)
