"""Workflow templates: prebuilt admissions workflows a new workflow can start from."""

import copy
from typing import Any, Dict, List, Optional

from pydantic import BaseModel

from builder_core.elements.repository import generate_element_id
from builder_core.models.builder import (
    TRIGGER_ELEMENT_TYPE,
    BuilderConfig,
    BuilderType,
    WorkflowElement,
)
from builder_core.models.conditions import ConditionGroup, GroupOperator, TriggerCondition


class TemplateStep(BaseModel):
    type: str
    title: str
    description: str = ""
    config: Dict[str, Any] = {}


class WorkflowTemplate(BaseModel):
    id: str
    name: str
    description: str
    category: str = "general"
    trigger_type: str                       # "event" | "schedule" | "form_submission" | ...
    trigger_conditions: List[TriggerCondition] = []
    steps: List[TemplateStep] = []


def build_elements(template: WorkflowTemplate) -> List[WorkflowElement]:
    """A trigger element followed by one element per template step."""
    trigger = WorkflowElement(
        id=generate_element_id(),
        type=TRIGGER_ELEMENT_TYPE,
        title="Trigger",
        description=f"When: {template.trigger_type}",
        position=0,
        config={"triggerType": template.trigger_type},
        condition_groups=[ConditionGroup(
            id="main",
            operator=GroupOperator.AND,
            conditions=[c.model_copy(deep=True) for c in template.trigger_conditions],
        )],
    )
    steps = [
        WorkflowElement(
            id=generate_element_id(),
            type=step.type,
            title=step.title,
            description=step.description,
            position=index + 1,
            config=copy.deepcopy(step.config),
            condition_groups=[] if step.type == "condition" else None,
        )
        for index, step in enumerate(template.steps)
    ]
    return [trigger] + steps


def apply_template(config: BuilderConfig, template: WorkflowTemplate) -> BuilderConfig:
    """Replace a workflow's elements, name and description with a template's."""
    return config.model_copy(update={
        "name": template.name,
        "description": template.description,
        "elements": build_elements(template),
        "metadata": {**config.metadata, "templateId": template.id},
    })


def _cond(id: str, field: str, field_type: str, operator: str, value: Any = None) -> TriggerCondition:
    return TriggerCondition(
        id=id, field=field, field_type=field_type, operator=operator, value=value
    )


BUILTIN_TEMPLATES: List[WorkflowTemplate] = [
    WorkflowTemplate(
        id="new_lead_nurture",
        name="New Lead Nurture",
        description="Welcome new web leads and hand warm ones to an advisor",
        category="lead_nurturing",
        trigger_type="event",
        trigger_conditions=[
            _cond("c1", "source", "select", "is_one_of", ["Web", "Forms"]),
            _cond("c2", "email", "text", "is_known"),
        ],
        steps=[
            TemplateStep(type="send_email", title="Welcome Email",
                         config={"template": "welcome", "delay": {"value": 0, "unit": "minutes"}}),
            TemplateStep(type="wait", title="Wait 2 Days",
                         config={"delay": {"value": 2, "unit": "days"}}),
            TemplateStep(type="send_email", title="Program Information",
                         config={"template": "program_info", "delay": {"value": 0, "unit": "minutes"}}),
            TemplateStep(type="assign_advisor", title="Assign Advisor",
                         config={"method": "round_robin", "advisorId": None}),
        ],
    ),
    WorkflowTemplate(
        id="hot_lead_follow_up",
        name="Hot Lead Follow-up",
        description="Fast follow-up for high scoring leads",
        category="sales",
        trigger_type="event",
        trigger_conditions=[
            _cond("c1", "lead_score", "numeric", "greater_than", 70),
        ],
        steps=[
            TemplateStep(type="create_task", title="Discovery Call",
                         config={"title": "Call lead", "dueIn": {"value": 2, "unit": "hours"}}),
            TemplateStep(type="send_sms", title="Application Reminder",
                         config={"message": "", "delay": {"value": 3, "unit": "days"}}),
        ],
    ),
    WorkflowTemplate(
        id="stale_lead_reengagement",
        name="Stale Lead Re-engagement",
        description="Reach out to leads nobody has contacted in a month",
        category="re_engagement",
        trigger_type="schedule",
        trigger_conditions=[
            _cond("c1", "last_contacted_at", "date", "is_older_than", [30, "days"]),
            _cond("c2", "status", "select", "is_not_one_of", ["Converted", "Lost"]),
        ],
        steps=[
            TemplateStep(type="send_email", title="We Miss You",
                         config={"template": "reengagement", "delay": {"value": 0, "unit": "minutes"}}),
            TemplateStep(type="add_tag", title="Tag Re-engaged", config={"tags": ["re-engaged"]}),
        ],
    ),
]


def get_template(template_id: str) -> Optional[WorkflowTemplate]:
    return next((t for t in BUILTIN_TEMPLATES if t.id == template_id), None)


def is_template_compatible(config: BuilderConfig) -> bool:
    return config.type == BuilderType.WORKFLOW
