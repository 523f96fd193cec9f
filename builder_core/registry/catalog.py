"""
Element Type Registry — the catalog of element types each builder offers.

The core reads only `type` and `default_config` when it creates elements;
labels, icons and config schemas are for the editing surfaces.
"""

import copy
from typing import Dict, List, Optional

from builder_core.elements.repository import generate_element_id
from builder_core.models.builder import (
    TRIGGER_ELEMENT_TYPE,
    BuilderType,
    ElementBase,
    element_variant_for,
)
from builder_core.models.errors import UnknownElementType
from builder_core.models.registry import ElementTypeDescriptor

# Element types that carry condition groups from the moment they are created.
CONDITIONAL_TYPES = (TRIGGER_ELEMENT_TYPE, "condition", "split")


def _d(type: str, label: str, category: str, icon: str = "",
       default_config: Optional[dict] = None,
       config_schema: Optional[List[dict]] = None) -> ElementTypeDescriptor:
    return ElementTypeDescriptor(
        type=type,
        label=label,
        category=category,
        icon=icon,
        default_config=default_config or {},
        config_schema=config_schema or [],
    )


def _delay_schema() -> List[dict]:
    return [
        {"key": "delay.value", "label": "Delay", "type": "number"},
        {"key": "delay.unit", "label": "Unit", "type": "select",
         "options": ["minutes", "hours", "days", "weeks"]},
    ]


def _form_types() -> List[ElementTypeDescriptor]:
    field_schema = [
        {"key": "label", "label": "Label", "type": "text"},
        {"key": "placeholder", "label": "Placeholder", "type": "text"},
    ]
    return [
        _d("text", "Text Input", "fields", "Type", {"placeholder": ""}, field_schema),
        _d("email", "Email", "fields", "Mail", {"placeholder": "name@example.com"}, field_schema),
        _d("phone", "Phone", "fields", "Phone", {"placeholder": ""}, field_schema),
        _d("number", "Number", "fields", "Hash", {"min": None, "max": None}),
        _d("textarea", "Paragraph", "fields", "AlignLeft", {"rows": 4}, field_schema),
        _d("select", "Dropdown", "choices", "ChevronDown", {"options": []}),
        _d("checkbox", "Checkboxes", "choices", "CheckSquare", {"options": []}),
        _d("radio", "Multiple Choice", "choices", "Circle", {"options": []}),
        _d("date", "Date", "fields", "Calendar", {}),
        _d("file", "File Upload", "fields", "Upload", {"maxSizeMb": 10, "accept": []}),
        _d("program_select", "Program Selection", "academic", "GraduationCap", {"programs": []}),
        _d("section", "Section Break", "layout", "Minus", {}),
    ]


def _workflow_types() -> List[ElementTypeDescriptor]:
    return [
        _d(TRIGGER_ELEMENT_TYPE, "Trigger", "triggers", "Zap",
           {"triggerType": "event"}),
        _d("send_email", "Send Email", "communication", "Mail",
           {"template": "", "subject": "", "delay": {"value": 0, "unit": "minutes"}},
           [{"key": "template", "label": "Template", "type": "select"}] + _delay_schema()),
        _d("send_sms", "Send SMS", "communication", "MessageSquare",
           {"message": "", "delay": {"value": 0, "unit": "minutes"}}, _delay_schema()),
        _d("wait", "Wait", "timing", "Clock",
           {"delay": {"value": 1, "unit": "days"}}, _delay_schema()),
        _d("condition", "If/Then Branch", "logic", "GitBranch", {}),
        _d("assign_advisor", "Assign Advisor", "actions", "UserPlus",
           {"method": "round_robin", "advisorId": None}),
        _d("update_lead", "Update Lead", "actions", "Edit",
           {"field": "", "value": ""}),
        _d("add_tag", "Add Tag", "actions", "Tag", {"tags": []}),
        _d("create_task", "Create Task", "actions", "CheckSquare",
           {"title": "", "dueIn": {"value": 1, "unit": "days"}}),
        _d("webhook", "Webhook", "integrations", "Globe",
           {"url": "", "method": "POST"}),
    ]


def _campaign_types() -> List[ElementTypeDescriptor]:
    return [
        _d(TRIGGER_ELEMENT_TYPE, "Audience Trigger", "triggers", "Users",
           {"triggerType": "audience"}),
        _d("email", "Email", "communication", "Mail",
           {"template": "", "subject": "", "delay": {"value": 0, "unit": "days"}},
           _delay_schema()),
        _d("sms", "SMS", "communication", "MessageSquare",
           {"message": "", "delay": {"value": 0, "unit": "days"}}, _delay_schema()),
        _d("wait", "Wait", "timing", "Clock",
           {"delay": {"value": 1, "unit": "days"}}, _delay_schema()),
        _d("split", "A/B Split", "logic", "Split", {"ratio": 50}),
    ]


def _journey_types() -> List[ElementTypeDescriptor]:
    return [
        _d("stage", "Stage", "stages", "Flag", {"stageName": ""}),
        _d("task", "Task", "actions", "CheckSquare",
           {"assignee": None, "dueIn": {"value": 3, "unit": "days"}}),
        _d("email", "Email", "communication", "Mail",
           {"template": "", "delay": {"value": 0, "unit": "days"}}, _delay_schema()),
        _d("document_request", "Document Request", "requirements", "FileText",
           {"documents": []}),
        _d("interview", "Interview", "actions", "Video", {"durationMinutes": 30}),
        _d("milestone", "Milestone", "stages", "Award", {}),
    ]


def _practicum_types() -> List[ElementTypeDescriptor]:
    return [
        _d("placement", "Site Placement", "placement", "MapPin", {"siteId": None}),
        _d("requirement", "Requirement", "requirements", "ClipboardCheck",
           {"documents": [], "mandatory": True}),
        _d("hours_log", "Hours Log", "tracking", "Clock", {"requiredHours": 0}),
        _d("evaluation", "Evaluation", "assessment", "Star",
           {"evaluator": "preceptor"}),
        _d("milestone", "Milestone", "stages", "Award", {}),
    ]


class ElementTypeRegistry:
    """
    Read-only lookup of element types per builder type, with a default
    catalog and `register()` for custom types.
    """

    def __init__(self):
        self._types: Dict[BuilderType, Dict[str, ElementTypeDescriptor]] = {}
        self._register_default_types()

    def _register_default_types(self) -> None:
        defaults = {
            BuilderType.FORM: _form_types(),
            BuilderType.WORKFLOW: _workflow_types(),
            BuilderType.CAMPAIGN: _campaign_types(),
            BuilderType.JOURNEY: _journey_types(),
            BuilderType.PRACTICUM: _practicum_types(),
        }
        for builder_type, descriptors in defaults.items():
            for descriptor in descriptors:
                self.register(builder_type, descriptor)

    def register(self, builder_type: BuilderType, descriptor: ElementTypeDescriptor) -> None:
        """Register (or replace) an element type for a builder."""
        self._types.setdefault(BuilderType(builder_type), {})[descriptor.type] = descriptor

    def get_element_types_for_builder(
        self, builder_type: BuilderType
    ) -> List[ElementTypeDescriptor]:
        return list(self._types.get(BuilderType(builder_type), {}).values())

    def get(self, builder_type: BuilderType, element_type: str) -> Optional[ElementTypeDescriptor]:
        return self._types.get(BuilderType(builder_type), {}).get(element_type)

    def create_element(
        self,
        builder_type: BuilderType,
        element_type: str,
        position: int = 0,
        element_id: Optional[str] = None,
    ) -> ElementBase:
        """
        Build a new element from the registered default config.

        Raises UnknownElementType if the builder has no such type.
        """
        descriptor = self.get(builder_type, element_type)
        if descriptor is None:
            raise UnknownElementType(BuilderType(builder_type).value, element_type)

        variant = element_variant_for(builder_type)
        fields = {
            "id": element_id or generate_element_id(),
            "type": descriptor.type,
            "title": descriptor.label,
            "description": "",
            "position": position,
            "config": copy.deepcopy(descriptor.default_config),
        }
        if "condition_groups" in variant.model_fields and element_type in CONDITIONAL_TYPES:
            fields["condition_groups"] = []
        return variant(**fields)


default_registry = ElementTypeRegistry()


def get_element_types_for_builder(builder_type: BuilderType) -> List[ElementTypeDescriptor]:
    """Element types of the default catalog."""
    return default_registry.get_element_types_for_builder(builder_type)
