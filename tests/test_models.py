"""Tests for core data models."""

import pytest
from pydantic import ValidationError

from builder_core.models import (
    AddElement,
    BuilderConfig,
    BuilderType,
    CampaignElement,
    ConditionGroup,
    FieldType,
    FormElement,
    GroupOperator,
    JourneyElement,
    ReorderElements,
    StoreConfig,
    TriggerCondition,
    WorkflowElement,
    element_variant_for,
    new_config,
    parse_command,
)


class TestBuilderConfig:
    def test_new_config_is_empty(self):
        config = new_config(BuilderType.CAMPAIGN, name="Fall Intake")
        assert config.id.startswith("cfg_")
        assert config.name == "Fall Intake"
        assert config.type == BuilderType.CAMPAIGN
        assert config.elements == []
        assert config.settings == {}

    def test_new_configs_get_distinct_ids(self):
        assert new_config(BuilderType.FORM).id != new_config(BuilderType.FORM).id

    def test_parse_camel_case_document(self):
        config = BuilderConfig.model_validate({
            "id": "cfg_1",
            "name": "Nurture",
            "type": "workflow",
            "elements": [
                {
                    "id": "t1",
                    "type": "trigger",
                    "title": "Trigger",
                    "position": 0,
                    "elementType": "workflow",
                    "conditionGroups": [{
                        "id": "main",
                        "operator": "OR",
                        "conditions": [{
                            "id": "c1",
                            "field": "source",
                            "fieldType": "select",
                            "operator": "is",
                            "value": "Web",
                        }],
                    }],
                },
            ],
        })
        element = config.elements[0]
        assert isinstance(element, WorkflowElement)
        assert element.is_trigger
        group = element.condition_groups[0]
        assert group.operator == GroupOperator.OR
        assert group.conditions[0].field_type == FieldType.SELECT

    def test_export_uses_camel_case(self):
        config = new_config(BuilderType.WORKFLOW)
        config = config.model_copy(update={"elements": [
            WorkflowElement(id="t1", type="trigger", title="Trigger", condition_groups=[]),
        ]})
        data = config.model_dump(mode="json", by_alias=True)
        assert "conditionGroups" in data["elements"][0]
        assert data["elements"][0]["elementType"] == "workflow"

    @pytest.mark.parametrize("builder_type, variant", [
        ("form", FormElement),
        ("campaign", CampaignElement),
        ("practicum", JourneyElement),
    ])
    def test_missing_element_type_follows_builder_type(self, builder_type, variant):
        config = BuilderConfig.model_validate({
            "id": "cfg_1",
            "type": builder_type,
            "elements": [{"id": "e1", "type": "text", "title": "x"}],
        })
        assert isinstance(config.elements[0], variant)

    def test_missing_element_type_with_unknown_builder_type(self):
        with pytest.raises(ValidationError):
            BuilderConfig.model_validate({
                "id": "cfg_1",
                "type": "rocket",
                "elements": [{"id": "e1", "type": "text", "title": "x"}],
            })

    def test_unknown_variant_rejected(self):
        with pytest.raises(ValidationError):
            BuilderConfig.model_validate({
                "id": "cfg_1",
                "type": "form",
                "elements": [{"id": "e1", "type": "text", "title": "x", "elementType": "spaceship"}],
            })


class TestElementVariants:
    def test_variant_per_builder_type(self):
        assert element_variant_for(BuilderType.FORM) is FormElement
        assert element_variant_for(BuilderType.WORKFLOW) is WorkflowElement
        assert element_variant_for(BuilderType.CAMPAIGN) is CampaignElement
        assert element_variant_for(BuilderType.JOURNEY) is JourneyElement
        assert element_variant_for(BuilderType.PRACTICUM) is JourneyElement

    def test_form_element_defaults(self):
        element = FormElement(id="f1", type="email", title="Email")
        assert element.required is False
        assert element.position == 0
        assert not element.is_trigger


class TestConditions:
    def test_nested_groups_allowed(self):
        group = ConditionGroup(
            id="outer",
            operator=GroupOperator.AND,
            groups=[ConditionGroup(id="inner", operator=GroupOperator.OR)],
        )
        assert group.groups[0].id == "inner"

    def test_field_type_validated(self):
        with pytest.raises(ValidationError):
            TriggerCondition(id="c1", field="x", field_type="colour", operator="is")


class TestCommands:
    def test_parse_add_element(self):
        command = parse_command({
            "type": "ADD_ELEMENT",
            "payload": {"id": "e1", "type": "wait", "title": "Wait", "elementType": "workflow"},
        })
        assert isinstance(command, AddElement)
        assert isinstance(command.payload, WorkflowElement)

    def test_parse_reorder_with_camel_case(self):
        command = parse_command({
            "type": "REORDER_ELEMENTS",
            "payload": {"oldIndex": 0, "newIndex": 2},
        })
        assert isinstance(command, ReorderElements)
        assert command.payload.old_index == 0
        assert command.payload.new_index == 2

    def test_unknown_command_rejected(self):
        with pytest.raises(ValidationError):
            parse_command({"type": "EXPLODE"})


class TestStoreConfig:
    def test_defaults(self):
        config = StoreConfig()
        assert config.history_limit == 50
        assert BuilderType.WORKFLOW in config.pin_triggers_for
        assert BuilderType.FORM not in config.pin_triggers_for

    def test_history_limit_bounds(self):
        with pytest.raises(ValidationError):
            StoreConfig(history_limit=0)
