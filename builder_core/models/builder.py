"""Builder configuration, the document a builder session edits."""

from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from builder_core.models.conditions import ConditionGroup

TRIGGER_ELEMENT_TYPE = "trigger"


class BuilderType(str, Enum):
    FORM = "form"
    WORKFLOW = "workflow"
    CAMPAIGN = "campaign"
    JOURNEY = "journey"
    PRACTICUM = "practicum"


class ElementBase(BaseModel):
    """Envelope shared by every element variant."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    type: str                               # Key into the element type registry
    title: str
    description: str = ""
    position: int = 0                       # Always equal to the index in elements
    config: Dict[str, Any] = {}

    @property
    def is_trigger(self) -> bool:
        return self.type == TRIGGER_ELEMENT_TYPE


class FormElement(ElementBase):
    element_type: Literal["form"] = "form"
    required: bool = False
    validation: Dict[str, Any] = {}


class WorkflowElement(ElementBase):
    element_type: Literal["workflow"] = "workflow"
    condition_groups: Optional[List[ConditionGroup]] = None


class CampaignElement(ElementBase):
    element_type: Literal["campaign"] = "campaign"
    condition_groups: Optional[List[ConditionGroup]] = None
    channel: Optional[str] = None           # "email" | "sms" | ...


class JourneyElement(ElementBase):
    element_type: Literal["journey"] = "journey"
    stage: Optional[str] = None
    milestone: bool = False


UniversalElement = Annotated[
    Union[FormElement, WorkflowElement, CampaignElement, JourneyElement],
    Field(discriminator="element_type"),
]

_VARIANTS = {
    BuilderType.FORM: FormElement,
    BuilderType.WORKFLOW: WorkflowElement,
    BuilderType.CAMPAIGN: CampaignElement,
    BuilderType.JOURNEY: JourneyElement,
    BuilderType.PRACTICUM: JourneyElement,
}


def element_variant_for(builder_type: BuilderType) -> type:
    """Element class used by a builder type."""
    return _VARIANTS[BuilderType(builder_type)]


class BuilderConfig(BaseModel):
    """
    Root aggregate owned by the state store while editing.

    `settings` and `metadata` are opaque to the core (audience filters,
    schedules, active flags).
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    name: str = ""
    description: str = ""
    type: BuilderType
    elements: List[UniversalElement] = []
    settings: Dict[str, Any] = {}
    metadata: Dict[str, Any] = {}
    created_at: Optional[datetime] = None

    @model_validator(mode="before")
    @classmethod
    def _fill_element_types(cls, data: Any) -> Any:
        """Elements without an `elementType` take the one implied by the builder type."""
        if not isinstance(data, dict) or not isinstance(data.get("elements"), list):
            return data
        try:
            variant = element_variant_for(data.get("type"))
        except ValueError:
            return data
        element_type = variant.model_fields["element_type"].default
        elements = [
            {**e, "elementType": element_type}
            if isinstance(e, dict) and "elementType" not in e and "element_type" not in e
            else e
            for e in data["elements"]
        ]
        return {**data, "elements": elements}

    def element_ids(self) -> List[str]:
        return [e.id for e in self.elements]


def new_config(builder_type: BuilderType, name: str = "") -> BuilderConfig:
    """A fresh, empty configuration for a builder type."""
    return BuilderConfig(
        id=f"cfg_{uuid4().hex[:12]}",
        name=name,
        type=builder_type,
        elements=[],
        created_at=datetime.utcnow(),
    )
