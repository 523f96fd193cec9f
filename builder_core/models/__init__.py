"""Universal Builder data models."""

from builder_core.models.builder import (
    TRIGGER_ELEMENT_TYPE,
    BuilderConfig,
    BuilderType,
    CampaignElement,
    ElementBase,
    FormElement,
    JourneyElement,
    UniversalElement,
    WorkflowElement,
    element_variant_for,
    new_config,
)
from builder_core.models.commands import (
    AddElement,
    BuilderCommand,
    DeleteElement,
    ElementUpdate,
    Redo,
    ReorderElements,
    ReorderMove,
    SaveState,
    SelectElement,
    SetBuilderType,
    SetConfig,
    SetPreviewMode,
    Undo,
    UpdateElement,
    parse_command,
)
from builder_core.models.conditions import (
    ConditionGroup,
    ConditionResult,
    FieldType,
    GroupEvaluation,
    GroupOperator,
    TriggerCondition,
)
from builder_core.models.errors import (
    BuilderError,
    ImportFailed,
    SaveRejected,
    UnknownElementType,
)
from builder_core.models.registry import ElementTypeDescriptor
from builder_core.models.state import (
    DEFAULT_HISTORY_LIMIT,
    BuilderState,
    ReduceResult,
    StoreConfig,
)
from builder_core.models.validation import IssueSeverity, ValidationIssue

__all__ = [
    "AddElement",
    "BuilderCommand",
    "BuilderConfig",
    "BuilderError",
    "BuilderState",
    "BuilderType",
    "CampaignElement",
    "ConditionGroup",
    "ConditionResult",
    "DEFAULT_HISTORY_LIMIT",
    "DeleteElement",
    "ElementBase",
    "ElementTypeDescriptor",
    "ElementUpdate",
    "FieldType",
    "FormElement",
    "GroupEvaluation",
    "GroupOperator",
    "ImportFailed",
    "IssueSeverity",
    "JourneyElement",
    "Redo",
    "ReduceResult",
    "ReorderElements",
    "ReorderMove",
    "SaveRejected",
    "SaveState",
    "SelectElement",
    "SetBuilderType",
    "SetConfig",
    "SetPreviewMode",
    "StoreConfig",
    "TRIGGER_ELEMENT_TYPE",
    "TriggerCondition",
    "Undo",
    "UniversalElement",
    "UnknownElementType",
    "UpdateElement",
    "ValidationIssue",
    "WorkflowElement",
    "element_variant_for",
    "new_config",
    "parse_command",
]
