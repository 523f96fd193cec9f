"""Builder commands, the closed set of transitions the state store accepts."""

from typing import Annotated, Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter

from builder_core.models.builder import BuilderConfig, BuilderType, UniversalElement


class SetBuilderType(BaseModel):
    type: Literal["SET_BUILDER_TYPE"] = "SET_BUILDER_TYPE"
    payload: BuilderType


class SetConfig(BaseModel):
    type: Literal["SET_CONFIG"] = "SET_CONFIG"
    payload: BuilderConfig


class AddElement(BaseModel):
    type: Literal["ADD_ELEMENT"] = "ADD_ELEMENT"
    payload: UniversalElement


class ElementUpdate(BaseModel):
    id: str
    updates: Dict[str, Any]


class UpdateElement(BaseModel):
    type: Literal["UPDATE_ELEMENT"] = "UPDATE_ELEMENT"
    payload: ElementUpdate


class DeleteElement(BaseModel):
    type: Literal["DELETE_ELEMENT"] = "DELETE_ELEMENT"
    payload: str


class ReorderMove(BaseModel):
    old_index: int = Field(alias="oldIndex")
    new_index: int = Field(alias="newIndex")

    model_config = {"populate_by_name": True}


class ReorderElements(BaseModel):
    type: Literal["REORDER_ELEMENTS"] = "REORDER_ELEMENTS"
    payload: ReorderMove


class SelectElement(BaseModel):
    type: Literal["SELECT_ELEMENT"] = "SELECT_ELEMENT"
    payload: Optional[str] = None


class SetPreviewMode(BaseModel):
    type: Literal["SET_PREVIEW_MODE"] = "SET_PREVIEW_MODE"
    payload: bool


class SaveState(BaseModel):
    type: Literal["SAVE_STATE"] = "SAVE_STATE"


class Undo(BaseModel):
    type: Literal["UNDO"] = "UNDO"


class Redo(BaseModel):
    type: Literal["REDO"] = "REDO"


BuilderCommand = Annotated[
    Union[
        SetBuilderType,
        SetConfig,
        AddElement,
        UpdateElement,
        DeleteElement,
        ReorderElements,
        SelectElement,
        SetPreviewMode,
        SaveState,
        Undo,
        Redo,
    ],
    Field(discriminator="type"),
]

command_adapter = TypeAdapter(BuilderCommand)


def parse_command(data: dict):
    """Parse a `{"type": ..., "payload": ...}` mapping into a command."""
    return command_adapter.validate_python(data)
