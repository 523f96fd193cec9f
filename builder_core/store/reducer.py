"""
Builder State Store — pure command reducer.

reduce(state, command) -> ReduceResult

Behavioral Contract:
- Total over the closed command set: malformed input never raises, it yields
  the unchanged state with applied=False and a warning.
- The input state is never modified.
- Only SAVE_STATE records history; UNDO/REDO move through it.
"""

import logging
from typing import Callable, Dict, Optional, Union

from pydantic import ValidationError

from builder_core.elements import repository
from builder_core.history import manager as history
from builder_core.models.builder import (
    BuilderConfig,
    BuilderType,
    element_variant_for,
    new_config,
)
from builder_core.models.commands import (
    AddElement,
    BuilderCommand,
    DeleteElement,
    ReorderElements,
    SelectElement,
    SetBuilderType,
    SetConfig,
    SetPreviewMode,
    UpdateElement,
    parse_command,
)
from builder_core.models.state import BuilderState, ReduceResult, StoreConfig

logger = logging.getLogger(__name__)


def initial_state(
    builder_type: BuilderType = BuilderType.WORKFLOW,
    config: Optional[BuilderConfig] = None,
    settings: Optional[StoreConfig] = None,
) -> BuilderState:
    """A fresh state whose history starts at the given (or an empty) config."""
    settings = settings or StoreConfig()
    if config is None:
        config = new_config(builder_type)
    elif config.type in settings.pin_triggers_for:
        config = config.model_copy(
            update={"elements": repository.pin_trigger_order(config.elements)}
        )
    else:
        config = config.model_copy(
            update={"elements": repository.renumber(config.elements)}
        )
    return BuilderState(
        config=config,
        history=[config],
        history_index=0,
        settings=settings,
    )


def _ok(state: BuilderState) -> ReduceResult:
    return ReduceResult(state=state, applied=True)


def _reject(state: BuilderState, message: str, log: bool = True) -> ReduceResult:
    if log:
        logger.warning(message)
    return ReduceResult(state=state, applied=False, warnings=[message])


def _with_elements(state: BuilderState, elements: list, **changes) -> BuilderState:
    config = state.config.model_copy(update={"elements": elements})
    return state.model_copy(update={"config": config, **changes})


def _selection_for(config: BuilderConfig, selected: Optional[str]) -> Optional[str]:
    if selected is None:
        return None
    return selected if selected in config.element_ids() else None


# --- Handlers ---

def _set_builder_type(state: BuilderState, command: SetBuilderType) -> ReduceResult:
    config = new_config(command.payload)
    return _ok(state.model_copy(update={
        "config": config,
        "selected_element_id": None,
        "history": [config],
        "history_index": 0,
    }))


def _set_config(state: BuilderState, command: SetConfig) -> ReduceResult:
    config = command.payload
    ids = config.element_ids()
    if len(ids) != len(set(ids)):
        dupes = sorted({i for i in ids if ids.count(i) > 1})
        return _reject(state, f"SET_CONFIG rejected: duplicate element ids {dupes}")

    if config.type in state.settings.pin_triggers_for:
        elements = repository.pin_trigger_order(config.elements)
    else:
        elements = repository.renumber(config.elements)
    config = config.model_copy(update={"elements": elements})

    return _ok(state.model_copy(update={
        "config": config,
        "selected_element_id": _selection_for(config, state.selected_element_id),
    }))


def _add_element(state: BuilderState, command: AddElement) -> ReduceResult:
    element = command.payload
    expected = element_variant_for(state.config.type)
    if not isinstance(element, expected):
        return _reject(
            state,
            f"ADD_ELEMENT rejected: {type(element).__name__} cannot be added "
            f"to a {state.config.type.value} builder",
        )

    elements = repository.add(
        state.config.elements, element, pin_triggers=state.pins_triggers
    )
    if elements is state.config.elements:
        return _reject(
            state, f"ADD_ELEMENT rejected: element id {element.id} already exists", log=False
        )
    return _ok(_with_elements(state, elements))


def _update_element(state: BuilderState, command: UpdateElement) -> ReduceResult:
    payload = command.payload
    elements = repository.update(
        state.config.elements,
        payload.id,
        payload.updates,
        pin_triggers=state.pins_triggers,
    )
    if elements is state.config.elements:
        return _reject(state, f"UPDATE_ELEMENT rejected for {payload.id}", log=False)
    return _ok(_with_elements(state, elements))


def _delete_element(state: BuilderState, command: DeleteElement) -> ReduceResult:
    element_id = command.payload
    elements = repository.remove(state.config.elements, element_id)
    if elements is state.config.elements:
        return _reject(
            state, f"DELETE_ELEMENT rejected: unknown element id {element_id}", log=False
        )
    selected = state.selected_element_id
    if selected == element_id:
        selected = None
    return _ok(_with_elements(state, elements, selected_element_id=selected))


def _reorder_elements(state: BuilderState, command: ReorderElements) -> ReduceResult:
    move = command.payload
    elements = repository.reorder_non_triggers(
        state.config.elements, move.old_index, move.new_index
    )
    if elements is state.config.elements:
        if move.old_index == move.new_index:
            return _ok(state)
        return _reject(
            state,
            f"REORDER_ELEMENTS rejected: {move.old_index} -> {move.new_index}",
            log=False,
        )
    return _ok(_with_elements(state, elements))


def _select_element(state: BuilderState, command: SelectElement) -> ReduceResult:
    element_id = command.payload
    if element_id is not None and element_id not in state.config.element_ids():
        return _reject(state, f"SELECT_ELEMENT rejected: unknown element id {element_id}")
    return _ok(state.model_copy(update={"selected_element_id": element_id}))


def _set_preview_mode(state: BuilderState, command: SetPreviewMode) -> ReduceResult:
    return _ok(state.model_copy(update={"is_preview_mode": command.payload}))


def _save_state(state: BuilderState, command) -> ReduceResult:
    entries, index = history.push(
        state.history,
        state.history_index,
        state.config,
        limit=state.settings.history_limit,
    )
    return _ok(state.model_copy(update={"history": entries, "history_index": index}))


def _undo(state: BuilderState, command) -> ReduceResult:
    snapshot, index = history.undo(state.history, state.history_index)
    if snapshot is None:
        return ReduceResult(state=state, applied=False)
    return _ok(state.model_copy(update={
        "config": snapshot,
        "history_index": index,
        "selected_element_id": _selection_for(snapshot, state.selected_element_id),
    }))


def _redo(state: BuilderState, command) -> ReduceResult:
    snapshot, index = history.redo(state.history, state.history_index)
    if snapshot is None:
        return ReduceResult(state=state, applied=False)
    return _ok(state.model_copy(update={
        "config": snapshot,
        "history_index": index,
        "selected_element_id": _selection_for(snapshot, state.selected_element_id),
    }))


_HANDLERS: Dict[str, Callable[[BuilderState, BuilderCommand], ReduceResult]] = {
    "SET_BUILDER_TYPE": _set_builder_type,
    "SET_CONFIG": _set_config,
    "ADD_ELEMENT": _add_element,
    "UPDATE_ELEMENT": _update_element,
    "DELETE_ELEMENT": _delete_element,
    "REORDER_ELEMENTS": _reorder_elements,
    "SELECT_ELEMENT": _select_element,
    "SET_PREVIEW_MODE": _set_preview_mode,
    "SAVE_STATE": _save_state,
    "UNDO": _undo,
    "REDO": _redo,
}


def reduce(state: BuilderState, command: Union[BuilderCommand, dict]) -> ReduceResult:
    """
    Apply one command to the state.

    Accepts a command model or its `{"type", "payload"}` mapping.
    """
    if isinstance(command, dict):
        try:
            command = parse_command(command)
        except ValidationError as e:
            return _reject(state, f"Malformed command {command.get('type')!r}: {e}")

    handler = _HANDLERS.get(getattr(command, "type", None))
    if handler is None:
        return _reject(state, f"Unknown command {command!r}")
    return handler(state, command)


def apply(state: BuilderState, command: Union[BuilderCommand, dict]) -> BuilderState:
    """Apply one command and return the resulting state."""
    return reduce(state, command).state
