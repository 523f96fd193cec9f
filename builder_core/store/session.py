"""
Builder Session — the stateful wrapper an editor talks to.

Holds the current BuilderState, dispatches commands through the pure
reducer, and owns the outward boundaries: element creation from the
registry, validation before save, the caller's save callback, and JSON
import/export.

Discrete user actions (add, delete, duplicate, reorder, template, save) are
checkpointed with SAVE_STATE; raw `dispatch` and `update_element(...,
checkpoint=False)` leave grouping to the caller.
"""

import inspect
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

from pydantic import ValidationError

from builder_core.elements import repository
from builder_core.models.builder import BuilderConfig, BuilderType, ElementBase
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
)
from builder_core.models.errors import BuilderError, ImportFailed, SaveRejected
from builder_core.models.state import BuilderState, ReduceResult, StoreConfig
from builder_core.models.validation import IssueSeverity, ValidationIssue
from builder_core.registry.catalog import ElementTypeRegistry, default_registry
from builder_core.store.reducer import initial_state, reduce
from builder_core.templates.workflow import WorkflowTemplate, apply_template, is_template_compatible
from builder_core.validation.rules import has_errors, validate

logger = logging.getLogger(__name__)

SaveCallback = Callable[[BuilderConfig], Union[None, Awaitable[None]]]


class BuilderSession:
    """One editing session over one configuration."""

    def __init__(
        self,
        builder_type: BuilderType = BuilderType.WORKFLOW,
        config: Optional[BuilderConfig] = None,
        settings: Optional[StoreConfig] = None,
        registry: Optional[ElementTypeRegistry] = None,
    ):
        self.settings = settings or StoreConfig()
        self.registry = registry or default_registry
        self._state = initial_state(builder_type, config, self.settings)

    @property
    def state(self) -> BuilderState:
        return self._state

    @property
    def config(self) -> BuilderConfig:
        return self._state.config

    def dispatch(self, command: Union[BuilderCommand, dict]) -> ReduceResult:
        """Apply a command and keep the resulting state."""
        result = reduce(self._state, command)
        self._state = result.state
        return result

    def checkpoint(self) -> ReduceResult:
        return self.dispatch(SaveState())

    # --- Document lifecycle ---

    def load(self, config: BuilderConfig) -> None:
        """Start a fresh history at a loaded configuration."""
        self._state = initial_state(config.type, config, self.settings)

    def set_builder_type(self, builder_type: BuilderType) -> ReduceResult:
        return self.dispatch(SetBuilderType(payload=builder_type))

    def rename(self, name: str, description: Optional[str] = None) -> ReduceResult:
        changes: Dict[str, Any] = {"name": name}
        if description is not None:
            changes["description"] = description
        return self.dispatch(SetConfig(payload=self.config.model_copy(update=changes)))

    def update_settings(self, updates: Dict[str, Any]) -> ReduceResult:
        settings = {**self.config.settings, **updates}
        return self.dispatch(SetConfig(payload=self.config.model_copy(update={"settings": settings})))

    # --- Element editing ---

    def add_element(self, element_type: str) -> ElementBase:
        """
        Create an element from the registry's default config, append it,
        select it and checkpoint.

        Raises UnknownElementType if the builder has no such element type.
        """
        element = self.registry.create_element(
            self.config.type, element_type, position=len(self.config.elements)
        )
        result = self.dispatch(AddElement(payload=element))
        if not result.applied:
            raise BuilderError("; ".join(result.warnings))
        self.dispatch(SelectElement(payload=element.id))
        self.checkpoint()
        return repository.find_element(self.config.elements, element.id)

    def update_element(
        self, element_id: str, updates: Dict[str, Any], checkpoint: bool = True
    ) -> ReduceResult:
        result = self.dispatch(
            UpdateElement(payload=ElementUpdate(id=element_id, updates=updates))
        )
        if result.applied and checkpoint:
            self.checkpoint()
        return result

    def delete_element(self, element_id: str) -> ReduceResult:
        result = self.dispatch(DeleteElement(payload=element_id))
        if result.applied:
            self.checkpoint()
        return result

    def duplicate_element(self, element_id: str) -> Optional[ElementBase]:
        """Copy an element to the end of the list. None if it does not exist."""
        before = self.config.elements
        elements = repository.duplicate(
            before, element_id, pin_triggers=self._state.pins_triggers
        )
        if elements is before:
            return None
        existing = set(self.config.element_ids())
        copy = next(e for e in elements if e.id not in existing)
        self.dispatch(SetConfig(payload=self.config.model_copy(update={"elements": elements})))
        self.checkpoint()
        return repository.find_element(self.config.elements, copy.id)

    def reorder(self, old_index: int, new_index: int) -> ReduceResult:
        result = self.dispatch(
            ReorderElements(payload=ReorderMove(old_index=old_index, new_index=new_index))
        )
        if result.applied:
            self.checkpoint()
        return result

    def select(self, element_id: Optional[str]) -> ReduceResult:
        return self.dispatch(SelectElement(payload=element_id))

    def set_preview_mode(self, enabled: bool) -> ReduceResult:
        return self.dispatch(SetPreviewMode(payload=enabled))

    def toggle_preview(self) -> ReduceResult:
        return self.set_preview_mode(not self._state.is_preview_mode)

    def undo(self) -> ReduceResult:
        return self.dispatch(Undo())

    def redo(self) -> ReduceResult:
        return self.dispatch(Redo())

    def apply_template(self, template: WorkflowTemplate) -> ReduceResult:
        if not is_template_compatible(self.config):
            raise BuilderError(
                f"Templates apply to workflows, not {self.config.type.value} builders"
            )
        result = self.dispatch(SetConfig(payload=apply_template(self.config, template)))
        if result.applied:
            self.checkpoint()
        return result

    # --- Persistence boundary ---

    def validate(self) -> List[ValidationIssue]:
        return validate(self.config)

    def _prepare_save(self) -> BuilderConfig:
        issues = self.validate()
        if has_errors(issues):
            logger.warning("Save of %s rejected: %s", self.config.id, [i.code for i in issues])
            raise SaveRejected([i for i in issues if i.severity == IssueSeverity.ERROR])
        return self.config

    def save(self, callback: Callable[[BuilderConfig], None]) -> BuilderConfig:
        """
        Hand the validated configuration to the caller's save callback and
        checkpoint. Raises SaveRejected when validation finds errors.
        """
        config = self._prepare_save()
        outcome = callback(config)
        if inspect.isawaitable(outcome):
            if inspect.iscoroutine(outcome):
                outcome.close()
            raise BuilderError("Async save callbacks must go through save_async()")
        self.checkpoint()
        return config

    async def save_async(self, callback: SaveCallback) -> BuilderConfig:
        config = self._prepare_save()
        outcome = callback(config)
        if inspect.isawaitable(outcome):
            await outcome
        self.checkpoint()
        return config

    def export_json(self, indent: Optional[int] = 2) -> str:
        return self.config.model_dump_json(by_alias=True, indent=indent)

    def import_json(self, document: Union[str, bytes]) -> BuilderConfig:
        """
        Replace the current configuration with an exported document.

        Raises ImportFailed if the document is not a valid configuration.
        """
        try:
            config = BuilderConfig.model_validate_json(document)
        except ValidationError as e:
            raise ImportFailed(f"Invalid configuration document: {e.error_count()} error(s)") from e
        return self._replace_config(config)

    def import_document(self, document: Dict[str, Any]) -> BuilderConfig:
        """Same as import_json, for an already-parsed document."""
        try:
            config = BuilderConfig.model_validate(document)
        except ValidationError as e:
            raise ImportFailed(f"Invalid configuration document: {e.error_count()} error(s)") from e
        return self._replace_config(config)

    def _replace_config(self, config: BuilderConfig) -> BuilderConfig:
        result = self.dispatch(SetConfig(payload=config))
        if not result.applied:
            raise ImportFailed("; ".join(result.warnings))
        self.checkpoint()
        return self.config
