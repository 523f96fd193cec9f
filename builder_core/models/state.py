"""Builder state and store configuration."""

from typing import List, Optional

from pydantic import BaseModel, Field

from builder_core.models.builder import BuilderConfig, BuilderType

# Number of snapshots kept for undo/redo. Oldest entries are evicted first.
DEFAULT_HISTORY_LIMIT = 50


class StoreConfig(BaseModel):
    """Configuration for the builder state store."""

    history_limit: int = Field(ge=1, default=DEFAULT_HISTORY_LIMIT)
    pin_triggers_for: List[BuilderType] = [
        BuilderType.WORKFLOW,
        BuilderType.CAMPAIGN,
    ]


class BuilderState(BaseModel):
    """Single source of truth for one editing session."""

    config: BuilderConfig
    selected_element_id: Optional[str] = None
    is_preview_mode: bool = False
    history: List[BuilderConfig] = []
    history_index: int = 0
    settings: StoreConfig = StoreConfig()

    @property
    def can_undo(self) -> bool:
        return self.history_index > 0

    @property
    def can_redo(self) -> bool:
        return self.history_index < len(self.history) - 1

    @property
    def pins_triggers(self) -> bool:
        return self.config.type in self.settings.pin_triggers_for


class ReduceResult(BaseModel):
    """Outcome of applying one command."""

    state: BuilderState
    applied: bool = True
    warnings: List[str] = []
