"""
History Manager — bounded linear undo/redo over configuration snapshots.

The stack is a list of immutable BuilderConfig snapshots and an index that
points at the current entry:
  - push truncates everything after the index (the redo branch is dropped)
  - the stack holds at most `limit` entries; the oldest are evicted first
  - undo/redo move the index and clamp at the ends
"""

import logging
from typing import List, Optional, Tuple

from builder_core.models.builder import BuilderConfig
from builder_core.models.state import DEFAULT_HISTORY_LIMIT

logger = logging.getLogger(__name__)

History = Tuple[List[BuilderConfig], int]


def can_undo(history: List[BuilderConfig], index: int) -> bool:
    return index > 0


def can_redo(history: List[BuilderConfig], index: int) -> bool:
    return index < len(history) - 1


def push(
    history: List[BuilderConfig],
    index: int,
    snapshot: BuilderConfig,
    limit: int = DEFAULT_HISTORY_LIMIT,
) -> History:
    """
    Record a snapshot after the current entry.

    A snapshot equal to the current entry is not recorded twice, but the
    redo branch after it is still dropped.
    """
    if history and 0 <= index < len(history) and history[index] == snapshot:
        if index < len(history) - 1:
            return history[: index + 1], index
        return history, index

    kept = history[: index + 1] if history else []
    kept = kept + [snapshot]

    overflow = len(kept) - limit
    if overflow > 0:
        logger.debug("History limit %s reached, evicting %s snapshot(s)", limit, overflow)
        kept = kept[overflow:]

    return kept, len(kept) - 1


def undo(history: List[BuilderConfig], index: int) -> Tuple[Optional[BuilderConfig], int]:
    """Step back one snapshot. Returns (snapshot, index), snapshot None at the start."""
    if not can_undo(history, index):
        logger.debug("Undo ignored at history index %s", index)
        return None, index
    index -= 1
    return history[index], index


def redo(history: List[BuilderConfig], index: int) -> Tuple[Optional[BuilderConfig], int]:
    """Step forward one snapshot. Returns (snapshot, index), snapshot None at the end."""
    if not can_redo(history, index):
        logger.debug("Redo ignored at history index %s of %s", index, len(history))
        return None, index
    index += 1
    return history[index], index
