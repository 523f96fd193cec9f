"""
Element Repository — pure operations over an ordered element collection.

Behavioral Contract:
- Inputs are never mutated; every operation returns a list.
- A rejected or no-op operation returns the input list object itself, so
  callers can test `result is elements` to learn whether anything changed.
- Element ids stay unique and `position` always equals the list index.
- When `pin_triggers` is set, trigger elements stay ahead of all others.
- Elements that an operation does not touch keep their identity.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple
from uuid import uuid4

from pydantic import ValidationError

from builder_core.models.builder import ElementBase

logger = logging.getLogger(__name__)

# Keys an update may never change.
_PROTECTED_KEYS = ("id", "position", "element_type")

COPY_SUFFIX = " (Copy)"


def generate_element_id() -> str:
    return f"element_{uuid4().hex[:12]}"


def find_element(elements: Sequence[ElementBase], element_id: str) -> Optional[ElementBase]:
    """Find an element by id."""
    return next((e for e in elements if e.id == element_id), None)


def index_of(elements: Sequence[ElementBase], element_id: str) -> int:
    for i, element in enumerate(elements):
        if element.id == element_id:
            return i
    return -1


def partition_triggers(
    elements: Sequence[ElementBase],
) -> Tuple[List[ElementBase], List[ElementBase]]:
    """Split into (triggers, non_triggers), preserving relative order."""
    triggers = [e for e in elements if e.is_trigger]
    others = [e for e in elements if not e.is_trigger]
    return triggers, others


def renumber(elements: Sequence[ElementBase]) -> List[ElementBase]:
    """Make every position equal its index. Correctly placed elements are reused."""
    result = []
    for i, element in enumerate(elements):
        if element.position != i:
            element = element.model_copy(update={"position": i})
        result.append(element)
    return result


def pin_trigger_order(elements: Sequence[ElementBase]) -> List[ElementBase]:
    """Stable-partition triggers to the head and renumber."""
    triggers, others = partition_triggers(elements)
    return renumber(triggers + others)


def merge_config(current: Dict[str, Any], updates: Dict[str, Any]) -> Dict[str, Any]:
    """
    Merge config updates one level below the top: a nested dict in `updates`
    is merged into the existing nested dict instead of replacing it.
    """
    merged = dict(current)
    for key, value in updates.items():
        existing = merged.get(key)
        if isinstance(existing, dict) and isinstance(value, dict):
            merged[key] = {**existing, **value}
        else:
            merged[key] = value
    return merged


def _normalize_keys(element: ElementBase, updates: Dict[str, Any]) -> Dict[str, Any]:
    """Map camelCase aliases onto field names."""
    fields = type(element).model_fields
    by_alias = {f.alias: name for name, f in fields.items() if f.alias}
    return {by_alias.get(k, k): v for k, v in updates.items()}


def add(
    elements: List[ElementBase],
    element: ElementBase,
    pin_triggers: bool = False,
) -> List[ElementBase]:
    """
    Append an element and assign its position.

    With trigger pinning, a trigger is inserted after the last existing
    trigger instead of at the very end.
    """
    if find_element(elements, element.id) is not None:
        logger.warning("Rejected add: element id %s already exists", element.id)
        return elements

    if pin_triggers and element.is_trigger:
        triggers, others = partition_triggers(elements)
        return renumber(triggers + [element] + others)

    return renumber(list(elements) + [element])


def update(
    elements: List[ElementBase],
    element_id: str,
    updates: Dict[str, Any],
    pin_triggers: bool = False,
) -> List[ElementBase]:
    """Shallow-merge `updates` into one element. `config` merges one level deep."""
    index = index_of(elements, element_id)
    if index < 0:
        logger.warning("Rejected update: unknown element id %s", element_id)
        return elements

    current = elements[index]
    changes = _normalize_keys(current, updates)
    for key in _PROTECTED_KEYS:
        if key in changes:
            logger.warning("Ignoring update of protected key %r on %s", key, element_id)
            changes.pop(key)

    if "config" in changes:
        if not isinstance(changes["config"], dict):
            logger.warning("Rejected update: config of %s must be a mapping", element_id)
            return elements
        changes["config"] = merge_config(current.config, changes["config"])

    try:
        replacement = type(current).model_validate({**current.model_dump(), **changes})
    except ValidationError as e:
        logger.warning("Rejected update of %s: %s", element_id, e)
        return elements

    result = list(elements)
    result[index] = replacement

    if pin_triggers and replacement.is_trigger != current.is_trigger:
        return pin_trigger_order(result)
    return result


def remove(elements: List[ElementBase], element_id: str) -> List[ElementBase]:
    """Remove an element and close the gap in positions."""
    if find_element(elements, element_id) is None:
        logger.warning("Rejected delete: unknown element id %s", element_id)
        return elements
    return renumber([e for e in elements if e.id != element_id])


def reorder_non_triggers(
    elements: List[ElementBase],
    old_index: int,
    new_index: int,
) -> List[ElementBase]:
    """
    Move one element within the non-trigger partition.

    Indices address the non-trigger sub-sequence. Triggers stay at the head.
    """
    triggers, others = partition_triggers(elements)
    if not (0 <= old_index < len(others) and 0 <= new_index < len(others)):
        logger.warning(
            "Rejected reorder: index out of range (%s -> %s, %s movable elements)",
            old_index, new_index, len(others),
        )
        return elements
    if old_index == new_index:
        return elements

    moved = others.pop(old_index)
    others.insert(new_index, moved)
    return renumber(triggers + others)


def duplicate(
    elements: List[ElementBase],
    element_id: str,
    new_id: Optional[str] = None,
    pin_triggers: bool = False,
) -> List[ElementBase]:
    """
    Append a copy of an element with a fresh id and a " (Copy)" title.

    The copy goes to the end of the list, not next to its source.
    """
    source = find_element(elements, element_id)
    if source is None:
        logger.warning("Rejected duplicate: unknown element id %s", element_id)
        return elements

    copy = source.model_copy(
        deep=True,
        update={
            "id": new_id or generate_element_id(),
            "title": f"{source.title}{COPY_SUFFIX}",
        },
    )
    return add(elements, copy, pin_triggers=pin_triggers)
