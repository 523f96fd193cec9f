"""Element Type Registry entries."""

from typing import Any, Dict, List

from pydantic import BaseModel


class ElementTypeDescriptor(BaseModel):
    """
    Catalog entry for an element type.

    The core only reads `type` and `default_config`; `config_schema` drives
    the property editor.
    """

    type: str                               # e.g., "send_email", "wait"
    label: str
    category: str                           # "triggers" | "actions" | "fields" | ...
    icon: str = ""
    default_config: Dict[str, Any] = {}
    config_schema: List[Dict[str, Any]] = []
