"""Validation issues reported before a configuration is saved."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel


class IssueSeverity(str, Enum):
    ERROR = "error"         # Blocks save
    WARNING = "warning"     # Shown to the user, does not block


class ValidationIssue(BaseModel):
    code: str                               # Machine-readable, e.g. "name_required"
    message: str                            # Human-readable
    severity: IssueSeverity = IssueSeverity.ERROR
    element_id: Optional[str] = None
    condition_id: Optional[str] = None
