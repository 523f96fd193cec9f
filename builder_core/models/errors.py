"""Errors raised at the session boundary. The reducer itself never raises."""

from typing import List, Optional

from builder_core.models.validation import ValidationIssue


class BuilderError(Exception):
    """Base class for builder errors."""


class SaveRejected(BuilderError):
    """Raised when a configuration fails validation before save."""

    def __init__(self, issues: List[ValidationIssue]):
        self.issues = issues
        codes = ", ".join(i.code for i in issues)
        super().__init__(f"Configuration cannot be saved: {codes}")


class ImportFailed(BuilderError):
    """Raised when an imported document is not a valid configuration."""


class UnknownElementType(BuilderError):
    """Raised when the registry has no descriptor for an element type."""

    def __init__(self, builder_type: str, element_type: str, detail: Optional[str] = None):
        self.builder_type = builder_type
        self.element_type = element_type
        super().__init__(
            detail or f"No element type '{element_type}' for {builder_type} builder"
        )
