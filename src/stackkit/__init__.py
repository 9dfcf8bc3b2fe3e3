"""Stack engine kernel utilities."""

from .errors import (
    ComposeOptionsError,
    CompositionConflictError,
    CrossReferenceError,
    NormalizationError,
    SchemaValidationError,
    StackError,
)
from .issues import Issue, format_issues, make_issue

__all__ = [
    "ComposeOptionsError",
    "CompositionConflictError",
    "CrossReferenceError",
    "Issue",
    "NormalizationError",
    "SchemaValidationError",
    "StackError",
    "format_issues",
    "make_issue",
]
