"""Engine error taxonomy."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

from .issues import Issue, format_issues


@dataclass(eq=False)
class StackError(Exception):
    report: str
    issues: List[Issue] = field(default_factory=list)

    code = "STACK_ERROR"
    label = "stack error"

    def __str__(self) -> str:
        return self.report

    @classmethod
    def from_issues(cls, issues: List[Issue], **kwargs):
        return cls(format_issues(issues, cls.label), list(issues), **kwargs)


@dataclass(eq=False)
class NormalizationError(StackError):
    field_name: str | None = None

    code = "STACK_NORMALIZATION_FAILED"
    label = "defineStack normalization failed"


@dataclass(eq=False)
class SchemaValidationError(StackError):
    code = "STACK_SCHEMA_INVALID"
    label = "defineStack validation failed"


@dataclass(eq=False)
class CrossReferenceError(StackError):
    code = "STACK_CROSS_REFERENCE_INVALID"
    label = "defineStack cross-reference validation failed"


@dataclass(eq=False)
class CompositionConflictError(StackError):
    object_name: str | None = None

    code = "STACK_COMPOSE_CONFLICT"
    label = "composeStacks conflict"


@dataclass(eq=False)
class ComposeOptionsError(StackError, ValueError):
    code = "STACK_COMPOSE_OPTIONS_INVALID"
    label = "composeStacks options invalid"
