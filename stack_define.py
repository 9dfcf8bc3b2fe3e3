"""Stack definition pipeline: normalize, validate, cross-check."""

from __future__ import annotations

import logging

from stackkit.errors import CrossReferenceError, SchemaValidationError

import entity_schemas
from stack_collections import ValidatorRegistry
from stack_normalize import normalize_stack
from stack_refs import validate_cross_references
from stack_validate import validate_stack


logger = logging.getLogger("stackkit.define")

DEFAULT_REGISTRY = ValidatorRegistry(entity_schemas.default_validators())


def define_stack(raw: dict, strict: bool = True, registry: ValidatorRegistry | None = None) -> dict:
    """Build a canonical stack definition from author input.

    With ``strict`` (the default) the normalized stack is schema-validated and
    cross-reference checked, and the first failing stage raises its aggregate
    error. ``strict=False`` only normalizes, for stacks that knowingly refer to
    objects supplied by a sibling stack.
    """
    normalized = normalize_stack(raw)
    if not strict:
        return normalized

    validated, issues = validate_stack(normalized, registry or DEFAULT_REGISTRY)
    if issues:
        raise SchemaValidationError.from_issues(issues)

    ref_issues = validate_cross_references(validated)
    if ref_issues:
        raise CrossReferenceError.from_issues(ref_issues)

    logger.debug("stack_defined keys=%s", ",".join(validated.keys()))
    return validated
