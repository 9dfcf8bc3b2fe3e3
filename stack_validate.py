"""Registry-driven validation of normalized stack definitions."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Tuple

from stackkit.issues import Issue, make_issue, prefix_issues
from stackkit.suggest import closest_option, with_hints

from stack_collections import STACK_KEYS, ValidatorRegistry


logger = logging.getLogger("stackkit.validate")


def _run(validator, entity: Any, prefix: str) -> Tuple[bool, Any, List[Issue]]:
    result = validator(entity)
    if result.get("ok"):
        return True, result.get("value"), []
    issues = result.get("issues") or [make_issue("ENTITY_INVALID", "entry is invalid", None)]
    return False, None, prefix_issues(issues, prefix)


def _duplicate_names(field: str, key_field: str, items: list) -> List[Issue]:
    issues = []
    seen: Dict[str, int] = {}
    for idx, item in enumerate(items):
        if not isinstance(item, dict):
            continue
        name = item.get(key_field)
        if not isinstance(name, str):
            continue
        if name in seen:
            issues.append(
                make_issue(
                    "DUPLICATE_NAME",
                    f"{key_field} '{name}' is already used by {field}[{seen[name]}]",
                    f"{field}[{idx}].{key_field}",
                    {"name": name, "first_index": seen[name]},
                )
            )
        else:
            seen[name] = idx
    return issues


def validate_stack(stack: dict, registry: ValidatorRegistry) -> Tuple[dict, List[Issue]]:
    """Validate every record and collection entry of a normalized stack.

    All entries are checked; issues are collected rather than raised. Top-level
    keys that are neither records nor collections are dropped. Returns
    the validated stack (validator defaults applied, canonical key order) and
    the hinted issue list. The validated stack is only meaningful when the
    issue list is empty.
    """
    issues: List[Issue] = []
    validated: dict = {}

    for key in stack:
        if key not in STACK_KEYS:
            logger.debug("stack_key_dropped key=%s closest=%s", key, closest_option(key, STACK_KEYS))

    for name, validator in registry.records():
        if stack.get(name) is None:
            continue
        ok, value, found = _run(validator, stack[name], name)
        issues.extend(found)
        if ok:
            validated[name] = value

    for spec, validator in registry.collections():
        items = stack.get(spec.name)
        if items is None:
            continue
        if not isinstance(items, list):
            issues.append(make_issue("COLLECTION_INVALID", f"'{spec.name}' must be a list", spec.name))
            continue
        values = []
        for idx, entity in enumerate(items):
            ok, value, found = _run(validator, entity, f"{spec.name}[{idx}]")
            issues.extend(found)
            if ok:
                values.append(value)
        if spec.key_field:
            issues.extend(_duplicate_names(spec.name, spec.key_field, items))
        validated[spec.name] = values

    if issues:
        logger.info("stack_validation_failed issues=%s", len(issues))
    return validated, with_hints(issues)
