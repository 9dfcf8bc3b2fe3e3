"""Composition of several stack definitions into one effective stack."""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from stackkit.errors import ComposeOptionsError, CompositionConflictError
from stackkit.issues import Issue, make_issue

from stack_collections import CONCAT_FIELDS
from stack_normalize import collection_items


logger = logging.getLogger("stackkit.compose")

OBJECT_CONFLICT_STRATEGIES = ("error", "override", "merge")
MANIFEST_STRATEGIES = ("first", "last")


def validate_compose_options(object_conflict: Any = "error", manifest: Any = "last", namespace: Any = None) -> List[Issue]:
    issues: List[Issue] = []
    if object_conflict not in OBJECT_CONFLICT_STRATEGIES:
        issues.append(
            make_issue(
                "INVALID_ENUM",
                f"objectConflict must be one of {', '.join(OBJECT_CONFLICT_STRATEGIES)}",
                "objectConflict",
                {"allowed": list(OBJECT_CONFLICT_STRATEGIES), "received": object_conflict},
            )
        )
    if isinstance(manifest, bool) or not (manifest in MANIFEST_STRATEGIES or (isinstance(manifest, int) and manifest >= 0)):
        issues.append(
            make_issue(
                "MANIFEST_STRATEGY_INVALID",
                "manifest must be 'first', 'last' or a non-negative stack index",
                "manifest",
                {"received": manifest},
            )
        )
    if namespace is not None and not isinstance(namespace, str):
        issues.append(make_issue("FIELD_INVALID", "namespace must be a string", "namespace"))
    return issues


def select_manifest(stacks: List[dict], strategy: Any = "last") -> dict | None:
    if isinstance(strategy, int) and not isinstance(strategy, bool):
        if strategy >= len(stacks):
            return None
        return stacks[strategy].get("manifest") or None
    ordered = stacks if strategy == "first" else list(reversed(stacks))
    for stack in ordered:
        if stack.get("manifest"):
            return stack["manifest"]
    return None


def merge_object(existing: dict, incoming: dict) -> dict:
    """Shallow-merge two object definitions; ``fields`` merge key by key."""
    merged = {**existing, **incoming}
    before = existing.get("fields")
    after = incoming.get("fields")
    if before is None and after is None:
        merged["fields"] = {}
    elif isinstance(before, dict) and isinstance(after, dict):
        merged["fields"] = {**before, **after}
    elif after is None:
        merged["fields"] = before
    else:
        merged["fields"] = after
    return merged


def merge_objects(stacks: List[dict], strategy: str = "error") -> List[dict]:
    result: List[dict] = []
    position: Dict[str, int] = {}
    for stack_idx, stack in enumerate(stacks):
        for obj in collection_items(stack, "objects"):
            name = obj.get("name") if isinstance(obj, dict) else None
            if not isinstance(name, str) or name not in position:
                if isinstance(name, str):
                    position[name] = len(result)
                result.append(obj)
                continue
            idx = position[name]
            if strategy == "error":
                raise CompositionConflictError.from_issues(
                    [
                        make_issue(
                            "OBJECT_CONFLICT",
                            f"object '{name}' is defined in multiple stacks. "
                            "Use objectConflict='override' or objectConflict='merge' to resolve.",
                            f"stacks[{stack_idx}].objects",
                            {"name": name, "strategy": strategy},
                        )
                    ],
                    object_name=name,
                )
            if strategy == "override":
                result[idx] = obj
            else:
                result[idx] = merge_object(result[idx], obj)
            logger.debug("object_conflict_resolved name=%s strategy=%s stack=%s", name, strategy, stack_idx)
    return result


def compose_stacks(
    stacks: List[dict],
    object_conflict: str = "error",
    manifest: Any = "last",
    namespace: str | None = None,
) -> dict:
    """Merge stack definitions into one stack.

    The manifest is picked by ``manifest``; the last ``i18n`` wins; objects are
    merged by name under ``object_conflict``; every other collection is
    concatenated in input order. Nothing is validated: callers that need a
    checked result pass it through ``define_stack`` again.
    """
    issues = validate_compose_options(object_conflict, manifest, namespace)
    if issues:
        raise ComposeOptionsError.from_issues(issues)
    stacks = list(stacks)
    if not stacks:
        return {}
    if len(stacks) == 1:
        return stacks[0]

    if namespace is not None:
        logger.debug("compose_namespace_reserved namespace=%s", namespace)

    composed: dict = {}
    selected = select_manifest(stacks, manifest)
    if selected is not None:
        composed["manifest"] = selected

    for stack in reversed(stacks):
        if stack.get("i18n"):
            composed["i18n"] = stack["i18n"]
            break

    objects = merge_objects(stacks, object_conflict)
    if objects:
        composed["objects"] = objects

    for field in CONCAT_FIELDS:
        chunks = [stack[field] for stack in stacks if isinstance(stack.get(field), list)]
        if chunks:
            composed[field] = [item for chunk in chunks for item in chunk]

    logger.info(
        "stacks_composed count=%s objects=%s object_conflict=%s manifest=%s",
        len(stacks),
        len(objects),
        object_conflict,
        manifest,
    )
    return composed
