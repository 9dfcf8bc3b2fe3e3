"""Cross-reference checks between stack collections."""

from __future__ import annotations

import logging
from typing import Any, List, Set

from stackkit.issues import Issue, make_issue

from stack_normalize import collection_items


logger = logging.getLogger("stackkit.refs")


def object_names(stack: dict) -> Set[str]:
    names = set()
    for obj in collection_items(stack, "objects"):
        if isinstance(obj, dict) and isinstance(obj.get("name"), str):
            names.add(obj["name"])
    return names


def _missing(kind: str, label: str, target: str, path: str, field: str) -> Issue:
    return make_issue(
        "REFERENCE_NOT_FOUND",
        f"{kind} '{label}' references object '{target}' which is not defined in objects.",
        path,
        {"collection": kind, "entity": label, "field": field, "target": target},
    )


def _label(entity: dict, idx: int) -> str:
    name = entity.get("name")
    return name if isinstance(name, str) and name else f"#{idx}"


def _view_data_target(data: Any) -> str | None:
    if not isinstance(data, dict) or data.get("provider") != "object":
        return None
    target = data.get("object")
    return target if isinstance(target, str) and target else None


def validate_cross_references(stack: dict) -> List[Issue]:
    """Check that workflow, approval, hook and view references name known objects.

    A stack that defines no objects is assumed to rely on objects from a
    sibling stack, so nothing is checked.
    """
    issues: List[Issue] = []
    names = object_names(stack)
    if not names:
        return issues

    for idx, workflow in enumerate(collection_items(stack, "workflows")):
        if not isinstance(workflow, dict):
            continue
        target = workflow.get("objectName")
        if isinstance(target, str) and target and target not in names:
            issues.append(_missing("Workflow", _label(workflow, idx), target, f"workflows[{idx}].objectName", "objectName"))

    for idx, approval in enumerate(collection_items(stack, "approvals")):
        if not isinstance(approval, dict):
            continue
        target = approval.get("object")
        if isinstance(target, str) and target and target not in names:
            issues.append(_missing("Approval", _label(approval, idx), target, f"approvals[{idx}].object", "object"))

    for idx, hook in enumerate(collection_items(stack, "hooks")):
        if not isinstance(hook, dict) or not hook.get("object"):
            continue
        targets = hook["object"] if isinstance(hook["object"], list) else [hook["object"]]
        for pos, target in enumerate(targets):
            if isinstance(target, str) and target not in names:
                path = f"hooks[{idx}].object[{pos}]" if isinstance(hook["object"], list) else f"hooks[{idx}].object"
                issues.append(_missing("Hook", _label(hook, idx), target, path, "object"))

    for idx, view in enumerate(collection_items(stack, "views")):
        if not isinstance(view, dict):
            continue
        for section in ("list", "form"):
            config = view.get(section)
            target = _view_data_target(config.get("data")) if isinstance(config, dict) else None
            if target and target not in names:
                label = f"views[{idx}].{section}"
                issues.append(
                    make_issue(
                        "REFERENCE_NOT_FOUND",
                        f"View[{idx}].{section} references object '{target}' which is not defined in objects.",
                        f"{label}.data.object",
                        {"collection": "View", "entity": label, "field": "data.object", "target": target},
                    )
                )

    if issues:
        logger.info("stack_cross_references_unresolved count=%s objects=%s", len(issues), len(names))
    return issues
