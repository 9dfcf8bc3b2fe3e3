"""Advisory hints attached to validation issues."""

from __future__ import annotations

import re
from typing import Any, Iterable, List

from .issues import Issue


SNAKE_CASE_RE = re.compile(r"^[a-z][a-z0-9_]*$")
SNAKE_CASE_RULE = "snake_case (lowercase letters, digits and underscores, starting with a letter)"


def edit_distance(a: str, b: str) -> int:
    """Levenshtein distance between two strings."""
    if a == b:
        return 0
    if not a:
        return len(b)
    if not b:
        return len(a)
    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        current = [i]
        for j, cb in enumerate(b, start=1):
            cost = 0 if ca == cb else 1
            current.append(min(previous[j] + 1, current[j - 1] + 1, previous[j - 1] + cost))
        previous = current
    return previous[-1]


def closest_option(value: Any, options: Iterable[Any]) -> str | None:
    """Return the allowed option nearest to ``value``; ties keep option order."""
    if not isinstance(value, str):
        return None
    best = None
    best_score = None
    for option in options:
        if not isinstance(option, str):
            continue
        score = edit_distance(value.lower(), option.lower())
        if best_score is None or score < best_score:
            best, best_score = option, score
    return best


def to_snake_case(value: str) -> str:
    text = re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", value.strip())
    text = re.sub(r"[^A-Za-z0-9]+", "_", text).strip("_").lower()
    if text and text[0].isdigit():
        text = f"n_{text}"
    return text


def is_snake_case(value: Any) -> bool:
    return isinstance(value, str) and bool(SNAKE_CASE_RE.match(value))


def hint_for(issue: Issue) -> str | None:
    detail = issue.get("detail") or {}
    code = issue.get("code")
    if code == "INVALID_ENUM":
        guess = closest_option(detail.get("received"), detail.get("allowed") or [])
        if guess is not None:
            return f"Did you mean '{guess}'?"
        allowed = ", ".join(repr(opt) for opt in detail.get("allowed") or [])
        return f"Expected one of: {allowed}" if allowed else None
    if code == "INVALID_IDENTIFIER":
        received = detail.get("received")
        hint = f"Names must be {SNAKE_CASE_RULE}"
        if isinstance(received, str):
            example = to_snake_case(received)
            if example and example != received:
                hint += f", e.g. '{example}'"
        return hint
    return None


def with_hints(issues: Iterable[Issue]) -> List[Issue]:
    """Copy issues, adding a ``hint`` wherever one can be derived."""
    out = []
    for issue in issues:
        item = dict(issue)
        if not item.get("hint"):
            hint = hint_for(item)
            if hint:
                item["hint"] = hint
        out.append(item)
    return out
