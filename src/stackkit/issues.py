"""Issue records and the aggregate report formatter."""

from __future__ import annotations

from typing import Any, Dict, Iterable, List


Issue = Dict[str, Any]

MARKER = "✗"
HINT_MARKER = "→"


def make_issue(code: str, message: str, path: str | None = None, detail: dict | None = None) -> Issue:
    return {"code": code, "message": message, "path": path, "detail": detail}


def join_path(prefix: str | None, path: str | None) -> str | None:
    """Join a collection prefix (``workflows[0]``) with a relative issue path."""
    if not prefix:
        return path
    if not path or path == "$":
        return prefix
    if path.startswith("$."):
        path = path[2:]
    if path.startswith("["):
        return f"{prefix}{path}"
    return f"{prefix}.{path}"


def prefix_issues(issues: Iterable[Issue], prefix: str) -> List[Issue]:
    out = []
    for issue in issues:
        item = dict(issue)
        item["path"] = join_path(prefix, issue.get("path"))
        out.append(item)
    return out


def _plural(count: int) -> str:
    return "issue" if count == 1 else "issues"


def format_issue(issue: Issue) -> List[str]:
    path = issue.get("path")
    message = issue.get("message") or issue.get("code") or "invalid"
    lines = [f"  {MARKER} {path}: {message}" if path else f"  {MARKER} {message}"]
    hint = issue.get("hint")
    if hint:
        lines.append(f"    {HINT_MARKER} {hint}")
    return lines


def format_issues(issues: List[Issue], label: str | None = None) -> str:
    """Render issues as one multi-line report.

    The header carries the issue count and the optional label; each issue is
    rendered on its own line behind a marker glyph, with its hint (if any) on an
    indented line below. Output depends only on the input list.
    """
    count = len(issues)
    header = f"{label} ({count} {_plural(count)}):" if label else f"{count} {_plural(count)}:"
    lines: List[str] = []
    for issue in issues:
        lines.extend(format_issue(issue))
    if not lines:
        return header
    return header + "\n\n" + "\n".join(lines)
