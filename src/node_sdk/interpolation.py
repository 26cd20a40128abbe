"""
Template Interpolation - Dotted-path lookup and {{path}} substitution.

resolve_path() walks nested mappings/lists and returns MISSING as soon
as a step cannot be taken. interpolate() substitutes each {{path}}
placeholder in one pass; placeholders whose path does not resolve are
left in the output verbatim so a broken template stays diagnosable.
"""

from __future__ import annotations

import json
import re
from collections.abc import Mapping, Sequence
from typing import Any

PLACEHOLDER_PATTERN = re.compile(r"\{\{([^{}]+)\}\}")


class _Missing:
    """Sentinel for a path that does not resolve."""

    _instance = None

    def __new__(cls) -> "_Missing":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Any = _Missing()


def _step(current: Any, segment: str) -> Any:
    if isinstance(current, Mapping):
        return current.get(segment, MISSING)
    if isinstance(current, Sequence) and not isinstance(current, (str, bytes)):
        if segment.isdigit():
            index = int(segment)
            if index < len(current):
                return current[index]
    return MISSING


def resolve_path(root: Any, path: str) -> Any:
    """
    Resolve a dotted path against nested data.

    Args:
        root: Mapping (or list) to walk
        path: Dotted path such as "data.agent.id"; numeric segments index lists

    Returns:
        The value found, or MISSING when any step is absent, None,
        or not a container.
    """
    if root is None or not isinstance(path, str) or not path:
        return MISSING

    # Flattened keys like {"agent.id": 1} win over walking
    if isinstance(root, Mapping) and path in root:
        return root[path]

    current = root
    for segment in path.split("."):
        if current is None:
            return MISSING
        current = _step(current, segment)
        if current is MISSING:
            return MISSING
    return current


def stringify_value(value: Any) -> str:
    """Render a resolved value the way templates expect it."""
    if isinstance(value, str):
        return value
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (Mapping, list, tuple)):
        return json.dumps(value, separators=(",", ":"), default=str)
    return str(value)


def interpolate(template: Any, data: Any) -> str:
    """
    Replace {{path}} placeholders with values resolved from data.

    Unresolved placeholders are preserved unchanged. Substituted text
    is never re-scanned, so values containing "{{...}}" stay literal.
    Non-string templates produce an empty string.
    """
    if not isinstance(template, str):
        return ""

    def _replace(match: re.Match) -> str:
        value = resolve_path(data, match.group(1).strip())
        if value is MISSING:
            return match.group(0)
        return stringify_value(value)

    return PLACEHOLDER_PATTERN.sub(_replace, template)


def placeholders(template: Any) -> list[str]:
    """List the paths referenced by a template, in order of appearance."""
    if not isinstance(template, str):
        return []
    return [m.group(1).strip() for m in PLACEHOLDER_PATTERN.finditer(template)]


__all__ = [
    "MISSING",
    "PLACEHOLDER_PATTERN",
    "interpolate",
    "placeholders",
    "resolve_path",
    "stringify_value",
]
