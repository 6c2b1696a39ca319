"""Structured modification engine and preview diff helpers."""

from __future__ import annotations

import difflib
import logging
from difflib import SequenceMatcher

from .models import (
    AppendModification,
    InsertModification,
    Modification,
    Position,
    ReplaceModification,
)

__all__ = [
    "compute_modified_content",
    "build_unified_diff",
    "summarize_change",
]

LOGGER = logging.getLogger(__name__)
_DEFAULT_DIFF_FILENAME = "console.sql"


def compute_modified_content(current: str, modification: Modification) -> str:
    """Return the buffer produced by applying ``modification`` to ``current``.

    Both the live-apply path and the diff preview call this function, so the
    previewed text is exactly the committed text.
    """

    if isinstance(modification, ReplaceModification):
        return modification.content
    if isinstance(modification, AppendModification):
        separator = "" if current.endswith("\n") else "\n"
        return f"{current}{separator}{modification.content}"
    if isinstance(modification, InsertModification):
        if modification.position is None:
            return modification.content + current
        return _insert_at(current, modification.content, modification.position)
    raise TypeError(f"Unsupported modification type: {type(modification).__name__}")


def _insert_at(current: str, content: str, position: Position) -> str:
    lines = current.split("\n")
    if not 1 <= position.line <= len(lines):
        LOGGER.warning(
            "Insert targets line %d but the buffer has %d line(s); leaving content unchanged",
            position.line,
            len(lines),
        )
        return current

    line = lines[position.line - 1]
    # Columns past the end land before a trailing carriage return, never after it.
    line_end = len(line) - 1 if line.endswith("\r") else len(line)
    offset = min(max(position.column, 1) - 1, line_end)
    lines[position.line - 1] = line[:offset] + content + line[offset:]
    return "\n".join(lines)


def build_unified_diff(
    original: str,
    modified: str,
    *,
    filename: str | None = None,
    context: int = 3,
) -> str:
    """Return a unified diff between ``original`` and ``modified`` (empty when equal)."""

    name = (filename or "").strip() or _DEFAULT_DIFF_FILENAME
    diff = difflib.unified_diff(
        original.splitlines(keepends=True),
        modified.splitlines(keepends=True),
        fromfile=f"a/{name}",
        tofile=f"b/{name}",
        lineterm="",
        n=max(0, context),
    )
    return "\n".join(line.rstrip("\n") for line in diff)


def summarize_change(original: str, modified: str) -> str:
    if original == modified:
        return "no changes"
    added = 0
    removed = 0
    matcher = SequenceMatcher(a=original.splitlines(), b=modified.splitlines(), autojunk=False)
    for tag, i1, i2, j1, j2 in matcher.get_opcodes():
        if tag == "equal":
            continue
        removed += i2 - i1
        added += j2 - j1
    return f"+{added} -{removed} lines"
