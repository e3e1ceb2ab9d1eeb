"""Unified diff rendering for edit previews.

Produces git-style unified diffs (``--- a/<label>`` / ``+++ b/<label>`` and
``@@ -l,s +l,s @@`` hunks with three lines of context). Line endings are
normalized to ``\\n`` before comparison so the same logical change renders
the same way on every platform.
"""

from __future__ import annotations

import difflib
import re
from dataclasses import dataclass, field
from typing import List, Tuple

NO_CHANGES_MESSAGE = "No changes detected.\n"
NO_NEWLINE_MARKER = "\\ No newline at end of file"
DEFAULT_CONTEXT_LINES = 3

_HUNK_HEADER = re.compile(r"^@@ -(\d+)(?:,(\d+))? \+(\d+)(?:,(\d+))? @@")


class DiffApplyError(ValueError):
    """Raised when a diff does not apply cleanly to the given content."""


def normalize_newlines(text: str) -> str:
    return text.replace("\r\n", "\n").replace("\r", "\n")


def split_lines(text: str) -> List[str]:
    """Split into lines keeping the ``\\n`` terminator on each line."""
    return normalize_newlines(text).splitlines(keepends=True) if text else []


def _format_range(start: int, length: int) -> str:
    # Unified diff convention: empty ranges point at the line before.
    if length == 0:
        return f"{start},0"
    if length == 1:
        return f"{start + 1}"
    return f"{start + 1},{length}"


def _emit(prefix: str, line: str, out: List[str]) -> None:
    if line.endswith("\n"):
        out.append(prefix + line)
    else:
        out.append(prefix + line + "\n")
        out.append(NO_NEWLINE_MARKER + "\n")


def unified_diff(
    old_content: str,
    new_content: str,
    label: str,
    *,
    context: int = DEFAULT_CONTEXT_LINES,
) -> str:
    """Render the change from `old_content` to `new_content`.

    Returns `NO_CHANGES_MESSAGE` when the two are identical (after newline
    normalization).
    """
    old_lines = split_lines(old_content)
    new_lines = split_lines(new_content)
    if old_lines == new_lines:
        return NO_CHANGES_MESSAGE

    matcher = difflib.SequenceMatcher(None, old_lines, new_lines, autojunk=False)
    out: List[str] = [f"--- a/{label}\n", f"+++ b/{label}\n"]

    for group in matcher.get_grouped_opcodes(context):
        first, last = group[0], group[-1]
        old_range = _format_range(first[1], last[2] - first[1])
        new_range = _format_range(first[3], last[4] - first[3])
        out.append(f"@@ -{old_range} +{new_range} @@\n")

        for tag, i1, i2, j1, j2 in group:
            if tag == "equal":
                for line in old_lines[i1:i2]:
                    _emit(" ", line, out)
                continue
            if tag in ("replace", "delete"):
                for line in old_lines[i1:i2]:
                    _emit("-", line, out)
            if tag in ("replace", "insert"):
                for line in new_lines[j1:j2]:
                    _emit("+", line, out)

    return "".join(out)


def line_count_summary(old_content: str, new_content: str, label: str) -> str:
    """Degraded diff: a single pseudo-hunk carrying only line counts."""
    if old_content == new_content:
        return NO_CHANGES_MESSAGE
    old_count = len(split_lines(old_content))
    new_count = len(split_lines(new_content))
    return (
        f"--- a/{label}\n+++ b/{label}\n@@ -1,{old_count} +1,{new_count} @@\n"
        f"Content changed ({old_count} -> {new_count} lines)\n"
    )


@dataclass
class Hunk:
    """One parsed ``@@`` block."""
    old_start: int
    old_length: int
    new_start: int
    new_length: int
    lines: List[Tuple[str, str]] = field(default_factory=list)


def parse_hunks(diff_text: str) -> List[Hunk]:
    hunks: List[Hunk] = []
    current: Hunk | None = None
    for raw in diff_text.splitlines(keepends=True):
        if raw.startswith("--- ") or raw.startswith("+++ "):
            if current is None:
                continue
        match = _HUNK_HEADER.match(raw)
        if match:
            old_start, old_len, new_start, new_len = match.groups()
            current = Hunk(
                old_start=int(old_start),
                old_length=int(old_len) if old_len is not None else 1,
                new_start=int(new_start),
                new_length=int(new_len) if new_len is not None else 1,
            )
            hunks.append(current)
            continue
        if current is None:
            continue
        if raw.startswith("\\"):
            # Strip the terminator from the line the marker refers to.
            if current.lines:
                tag, text = current.lines[-1]
                current.lines[-1] = (tag, text[:-1] if text.endswith("\n") else text)
            continue
        if raw[:1] in (" ", "-", "+"):
            current.lines.append((raw[0], raw[1:]))
    return hunks


def apply_unified_diff(old_content: str, diff_text: str) -> str:
    """Apply a diff produced by `unified_diff` to `old_content`.

    Raises:
        DiffApplyError: a context or removed line does not match.
    """
    if diff_text == NO_CHANGES_MESSAGE:
        return normalize_newlines(old_content)

    source = split_lines(old_content)
    result: List[str] = []
    cursor = 0

    for hunk in parse_hunks(diff_text):
        start = hunk.old_start - 1 if hunk.old_length else hunk.old_start
        if start < cursor:
            raise DiffApplyError(f"overlapping hunk at line {hunk.old_start}")
        result.extend(source[cursor:start])
        cursor = start
        for tag, text in hunk.lines:
            if tag == "+":
                result.append(text)
                continue
            if cursor >= len(source) or source[cursor] != text:
                raise DiffApplyError(f"hunk does not match at line {cursor + 1}")
            if tag == " ":
                result.append(text)
            cursor += 1

    result.extend(source[cursor:])
    return "".join(result)
