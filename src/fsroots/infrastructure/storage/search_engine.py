"""Recursive glob search and filtered find over a directory tree.

Both operations share `walk_tree`, an explicit-stack depth-first traversal
in which pruning a subtree means not pushing its children. Per-entry
failures (permission errors, entries vanishing mid-walk) are logged and
skipped; they never abort the walk.
"""

from __future__ import annotations

import functools
import os
import re
import stat as stat_module
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Callable, Dict, List, Optional, Sequence

import structlog

from fsroots.domain.errors import (
    FileToolError,
    InvalidParameterError,
    NotADirectoryPathError,
    from_os_error,
)
from fsroots.infrastructure.storage.path_guard import PathSandbox
from fsroots.infrastructure.time_utils import as_utc, from_timestamp, timestamp_iso

logger = structlog.get_logger()

SORT_KEYS = ("modified", "created", "size", "name")
SORT_ORDERS = ("asc", "desc")

NO_MATCHES_MESSAGE = "No matches found"
NO_FILES_MESSAGE = "No files found matching the criteria"


# ---------------------------------------------------------------------------
# Glob matching
# ---------------------------------------------------------------------------

def _translate_bracket(pattern: str, index: int) -> tuple[str, int]:
    """Translate ``[...]`` starting at `index`; returns (regex, next index)."""
    end = index + 1
    if end < len(pattern) and pattern[end] in "!^":
        end += 1
    if end < len(pattern) and pattern[end] == "]":
        end += 1
    while end < len(pattern) and pattern[end] != "]":
        end += 1
    if end >= len(pattern):
        return re.escape("["), index + 1

    body = pattern[index + 1:end]
    negate = body[:1] in ("!", "^")
    if negate:
        body = body[1:]
    body = body.replace("\\", "\\\\").replace("[", "\\[")
    if body.startswith("]"):
        body = "\\" + body
    return ("[^" if negate else "[") + body + "]", end + 1


@functools.lru_cache(maxsize=256)
def glob_to_regex(pattern: str, pathname: bool = False) -> "re.Pattern[str]":
    """Compile a shell glob to a case-insensitive regex.

    Supports ``*``, ``?``, ``[...]`` classes (``!``/``^`` negation) and, with
    `pathname`, ``**/`` spanning zero or more directories while single ``*``
    and ``?`` stop at ``/``. Leading dots are literal, so ``*`` also matches
    dotfiles.
    """
    any_char = "[^/]" if pathname else "."
    parts: List[str] = []
    i = 0
    n = len(pattern)
    while i < n:
        ch = pattern[i]
        if ch == "*":
            if pathname and pattern.startswith("**/", i) and (i == 0 or pattern[i - 1] == "/"):
                parts.append("(?:.*/)?")
                i += 3
                continue
            while i < n and pattern[i] == "*":
                i += 1
            parts.append(any_char + "*")
            continue
        if ch == "?":
            parts.append(any_char)
        elif ch == "[":
            regex, i = _translate_bracket(pattern, i)
            parts.append(regex)
            continue
        elif ch == "\\" and i + 1 < n:
            i += 1
            parts.append(re.escape(pattern[i]))
        else:
            parts.append(re.escape(ch))
        i += 1
    return re.compile("".join(parts) + r"\Z", re.IGNORECASE | re.DOTALL)


def glob_match(pattern: str, value: str, *, pathname: bool = False) -> bool:
    return glob_to_regex(pattern, pathname).match(value) is not None


def is_excluded(relative_path: str, name: str, exclude_patterns: Sequence[str]) -> bool:
    """Match each exclude pattern against the relative path and the basename."""
    for exclude in exclude_patterns:
        if glob_match(exclude, relative_path, pathname=True) or glob_match(exclude, name):
            return True
    return False


# ---------------------------------------------------------------------------
# Traversal
# ---------------------------------------------------------------------------

@dataclass
class WalkEntry:
    """One visited descendant."""
    path: str
    name: str
    relative: str
    is_dir: bool
    is_symlink: bool


def _list_children(directory: str, relative: str) -> List[WalkEntry]:
    children: List[WalkEntry] = []
    with os.scandir(directory) as it:
        for item in it:
            try:
                is_symlink = item.is_symlink()
                is_dir = item.is_dir(follow_symlinks=False)
            except OSError:
                is_symlink, is_dir = False, False
            children.append(
                WalkEntry(
                    path=item.path,
                    name=item.name,
                    relative=f"{relative}/{item.name}" if relative else item.name,
                    is_dir=is_dir,
                    is_symlink=is_symlink,
                )
            )
    children.sort(key=lambda entry: entry.name)
    return children


def walk_tree(
    root: str,
    visit: Callable[[WalkEntry], bool],
    *,
    operation: str = "walk",
) -> None:
    """Depth-first walk of every descendant of `root` (root excluded).

    `visit` returns True to descend into a directory entry, False to prune
    it. Symlinked directories are never descended. Directories that cannot
    be listed are logged and skipped.
    """
    stack: List[WalkEntry] = []
    try:
        stack.extend(reversed(_list_children(root, "")))
    except OSError as exc:
        raise from_os_error(exc, root, operation) from exc

    while stack:
        entry = stack.pop()
        try:
            descend = visit(entry)
        except (FileNotFoundError, PermissionError) as exc:
            logger.warning("walk_entry_skipped", path=entry.path, error=str(exc))
            continue
        if not (descend and entry.is_dir and not entry.is_symlink):
            continue
        try:
            children = _list_children(entry.path, entry.relative)
        except OSError as exc:
            logger.warning("walk_directory_unreadable", path=entry.path, error=str(exc))
            continue
        stack.extend(reversed(children))


def _require_directory(root: str, operation: str) -> None:
    try:
        st = os.stat(root)
    except OSError as exc:
        raise from_os_error(exc, root, operation) from exc
    if not stat_module.S_ISDIR(st.st_mode):
        raise NotADirectoryPathError("Not a directory", root, operation)


# ---------------------------------------------------------------------------
# Glob search
# ---------------------------------------------------------------------------

def search_paths(
    root: str,
    pattern: str,
    exclude_patterns: Optional[Sequence[str]] = None,
    *,
    sandbox: Optional[PathSandbox] = None,
) -> List[str]:
    """Return descendants of `root` whose basename matches `pattern`.

    Results keep discovery order and report each entry by the path it was
    found under. With a `sandbox`, every visited entry is re-validated;
    entries that fail are skipped and, for directories, pruned.

    Raises:
        NotADirectoryPathError: `root` is not a directory.
    """
    _require_directory(root, "search")
    excludes = list(exclude_patterns or [])
    results: List[str] = []

    def visit(entry: WalkEntry) -> bool:
        if excludes and is_excluded(entry.relative, entry.name, excludes):
            return False
        if sandbox is not None:
            try:
                sandbox.validate(entry.path)
            except FileToolError as exc:
                logger.warning("search_entry_rejected", path=entry.path, error=exc.message)
                return False
        if glob_match(pattern, entry.name):
            results.append(entry.path)
        return True

    logger.debug("search_files", root=root, pattern=pattern, excludes=excludes)
    walk_tree(root, visit, operation="search")
    return results


def format_search_results(results: Sequence[str]) -> str:
    return "\n".join(results) if results else NO_MATCHES_MESSAGE


# ---------------------------------------------------------------------------
# Filtered find
# ---------------------------------------------------------------------------

@dataclass
class FindFilters:
    """Filters for `find_entries`; `None` disables a filter."""
    file_types: Optional[List[str]] = None
    modified_after: Optional[datetime] = None
    modified_before: Optional[datetime] = None
    min_size: Optional[int] = None
    max_size: Optional[int] = None
    include_directories: bool = True

    def __post_init__(self) -> None:
        if self.file_types is not None:
            self.file_types = [ext.lower().lstrip(".") for ext in self.file_types]
        if self.modified_after is not None:
            self.modified_after = as_utc(self.modified_after)
        if self.modified_before is not None:
            self.modified_before = as_utc(self.modified_before)


@dataclass
class FindResult:
    path: str
    name: str
    type: str
    size: int
    modified: str
    created: str
    permissions: str

    def to_dict(self) -> Dict[str, object]:
        return asdict(self)


def birth_time(st: os.stat_result) -> float:
    """Creation time where the platform records it, else ``st_ctime``."""
    return getattr(st, "st_birthtime", None) or st.st_ctime


def format_permissions(mode: int) -> str:
    return format(mode & 0o777, "o")


def parse_timestamp(value: str, field_name: str) -> datetime:
    """Parse an ISO-8601 timestamp (``Z`` suffix allowed), naive means UTC.

    Raises:
        InvalidParameterError: `value` is not a valid ISO-8601 timestamp.
    """
    raw = str(value or "").strip()
    if raw.endswith(("Z", "z")):
        raw = raw[:-1] + "+00:00"
    try:
        return as_utc(datetime.fromisoformat(raw))
    except ValueError as exc:
        raise InvalidParameterError(
            f"{field_name} is not a valid ISO-8601 date: {value!r}", "", "find"
        ) from exc


def _keep(entry: WalkEntry, is_dir: bool, st: os.stat_result, filters: FindFilters) -> bool:
    if not is_dir:
        if filters.file_types is not None:
            ext = os.path.splitext(entry.name)[1].lower().lstrip(".")
            if ext not in filters.file_types:
                return False
        if filters.min_size is not None and st.st_size < filters.min_size:
            return False
        if filters.max_size is not None and st.st_size > filters.max_size:
            return False

    if filters.modified_after is not None or filters.modified_before is not None:
        mtime = from_timestamp(st.st_mtime)
        if filters.modified_after is not None and mtime < filters.modified_after:
            return False
        if filters.modified_before is not None and mtime > filters.modified_before:
            return False
    return True


def find_entries(
    root: str,
    filters: Optional[FindFilters] = None,
    *,
    sandbox: Optional[PathSandbox] = None,
) -> List[FindResult]:
    """Collect descendants of `root` that pass `filters`, unsorted.

    Type and size filters apply to files only; date filters apply to both.
    Directories excluded by ``include_directories=False`` are still walked.
    With a `sandbox`, entries resolving outside the roots are skipped before
    their metadata is read.

    Raises:
        NotADirectoryPathError: `root` is not a directory.
    """
    _require_directory(root, "find")
    filters = filters or FindFilters()
    collected: List[FindResult] = []

    def visit(entry: WalkEntry) -> bool:
        if sandbox is not None:
            try:
                sandbox.validate(entry.path)
            except FileToolError as exc:
                logger.warning("find_entry_rejected", path=entry.path, error=exc.message)
                return False
        try:
            st = os.stat(entry.path)
        except OSError as exc:
            logger.warning("find_entry_inaccessible", path=entry.path, error=str(exc))
            return False
        is_dir = stat_module.S_ISDIR(st.st_mode)
        if is_dir and not filters.include_directories:
            return True
        if _keep(entry, is_dir, st, filters):
            collected.append(
                FindResult(
                    path=entry.path,
                    name=entry.name,
                    type="directory" if is_dir else "file",
                    size=st.st_size,
                    modified=timestamp_iso(st.st_mtime),
                    created=timestamp_iso(birth_time(st)),
                    permissions=format_permissions(st.st_mode),
                )
            )
        return True

    walk_tree(root, visit, operation="find")
    return collected


def _sort_key(sort_by: str) -> Callable[[FindResult], object]:
    if sort_by == "size":
        return lambda item: item.size
    if sort_by in ("modified", "created"):
        # ISO strings share one fixed format, so they order chronologically.
        return lambda item: getattr(item, sort_by)
    return lambda item: item.name.lower()


def sort_and_limit(
    results: List[FindResult],
    sort_by: str = "name",
    order: str = "asc",
    limit: Optional[int] = None,
) -> List[FindResult]:
    """Sort (stable) by `sort_by`, then truncate to `limit`."""
    if sort_by not in SORT_KEYS:
        raise InvalidParameterError(f"sort_by must be one of {', '.join(SORT_KEYS)}", "", "find")
    if order not in SORT_ORDERS:
        raise InvalidParameterError(f"order must be one of {', '.join(SORT_ORDERS)}", "", "find")
    ordered = sorted(results, key=_sort_key(sort_by), reverse=(order == "desc"))
    if limit is not None:
        ordered = ordered[:limit]
    return ordered

