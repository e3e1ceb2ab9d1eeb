"""File I/O operations for fsroots.

Every function validates its path arguments through a `PathSandbox` before
touching the filesystem and raises `FileToolError` subclasses on failure.
Raw OSErrors never escape: they are translated with `from_os_error`.
"""

from __future__ import annotations

import os
import shutil
import stat as stat_module
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

import structlog

from fsroots.domain.errors import (
    AlreadyExistsError,
    ErrorKind,
    FileToolError,
    InvalidParameterError,
    NotADirectoryPathError,
    NotAFilePathError,
    PathNotFoundError,
    from_os_error,
)
from fsroots.infrastructure.storage.diff_engine import unified_diff
from fsroots.infrastructure.storage.io_text import read_text, read_text_strict, write_text_atomic
from fsroots.infrastructure.storage.path_guard import PathSandbox, ValidatedPath
from fsroots.infrastructure.storage.search_engine import (
    FindFilters,
    FindResult,
    WalkEntry,
    birth_time,
    find_entries,
    format_permissions,
    parse_timestamp,
    search_paths,
    sort_and_limit,
    walk_tree,
)
from fsroots.infrastructure.time_utils import timestamp_iso

logger = structlog.get_logger()


DRY_RUN_STATUS = "Dry run complete. No changes were written."
APPLIED_STATUS = "Edits applied successfully."
UNCHANGED_STATUS = "No changes were made; the file was not rewritten."


@dataclass
class EditOperation:
    """Literal text replacement applied to every occurrence of `old_text`."""
    old_text: str
    new_text: str


@dataclass
class EditOutcome:
    """Result of `edit_file`."""
    diff: str
    changed: bool
    written: bool
    dry_run: bool
    skipped: List[str] = field(default_factory=list)

    @property
    def status(self) -> str:
        if self.dry_run:
            return DRY_RUN_STATUS
        return APPLIED_STATUS if self.written else UNCHANGED_STATUS

    def render(self) -> str:
        return f"```diff\n{self.diff}```\n\n{self.status}"


def _existing(sandbox: PathSandbox, path: str, operation: str) -> ValidatedPath:
    target = sandbox.validate(path)
    if not target.exists:
        raise PathNotFoundError("No such file or directory", path, operation)
    return target


def _stat(path: str, display: str, operation: str) -> os.stat_result:
    try:
        return os.stat(path)
    except OSError as exc:
        raise from_os_error(exc, display, operation) from exc


# ---------------------------------------------------------------------------
# Read / write
# ---------------------------------------------------------------------------

def read_file(sandbox: PathSandbox, path: str) -> str:
    """Return the full text of `path`."""
    target = _existing(sandbox, path, "read")
    logger.debug("read_file", path=target.path)
    try:
        return read_text(target.path)
    except OSError as exc:
        raise from_os_error(exc, path, "read") from exc


def read_multiple_files(sandbox: PathSandbox, paths: Sequence[str]) -> str:
    """Read each path; a failing path is reported inline, never aborting the batch."""
    blocks: List[str] = []
    for path in paths:
        try:
            content = read_file(sandbox, path)
            blocks.append(f"{path}:\n{content}\n")
        except FileToolError as exc:
            logger.warning("read_multiple_entry_failed", path=path, error=exc.message)
            blocks.append(f"{path}: Error: {exc.message}")
    return "\n---\n".join(blocks)


def write_file(
    sandbox: PathSandbox,
    path: str,
    content: str,
    *,
    fsync: bool = True,
) -> Dict[str, Any]:
    """Create or overwrite `path` with `content`.

    The parent directory must already exist inside the allowed roots.
    """
    target = sandbox.validate(path)
    if target.exists and os.path.isdir(target.path):
        raise NotAFilePathError("Is a directory", path, "write")
    try:
        written = write_text_atomic(target.path, content, fsync=fsync)
    except OSError as exc:
        raise from_os_error(exc, path, "write") from exc
    logger.info("file_written", path=target.path, bytes=written, created=not target.exists)
    return {
        "path": path,
        "full_path": target.path,
        "bytes_written": written,
        "created": not target.exists,
    }


def apply_edits(content: str, edits: Sequence[EditOperation], label: str = "") -> tuple[str, List[str]]:
    """Apply `edits` in order to an in-memory copy of `content`.

    Returns the modified text and the `old_text` of every edit that matched
    nothing (those are skipped, not fatal).
    """
    modified = content
    skipped: List[str] = []
    for edit in edits:
        if not edit.old_text or edit.old_text not in modified:
            logger.warning("edit_text_not_found", path=label, old_text=edit.old_text)
            skipped.append(edit.old_text)
            continue
        modified = modified.replace(edit.old_text, edit.new_text)
    return modified, skipped


def edit_file(
    sandbox: PathSandbox,
    path: str,
    edits: Sequence[EditOperation],
    *,
    dry_run: bool = False,
    fsync: bool = True,
) -> EditOutcome:
    """Apply literal replacements and return a unified diff of the change.

    With `dry_run` the file is never touched. Otherwise it is rewritten
    only when the content actually changed.

    Raises:
        InvalidParameterError: the file is not valid UTF-8 text.
    """
    target = _existing(sandbox, path, "edit")
    logger.debug("edit_file", path=target.path, edits=len(edits), dry_run=dry_run)
    try:
        original = read_text_strict(target.path)
    except OSError as exc:
        raise from_os_error(exc, path, "edit") from exc
    except UnicodeDecodeError as exc:
        raise InvalidParameterError(
            f"File is not valid UTF-8 text and cannot be edited safely (byte {exc.start})",
            path,
            "edit",
        ) from exc

    modified, skipped = apply_edits(original, edits, label=target.path)
    changed = modified != original
    diff = unified_diff(original, modified, path)

    written = False
    if not dry_run:
        if changed:
            try:
                write_text_atomic(target.path, modified, fsync=fsync)
            except OSError as exc:
                raise from_os_error(exc, path, "edit") from exc
            written = True
            logger.info("edits_applied", path=target.path, edits=len(edits), skipped=len(skipped))
        else:
            logger.info("edit_no_changes", path=target.path)

    return EditOutcome(diff=diff, changed=changed, written=written, dry_run=dry_run, skipped=skipped)


# ---------------------------------------------------------------------------
# Directories
# ---------------------------------------------------------------------------

def create_directory(sandbox: PathSandbox, path: str) -> Dict[str, Any]:
    """Create `path` (idempotent). The parent must already exist inside the roots."""
    target = sandbox.validate(path)
    if target.exists:
        if not os.path.isdir(target.path):
            raise AlreadyExistsError("A file with that name already exists", path, "mkdir")
        return {"path": path, "full_path": target.path, "created": False}
    try:
        os.makedirs(target.path, exist_ok=True)
    except OSError as exc:
        raise from_os_error(exc, path, "mkdir") from exc
    logger.info("directory_created", path=target.path)
    return {"path": path, "full_path": target.path, "created": True}


def _entry_metadata(st: os.stat_result) -> Dict[str, Any]:
    return {
        "size": st.st_size,
        "modified": timestamp_iso(st.st_mtime),
        "created": timestamp_iso(birth_time(st)),
        "permissions": format_permissions(st.st_mode),
    }


def list_directory(
    sandbox: PathSandbox,
    path: str,
    *,
    include_metadata: bool = False,
) -> List[Dict[str, Any]]:
    """List `path`, sorted by ``(type, lowercase name)``.

    An entry that resolves outside the roots or cannot be stat'ed is
    reported with type ``error``.
    """
    target = _existing(sandbox, path, "list")
    if not os.path.isdir(target.path):
        raise NotADirectoryPathError("Not a directory", path, "list")
    logger.debug("list_directory", path=target.path, include_metadata=include_metadata)

    try:
        names = os.listdir(target.path)
    except OSError as exc:
        raise from_os_error(exc, path, "list") from exc

    entries: List[Dict[str, Any]] = []
    for name in names:
        entry_path = os.path.join(target.path, name)
        try:
            sandbox.validate(entry_path)
        except FileToolError as exc:
            logger.warning("list_entry_rejected", path=entry_path, error=exc.message)
            entries.append({"type": "error", "name": name})
            continue
        try:
            st = os.stat(entry_path)
        except OSError as exc:
            logger.warning("list_entry_unavailable", path=entry_path, error=str(exc))
            entries.append({"type": "error", "name": name})
            continue
        entry: Dict[str, Any] = {
            "type": "directory" if stat_module.S_ISDIR(st.st_mode) else "file",
            "name": name,
        }
        if include_metadata:
            entry.update(_entry_metadata(st))
        entries.append(entry)

    entries.sort(key=lambda e: (e["type"], e["name"].lower()))
    return entries


def directory_tree(sandbox: PathSandbox, path: str) -> Dict[str, Any]:
    """Nested ``{name, type, children}`` view of `path`.

    Children failing sandbox validation or access are left out. Symlinked
    directories appear with type ``symlink`` and are not expanded.
    """
    target = _existing(sandbox, path, "tree")
    if not os.path.isdir(target.path):
        raise NotADirectoryPathError("Not a directory", path, "tree")

    root_node: Dict[str, Any] = {
        "name": os.path.basename(target.path) or target.path,
        "type": "directory",
        "children": [],
    }
    nodes: Dict[str, Dict[str, Any]] = {"": root_node}

    def visit(entry: WalkEntry) -> bool:
        try:
            sandbox.validate(entry.path)
        except FileToolError as exc:
            logger.warning("tree_entry_rejected", path=entry.path, error=exc.message)
            return False
        parent_key = entry.relative.rpartition("/")[0]
        parent = nodes.get(parent_key)
        if parent is None:
            return False
        if entry.is_symlink:
            node: Dict[str, Any] = {"name": entry.name, "type": "symlink"}
        elif entry.is_dir:
            node = {"name": entry.name, "type": "directory", "children": []}
            nodes[entry.relative] = node
        else:
            node = {"name": entry.name, "type": "file"}
        parent["children"].append(node)
        return entry.is_dir

    walk_tree(target.path, visit, operation="tree")
    return root_node


def move_file(sandbox: PathSandbox, source: str, destination: str) -> Dict[str, Any]:
    """Move or rename `source` to `destination`; never overwrites."""
    src = _existing(sandbox, source, "move")
    dest = sandbox.validate(destination)
    if dest.exists or os.path.lexists(dest.path):
        raise AlreadyExistsError(
            f"Destination path '{destination}' already exists.", destination, "move"
        )
    logger.debug("move_file", source=src.path, destination=dest.path)
    try:
        shutil.move(src.path, dest.path)
    except OSError as exc:
        raise from_os_error(exc, source, "move") from exc
    logger.info("file_moved", source=src.path, destination=dest.path)
    return {"source": source, "destination": destination}


# ---------------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------------

def search_files(
    sandbox: PathSandbox,
    path: str,
    pattern: str,
    exclude_patterns: Optional[Sequence[str]] = None,
) -> List[str]:
    """Glob search under `path`; every hit is itself sandbox-validated."""
    root = _existing(sandbox, path, "search")
    return search_paths(root.path, pattern, exclude_patterns, sandbox=sandbox)


def find_files(
    sandbox: PathSandbox,
    path: str,
    *,
    sort_by: str = "name",
    order: str = "asc",
    limit: Optional[int] = None,
    file_types: Optional[Sequence[str]] = None,
    modified_after: Optional[str | datetime] = None,
    modified_before: Optional[str | datetime] = None,
    min_size: Optional[int] = None,
    max_size: Optional[int] = None,
    include_directories: bool = True,
) -> List[FindResult]:
    """Filter, sort and limit the descendants of `path`.

    Raises:
        InvalidParameterError: a date bound is not valid ISO-8601, or
            `sort_by`/`order` is not a known value.
    """
    if isinstance(modified_after, str):
        modified_after = parse_timestamp(modified_after, "modified_after")
    if isinstance(modified_before, str):
        modified_before = parse_timestamp(modified_before, "modified_before")

    root = _existing(sandbox, path, "find")
    filters = FindFilters(
        file_types=list(file_types) if file_types is not None else None,
        modified_after=modified_after,
        modified_before=modified_before,
        min_size=min_size,
        max_size=max_size,
        include_directories=include_directories,
    )
    logger.debug("find_files", root=root.path, sort_by=sort_by, order=order, limit=limit)
    results = find_entries(root.path, filters, sandbox=sandbox)
    return sort_and_limit(results, sort_by, order, limit)


# ---------------------------------------------------------------------------
# Info
# ---------------------------------------------------------------------------

def get_file_info(sandbox: PathSandbox, path: str) -> Dict[str, Any]:
    target = _existing(sandbox, path, "info")
    st = _stat(target.path, path, "info")
    try:
        is_symlink = os.path.islink(os.path.abspath(os.path.expanduser(path)))
    except OSError:
        is_symlink = False
    return {
        "path": path,
        "absolute_path": target.path,
        "size": st.st_size,
        "created": timestamp_iso(birth_time(st)),
        "modified": timestamp_iso(st.st_mtime),
        "accessed": timestamp_iso(st.st_atime),
        "type": "directory" if stat_module.S_ISDIR(st.st_mode) else "file",
        "isDirectory": stat_module.S_ISDIR(st.st_mode),
        "isFile": stat_module.S_ISREG(st.st_mode),
        "isSymlink": is_symlink,
        "permissions": format_permissions(st.st_mode),
        "uid": st.st_uid,
        "gid": st.st_gid,
    }


_ERROR_LABELS = {
    ErrorKind.NOT_FOUND: "File not found",
    ErrorKind.PERMISSION_DENIED: "Permission denied",
    ErrorKind.SECURITY: "Access denied",
}


def get_bulk_file_info(
    sandbox: PathSandbox,
    paths: Sequence[str],
    *,
    include_errors: bool = True,
) -> Dict[str, Any]:
    """Info for many paths; failures become structured records.

    Failed paths always count toward ``errors`` even when `include_errors`
    is false and their records are left out of ``files``.
    """
    files: List[Dict[str, Any]] = []
    successful = 0
    errors = 0
    logger.debug("bulk_file_info", count=len(paths))

    for path in paths:
        try:
            info = get_file_info(sandbox, path)
        except FileToolError as exc:
            errors += 1
            logger.warning("bulk_info_entry_failed", path=path, kind=exc.kind.value, error=exc.message)
            if include_errors:
                files.append(
                    {
                        "path": path,
                        "success": False,
                        "error": _ERROR_LABELS.get(exc.kind, "Unexpected error"),
                        "error_type": exc.kind.value,
                        "error_message": exc.message,
                    }
                )
            continue
        successful += 1
        files.append({"path": info.pop("path"), "success": True, **info})

    return {
        "total_requested": len(paths),
        "successful": successful,
        "errors": errors,
        "files": files,
    }
