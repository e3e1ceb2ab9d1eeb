"""Unified file tools API for fsroots.

Exposes read/write/edit/move/list/search/info operations confined to the
allowed roots. This is the boundary where `FileToolError`s become
`ToolResult`s; nothing past this layer sees an exception.

Examples:
    >>> from fsroots.infrastructure.storage.file_tools import FileTools
    >>> tools = FileTools.from_directories(["~/projects"])
    >>> tools.read("~/projects/README.md").render()
    >>> tools.edit("~/projects/app.py", [EditOperation("foo", "bar")], dry_run=True)
    >>> tools.find("~/projects", file_types=["py"], sort_by="size", order="desc")
"""

from __future__ import annotations

import json
import platform
import sys
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

import structlog

from fsroots import __version__
from fsroots.domain.errors import ErrorKind, FileToolError
from fsroots.infrastructure.storage import file_io
from fsroots.infrastructure.storage.file_io import EditOperation
from fsroots.infrastructure.storage.path_guard import AllowedRoots, PathSandbox
from fsroots.infrastructure.storage.search_engine import (
    NO_FILES_MESSAGE,
    format_search_results,
)
from fsroots.infrastructure.time_utils import utc_now_iso

logger = structlog.get_logger()

SERVER_NAME = "fsroots"

_ERROR_PREFIXES = {
    ErrorKind.SECURITY: "Security Error: {message}",
    ErrorKind.NOT_FOUND: "Error: Path not found - {message}",
    ErrorKind.PERMISSION_DENIED: "Error: Permission denied - {message}",
    ErrorKind.NOT_A_DIRECTORY: "Error: Expected a directory but found a file - {message}",
    ErrorKind.NOT_A_FILE: "Error: Expected a file but found a directory - {message}",
    ErrorKind.ALREADY_EXISTS: "Error: Destination already exists - {message}",
    ErrorKind.INVALID_PARAMETER: "Error: Invalid parameter - {message}",
    ErrorKind.UNEXPECTED: "Error: An unexpected server error occurred.",
}


def render_error(kind: ErrorKind, message: str) -> str:
    """Render an error for the caller; switched over `ErrorKind` in one place."""
    return _ERROR_PREFIXES[kind].format(message=message)


def to_json(payload: Any) -> str:
    return json.dumps(payload, ensure_ascii=False, indent=2)


@dataclass
class ToolResult:
    """Result of a file tool operation."""
    success: bool
    output: str = ""
    data: Any = None
    error: str = ""
    error_kind: Optional[ErrorKind] = None

    def render(self) -> str:
        """The string handed back to the dispatcher."""
        if self.success:
            return self.output
        return render_error(self.error_kind or ErrorKind.UNEXPECTED, self.error)

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"success": self.success}
        if not self.success:
            result["error"] = self.error
            result["error_kind"] = (self.error_kind or ErrorKind.UNEXPECTED).value
        if self.data is not None:
            result["data"] = self.data
        return result

    @classmethod
    def failure(cls, exc: FileToolError) -> "ToolResult":
        return cls(success=False, error=exc.message, error_kind=exc.kind)


class FileTools:
    """Sandboxed file tools.

    Every public method returns a `ToolResult` and never raises.
    """

    def __init__(
        self,
        sandbox: PathSandbox,
        *,
        fsync: bool = True,
        auth_enabled: bool = False,
    ):
        self.sandbox = sandbox
        self.fsync = fsync
        self.auth_enabled = auth_enabled
        self.started_at = utc_now_iso()

    @classmethod
    def from_directories(cls, directories: Iterable[str], **kwargs: Any) -> "FileTools":
        return cls(PathSandbox(AllowedRoots.from_paths(directories)), **kwargs)

    def _run(
        self,
        operation: str,
        func: Callable[[], Any],
        render: Callable[[Any], str],
    ) -> ToolResult:
        try:
            data = func()
        except FileToolError as exc:
            if exc.kind is ErrorKind.SECURITY:
                logger.warning("tool_security_error", operation=operation, error=exc.message)
            else:
                logger.error("tool_error", operation=operation, kind=exc.kind.value, error=exc.message)
            return ToolResult.failure(exc)
        except Exception as exc:
            logger.exception("tool_unexpected_error", operation=operation, error=str(exc))
            return ToolResult(success=False, error=str(exc), error_kind=ErrorKind.UNEXPECTED)
        return ToolResult(success=True, output=render(data), data=data)

    # -------------------------------------------------------------------------
    # Read / write
    # -------------------------------------------------------------------------

    def read(self, path: str) -> ToolResult:
        return self._run("read_file", lambda: file_io.read_file(self.sandbox, path), str)

    def read_many(self, paths: Sequence[str]) -> ToolResult:
        """Read several files; per-file failures are reported inline."""
        return self._run(
            "read_multiple_files",
            lambda: file_io.read_multiple_files(self.sandbox, paths),
            str,
        )

    def write(self, path: str, content: str) -> ToolResult:
        return self._run(
            "write_file",
            lambda: file_io.write_file(self.sandbox, path, content, fsync=self.fsync),
            lambda _: f"Successfully wrote to {path}",
        )

    def edit(
        self,
        path: str,
        edits: Sequence[EditOperation],
        *,
        dry_run: bool = False,
    ) -> ToolResult:
        """Apply literal replacements; output is the diff plus a status line."""
        return self._run(
            "edit_file",
            lambda: file_io.edit_file(
                self.sandbox, path, edits, dry_run=dry_run, fsync=self.fsync
            ),
            lambda outcome: outcome.render(),
        )

    def move(self, source: str, destination: str) -> ToolResult:
        return self._run(
            "move_file",
            lambda: file_io.move_file(self.sandbox, source, destination),
            lambda _: f"Successfully moved {source} to {destination}",
        )

    # -------------------------------------------------------------------------
    # Directories
    # -------------------------------------------------------------------------

    def mkdir(self, path: str) -> ToolResult:
        return self._run(
            "create_directory",
            lambda: file_io.create_directory(self.sandbox, path),
            lambda _: f"Successfully created directory {path}",
        )

    def list(self, path: str, *, include_metadata: bool = False) -> ToolResult:
        return self._run(
            "list_directory",
            lambda: file_io.list_directory(
                self.sandbox, path, include_metadata=include_metadata
            ),
            to_json,
        )

    def tree(self, path: str) -> ToolResult:
        return self._run(
            "directory_tree",
            lambda: file_io.directory_tree(self.sandbox, path),
            to_json,
        )

    # -------------------------------------------------------------------------
    # Search
    # -------------------------------------------------------------------------

    def search(
        self,
        path: str,
        pattern: str,
        exclude_patterns: Optional[Sequence[str]] = None,
    ) -> ToolResult:
        return self._run(
            "search_files",
            lambda: file_io.search_files(self.sandbox, path, pattern, exclude_patterns),
            format_search_results,
        )

    def find(
        self,
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
    ) -> ToolResult:
        def render(results: List[Any]) -> str:
            if not results:
                return NO_FILES_MESSAGE
            return to_json(
                {
                    "total_found": len(results),
                    "files": [item.to_dict() for item in results],
                }
            )

        return self._run(
            "find_files",
            lambda: file_io.find_files(
                self.sandbox,
                path,
                sort_by=sort_by,
                order=order,
                limit=limit,
                file_types=file_types,
                modified_after=modified_after,
                modified_before=modified_before,
                min_size=min_size,
                max_size=max_size,
                include_directories=include_directories,
            ),
            render,
        )

    # -------------------------------------------------------------------------
    # Info
    # -------------------------------------------------------------------------

    def info(self, path: str) -> ToolResult:
        return self._run(
            "get_file_info",
            lambda: file_io.get_file_info(self.sandbox, path),
            lambda info: "\n".join(f"{key}: {value}" for key, value in info.items()),
        )

    def bulk_info(self, paths: Sequence[str], *, include_errors: bool = True) -> ToolResult:
        return self._run(
            "get_bulk_file_info",
            lambda: file_io.get_bulk_file_info(
                self.sandbox, paths, include_errors=include_errors
            ),
            to_json,
        )

    def allowed_directories(self) -> ToolResult:
        roots = list(self.sandbox.roots)
        return ToolResult(
            success=True,
            output="Allowed directories:\n" + "\n".join(roots),
            data=roots,
        )

    def server_info(self) -> ToolResult:
        info = {
            "server": {"name": SERVER_NAME, "version": __version__},
            "runtime": {
                "python_version": platform.python_version(),
                "platform": sys.platform,
                "started_at": self.started_at,
            },
            "configuration": {
                "authentication_enabled": self.auth_enabled,
                "allowed_directories": list(self.sandbox.roots),
            },
        }
        return ToolResult(success=True, output=to_json(info), data=info)


__all__ = [
    "EditOperation",
    "FileTools",
    "ToolResult",
    "render_error",
]
