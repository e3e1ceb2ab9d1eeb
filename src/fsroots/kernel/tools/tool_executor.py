"""Tool executor for fsroots.

Maps a tool invocation (name + JSON argument object) onto `FileTools`,
validating the arguments against the tool's parameter model first. The
executor is the outermost boundary: `execute` always returns a string.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Optional

import structlog
from pydantic import ValidationError

from fsroots.domain.errors import ErrorKind
from fsroots.infrastructure.storage.file_io import EditOperation
from fsroots.infrastructure.storage.file_tools import FileTools, ToolResult
from fsroots.kernel.tools import tool_models as models
from fsroots.kernel.tools.tool_contract import (
    canonicalize_tool_name,
    params_model,
    supported_tool_names,
)

logger = structlog.get_logger()


def _format_validation_error(exc: ValidationError) -> str:
    problems = []
    for item in exc.errors():
        location = ".".join(str(part) for part in item.get("loc", ())) or "args"
        problems.append(f"{location}: {item.get('msg', 'invalid value')}")
    return "; ".join(problems)


class ToolExecutor:
    """Execute tools with argument validation and an optional auth gate."""

    def __init__(self, file_tools: FileTools, *, auth_required: bool = False):
        """Initialize tool executor.

        Args:
            file_tools: Sandboxed file tools bound to the allowed roots
            auth_required: Reject calls whose caller is not authenticated.
                Credential checks belong to the dispatcher; the executor
                only honors the flag it is given per call.
        """
        self.file_tools = file_tools
        self.auth_required = auth_required
        self._handlers: Dict[str, Callable[[Any], ToolResult]] = {
            "read_file": self._read_file,
            "read_multiple_files": self._read_multiple_files,
            "write_file": self._write_file,
            "edit_file": self._edit_file,
            "create_directory": self._create_directory,
            "list_directory": self._list_directory,
            "directory_tree": self._directory_tree,
            "move_file": self._move_file,
            "search_files": self._search_files,
            "find_files": self._find_files,
            "get_file_info": self._get_file_info,
            "get_bulk_file_info": self._get_bulk_file_info,
            "list_allowed_directories": lambda _: self.file_tools.allowed_directories(),
            "get_server_info": lambda _: self.file_tools.server_info(),
        }

    def run(
        self,
        tool: str,
        args: Optional[Dict[str, Any]] = None,
        *,
        authenticated: bool = False,
    ) -> ToolResult:
        """Execute a tool and return the structured result."""
        if self.auth_required and not authenticated:
            logger.warning("tool_auth_rejected", tool=tool)
            return ToolResult(
                success=False,
                error="Authentication required",
                error_kind=ErrorKind.SECURITY,
            )

        canonical = canonicalize_tool_name(tool, keep_unknown=False)
        if not canonical:
            return ToolResult(
                success=False,
                error=f"Unsupported tool '{tool}'. Allowed: {', '.join(supported_tool_names())}",
                error_kind=ErrorKind.INVALID_PARAMETER,
            )

        try:
            params = params_model(canonical).model_validate(args or {})
        except ValidationError as exc:
            logger.warning("tool_args_invalid", tool=canonical, errors=exc.error_count())
            return ToolResult(
                success=False,
                error=_format_validation_error(exc),
                error_kind=ErrorKind.INVALID_PARAMETER,
            )

        logger.debug("tool_execute", tool=canonical)
        return self._handlers[canonical](params)

    def execute(
        self,
        tool: str,
        args: Optional[Dict[str, Any]] = None,
        *,
        authenticated: bool = False,
    ) -> str:
        """Execute a tool and render its result as the response string."""
        return self.run(tool, args, authenticated=authenticated).render()

    # -------------------------------------------------------------------------
    # Handlers
    # -------------------------------------------------------------------------

    def _read_file(self, params: models.ReadFileParams) -> ToolResult:
        return self.file_tools.read(params.path)

    def _read_multiple_files(self, params: models.ReadMultipleFilesParams) -> ToolResult:
        return self.file_tools.read_many(params.paths)

    def _write_file(self, params: models.WriteFileParams) -> ToolResult:
        return self.file_tools.write(params.path, params.content)

    def _edit_file(self, params: models.EditFileParams) -> ToolResult:
        edits = [EditOperation(old_text=e.old_text, new_text=e.new_text) for e in params.edits]
        return self.file_tools.edit(params.path, edits, dry_run=params.dry_run)

    def _create_directory(self, params: models.CreateDirectoryParams) -> ToolResult:
        return self.file_tools.mkdir(params.path)

    def _list_directory(self, params: models.ListDirectoryParams) -> ToolResult:
        return self.file_tools.list(params.path, include_metadata=params.include_metadata)

    def _directory_tree(self, params: models.DirectoryTreeParams) -> ToolResult:
        return self.file_tools.tree(params.path)

    def _move_file(self, params: models.MoveFileParams) -> ToolResult:
        return self.file_tools.move(params.source, params.destination)

    def _search_files(self, params: models.SearchFilesParams) -> ToolResult:
        return self.file_tools.search(params.path, params.pattern, params.exclude_patterns)

    def _find_files(self, params: models.FindFilesParams) -> ToolResult:
        return self.file_tools.find(
            params.path,
            sort_by=params.sort_by,
            order=params.order,
            limit=params.limit,
            file_types=params.file_types,
            modified_after=params.modified_after,
            modified_before=params.modified_before,
            min_size=params.min_size,
            max_size=params.max_size,
            include_directories=params.include_directories,
        )

    def _get_file_info(self, params: models.GetFileInfoParams) -> ToolResult:
        return self.file_tools.info(params.path)

    def _get_bulk_file_info(self, params: models.GetBulkFileInfoParams) -> ToolResult:
        return self.file_tools.bulk_info(params.paths, include_errors=params.include_errors)


def execute_tool(
    tool: str,
    args: Dict[str, Any],
    file_tools: FileTools,
    *,
    auth_required: bool = False,
    authenticated: bool = False,
) -> str:
    """Execute a tool with the given configuration."""
    executor = ToolExecutor(file_tools, auth_required=auth_required)
    return executor.execute(tool, args, authenticated=authenticated)
