"""Storage infrastructure for fsroots.

Provides the path sandbox, diff rendering, tree search and the sandboxed
file operations built on top of them.
"""

from .path_guard import (
    AllowedRoots,
    PathSandbox,
    ValidatedPath,
    is_within_root,
    normalize_path,
)
from .diff_engine import (
    NO_CHANGES_MESSAGE,
    apply_unified_diff,
    unified_diff,
)
from .search_engine import (
    FindFilters,
    FindResult,
    glob_match,
    search_paths,
    find_entries,
    sort_and_limit,
    walk_tree,
)
from .file_io import (
    EditOperation,
    EditOutcome,
    read_file,
    write_file,
    edit_file,
    move_file,
    list_directory,
    directory_tree,
    search_files,
    find_files,
    get_file_info,
    get_bulk_file_info,
)
from .file_tools import (
    FileTools,
    ToolResult,
    render_error,
)

__all__ = [
    # Path sandbox
    "AllowedRoots",
    "PathSandbox",
    "ValidatedPath",
    "is_within_root",
    "normalize_path",
    # Diff
    "NO_CHANGES_MESSAGE",
    "apply_unified_diff",
    "unified_diff",
    # Search
    "FindFilters",
    "FindResult",
    "glob_match",
    "search_paths",
    "find_entries",
    "sort_and_limit",
    "walk_tree",
    # File I/O
    "EditOperation",
    "EditOutcome",
    "read_file",
    "write_file",
    "edit_file",
    "move_file",
    "list_directory",
    "directory_tree",
    "search_files",
    "find_files",
    "get_file_info",
    "get_bulk_file_info",
    # File tools (main API)
    "FileTools",
    "ToolResult",
    "render_error",
]
