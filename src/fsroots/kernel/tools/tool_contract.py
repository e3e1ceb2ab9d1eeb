"""Tool contract definitions for fsroots.

Defines tool specifications, aliases, categories and the parameter model
each tool validates its arguments against.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional, Type

from fsroots.kernel.tools.tool_models import (
    CreateDirectoryParams,
    DirectoryTreeParams,
    EditFileParams,
    EmptyParams,
    FindFilesParams,
    GetBulkFileInfoParams,
    GetFileInfoParams,
    ListDirectoryParams,
    MoveFileParams,
    ReadFileParams,
    ReadMultipleFilesParams,
    SearchFilesParams,
    ToolParams,
    WriteFileParams,
)


ToolSpec = Dict[str, Any]


# Tool specifications with categories: read, write
_TOOL_SPECS: Dict[str, ToolSpec] = {
    # Read tools
    "read_file": {
        "category": "read",
        "aliases": ["read", "cat"],
        "params": ReadFileParams,
        "description": "Read the complete contents of a single file. Only works within allowed directories.",
    },
    "read_multiple_files": {
        "category": "read",
        "aliases": ["read_many"],
        "params": ReadMultipleFilesParams,
        "description": "Read the contents of multiple files. Returns content prefixed by path, or an error message per file.",
    },
    "list_directory": {
        "category": "read",
        "aliases": ["ls", "list_dir"],
        "params": ListDirectoryParams,
        "description": "List files and directories in a path as a JSON array of {type, name} entries.",
    },
    "directory_tree": {
        "category": "read",
        "aliases": ["tree"],
        "params": DirectoryTreeParams,
        "description": "Get a recursive tree view of files and directories as a JSON structure.",
    },
    "search_files": {
        "category": "read",
        "aliases": ["search", "glob"],
        "params": SearchFilesParams,
        "description": "Recursively search for files/directories whose name matches a glob pattern. Case-insensitive.",
    },
    "find_files": {
        "category": "read",
        "aliases": ["find"],
        "params": FindFilesParams,
        "description": "Advanced file finder with filtering by type, size and modification date, plus sorting and limits.",
    },
    "get_file_info": {
        "category": "read",
        "aliases": ["stat", "file_info"],
        "params": GetFileInfoParams,
        "description": "Retrieve metadata (size, dates, type, permissions) for a file or directory.",
    },
    "get_bulk_file_info": {
        "category": "read",
        "aliases": ["bulk_stat"],
        "params": GetBulkFileInfoParams,
        "description": "Retrieve metadata for multiple files or directories in a single operation.",
    },
    "list_allowed_directories": {
        "category": "read",
        "aliases": ["roots"],
        "params": EmptyParams,
        "description": "List the base directories the server is configured to access.",
    },
    "get_server_info": {
        "category": "read",
        "aliases": ["server_info"],
        "params": EmptyParams,
        "description": "Get server version, runtime information, and configuration details.",
    },
    # Write tools
    "write_file": {
        "category": "write",
        "aliases": ["write", "create_file"],
        "params": WriteFileParams,
        "description": "Create a new file or overwrite an existing file with content. Use with caution.",
    },
    "edit_file": {
        "category": "write",
        "aliases": ["edit", "replace_text"],
        "params": EditFileParams,
        "description": "Make exact text replacements in a file. Use dryRun=true to preview changes as a unified diff.",
    },
    "create_directory": {
        "category": "write",
        "aliases": ["mkdir"],
        "params": CreateDirectoryParams,
        "description": "Create a directory. The parent directory must already exist.",
    },
    "move_file": {
        "category": "write",
        "aliases": ["mv", "rename"],
        "params": MoveFileParams,
        "description": "Move or rename a file or directory. Fails if the destination exists.",
    },
}


def _build_alias_index() -> Dict[str, str]:
    """Build index of tool aliases to canonical names."""
    index: Dict[str, str] = {}
    for canonical, spec in _TOOL_SPECS.items():
        index[canonical.lower()] = canonical
        for alias in spec.get("aliases", []):
            alias_name = str(alias or "").strip().lower()
            if alias_name:
                index[alias_name] = canonical
    return index


_TOOL_ALIAS_INDEX = _build_alias_index()


def canonicalize_tool_name(name: str, *, keep_unknown: bool = True) -> str:
    """Convert alias to canonical tool name.

    Args:
        name: Tool name or alias
        keep_unknown: If True, return input if not found; else return empty

    Returns:
        Canonical tool name or original/empty depending on keep_unknown
    """
    cleaned = str(name or "").strip()
    if not cleaned:
        return ""
    canonical = _TOOL_ALIAS_INDEX.get(cleaned.lower())
    if canonical:
        return canonical
    return cleaned if keep_unknown else ""


def params_model(tool: str) -> Type[ToolParams]:
    """Parameter model for a canonical tool name.

    Raises:
        KeyError: unknown tool
    """
    return _TOOL_SPECS[tool]["params"]


def tool_category(tool: str) -> str:
    return str(_TOOL_SPECS.get(tool, {}).get("category") or "")


def read_tool_names() -> List[str]:
    """Get list of read-only tool names."""
    return sorted(
        [name for name, spec in _TOOL_SPECS.items() if str(spec.get("category") or "") == "read"]
    )


def write_tool_names() -> List[str]:
    """Get list of write tool names."""
    return sorted(
        [name for name, spec in _TOOL_SPECS.items() if str(spec.get("category") or "") == "write"]
    )


def supported_tool_names() -> List[str]:
    """Get all supported tool names."""
    return sorted(_TOOL_SPECS.keys())


def list_tool_contracts(categories: Optional[Iterable[str]] = None) -> List[Dict[str, Any]]:
    """List tool contracts, with JSON schemas, filtered by category.

    A dispatcher registers each entry as ``name``/``description``/``input_schema``.

    Args:
        categories: Optional categories to filter ("read", "write")

    Returns:
        List of tool contract dicts
    """
    if categories is None:
        allowed = {"read", "write"}
    else:
        allowed = {str(item).strip().lower() for item in categories if str(item or "").strip()}
    contracts: List[Dict[str, Any]] = []
    for name in sorted(_TOOL_SPECS.keys()):
        spec = _TOOL_SPECS[name]
        category = str(spec.get("category") or "").strip().lower()
        if category not in allowed:
            continue
        contracts.append(
            {
                "name": name,
                "category": category,
                "aliases": list(spec.get("aliases", [])),
                "description": str(spec.get("description") or ""),
                "input_schema": spec["params"].model_json_schema(by_alias=True),
            }
        )
    return contracts
