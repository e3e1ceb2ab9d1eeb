"""Typed parameter models, one per tool.

Dispatchers hand over plain JSON argument objects; these models are the
boundary check before anything reaches the storage layer. Wire names
(``dryRun``, ``oldText``, ``excludePatterns``) are accepted as aliases.
"""

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class ToolParams(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)


class PathParams(ToolParams):
    path: str = Field(min_length=1, description="Path inside one of the allowed directories")


class ReadFileParams(PathParams):
    pass


class ReadMultipleFilesParams(ToolParams):
    paths: List[str] = Field(description="Array of file paths to read")


class WriteFileParams(PathParams):
    content: str = Field(description="Content to write to the file")


class EditSpec(ToolParams):
    old_text: str = Field(alias="oldText", description="Text to search for - must match exactly")
    new_text: str = Field(alias="newText", description="Text to replace with")


class EditFileParams(PathParams):
    edits: List[EditSpec] = Field(description="Edits applied in order")
    dry_run: bool = Field(default=False, alias="dryRun", description="Preview changes as a diff")


class CreateDirectoryParams(PathParams):
    pass


class ListDirectoryParams(PathParams):
    include_metadata: bool = Field(
        default=False, description="Include size, dates and permissions per entry"
    )


class DirectoryTreeParams(PathParams):
    pass


class MoveFileParams(ToolParams):
    source: str = Field(min_length=1)
    destination: str = Field(min_length=1)


class SearchFilesParams(PathParams):
    pattern: str = Field(description="Glob matched against each basename, e.g. '*.txt'")
    exclude_patterns: List[str] = Field(
        default_factory=list,
        alias="excludePatterns",
        description="Globs matched against the relative path and the basename",
    )


class FindFilesParams(PathParams):
    sort_by: Literal["modified", "created", "size", "name"] = "name"
    order: Literal["asc", "desc"] = "asc"
    limit: Optional[int] = Field(default=None, ge=1)
    file_types: Optional[List[str]] = Field(
        default=None, description="Extensions without the leading dot, e.g. ['txt', 'pdf']"
    )
    # Kept as strings; the find engine parses them and reports bad dates.
    modified_after: Optional[str] = Field(default=None, description="ISO-8601, inclusive")
    modified_before: Optional[str] = Field(default=None, description="ISO-8601, inclusive")
    min_size: Optional[int] = Field(default=None, ge=0)
    max_size: Optional[int] = Field(default=None, ge=0)
    include_directories: bool = True


class GetFileInfoParams(PathParams):
    pass


class GetBulkFileInfoParams(ToolParams):
    paths: List[str]
    include_errors: bool = True


class EmptyParams(ToolParams):
    pass
