"""Domain errors."""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Error categories surfaced to tool callers."""

    SECURITY = "security"
    NOT_FOUND = "not_found"
    PERMISSION_DENIED = "permission_denied"
    NOT_A_DIRECTORY = "not_a_directory"
    NOT_A_FILE = "not_a_file"
    ALREADY_EXISTS = "already_exists"
    INVALID_PARAMETER = "invalid_parameter"
    UNEXPECTED = "unexpected"


class ConfigurationError(ValueError):
    """Startup configuration is unusable (e.g. an allowed root is missing)."""
    pass


class FileToolError(Exception):
    """File tool error with context."""

    kind: ErrorKind = ErrorKind.UNEXPECTED

    def __init__(self, message: str, path: str = "", operation: str = ""):
        self.message = message
        self.path = path
        self.operation = operation
        super().__init__(f"[{operation}] {path}: {message}" if operation else message)


class PathSecurityError(FileToolError):
    """Path escapes the allowed roots or cannot be validated."""
    kind = ErrorKind.SECURITY


class PathNotFoundError(FileToolError):
    kind = ErrorKind.NOT_FOUND


class PermissionDeniedError(FileToolError):
    kind = ErrorKind.PERMISSION_DENIED


class NotADirectoryPathError(FileToolError):
    kind = ErrorKind.NOT_A_DIRECTORY


class NotAFilePathError(FileToolError):
    kind = ErrorKind.NOT_A_FILE


class AlreadyExistsError(FileToolError):
    kind = ErrorKind.ALREADY_EXISTS


class InvalidParameterError(FileToolError):
    kind = ErrorKind.INVALID_PARAMETER


class UnexpectedToolError(FileToolError):
    kind = ErrorKind.UNEXPECTED


_OS_ERROR_MAP = (
    (FileNotFoundError, PathNotFoundError),
    (PermissionError, PermissionDeniedError),
    (NotADirectoryError, NotADirectoryPathError),
    (IsADirectoryError, NotAFilePathError),
    (FileExistsError, AlreadyExistsError),
)


def from_os_error(exc: OSError, path: str = "", operation: str = "") -> FileToolError:
    """Translate a raw OSError into the matching FileToolError."""
    message = exc.strerror or str(exc)
    for os_type, tool_type in _OS_ERROR_MAP:
        if isinstance(exc, os_type):
            return tool_type(message, path, operation)
    return UnexpectedToolError(str(exc), path, operation)
