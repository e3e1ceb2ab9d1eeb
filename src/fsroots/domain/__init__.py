"""Domain types shared across fsroots layers."""

from fsroots.domain.errors import (
    AlreadyExistsError,
    ConfigurationError,
    ErrorKind,
    FileToolError,
    InvalidParameterError,
    NotADirectoryPathError,
    NotAFilePathError,
    PathNotFoundError,
    PathSecurityError,
    PermissionDeniedError,
    UnexpectedToolError,
    from_os_error,
)

__all__ = [
    "AlreadyExistsError",
    "ConfigurationError",
    "ErrorKind",
    "FileToolError",
    "InvalidParameterError",
    "NotADirectoryPathError",
    "NotAFilePathError",
    "PathNotFoundError",
    "PathSecurityError",
    "PermissionDeniedError",
    "UnexpectedToolError",
    "from_os_error",
]
