"""Path sandbox: confine every tool path to a fixed set of allowed roots.

Validation happens in two passes:
1. Lexical - the normalized requested path must sit under an allowed root.
   This rejects ``../../etc/passwd`` style input before touching the disk.
2. Physical - for existing targets the fully symlink-resolved real path must
   also sit under an allowed root; for new targets the parent directory must
   exist and resolve inside the roots.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator, Tuple

import structlog

from fsroots.domain.errors import ConfigurationError, PathSecurityError

logger = structlog.get_logger()


def expand_home(raw: str) -> str:
    """Expand a leading ``~`` marker."""
    return os.path.expanduser(raw) if raw.startswith("~") else raw


def normalize_path(path: str | os.PathLike) -> str:
    """Absolute, lexically normalized form (``.``/``..`` collapsed, no disk access)."""
    raw = os.fspath(path)
    if not str(raw).strip():
        raise PathSecurityError("path is required", str(raw), "validate")
    return os.path.normpath(os.path.abspath(expand_home(str(raw))))


def is_within_root(root: str, candidate: str) -> bool:
    """True when `candidate` equals `root` or lives beneath it.

    The separator is part of the prefix so ``/data`` never matches
    ``/data-other``.
    """
    if candidate == root:
        return True
    prefix = root if root.endswith(os.sep) else root + os.sep
    return candidate.startswith(prefix)


@dataclass(frozen=True)
class AllowedRoots:
    """Ordered, deduplicated, symlink-resolved root directories.

    Built once at startup and shared read-only between calls.
    """

    paths: Tuple[str, ...]

    @classmethod
    def from_paths(cls, paths: Iterable[str | os.PathLike]) -> "AllowedRoots":
        resolved: list[str] = []
        for raw in paths:
            text = os.fspath(raw)
            expanded = os.path.abspath(expand_home(str(text)))
            try:
                real = str(Path(expanded).resolve(strict=True))
            except (OSError, RuntimeError) as exc:
                raise ConfigurationError(
                    f"allowed directory {text!r} does not exist or cannot be accessed: {exc}"
                ) from exc
            if not os.path.isdir(real):
                raise ConfigurationError(f"allowed directory {text!r} is not a directory")
            real = os.path.normpath(real)
            if real not in resolved:
                resolved.append(real)
        if not resolved:
            raise ConfigurationError("at least one allowed directory is required")
        return cls(paths=tuple(resolved))

    def contains(self, candidate: str) -> bool:
        return any(is_within_root(root, candidate) for root in self.paths)

    def __iter__(self) -> Iterator[str]:
        return iter(self.paths)

    def __len__(self) -> int:
        return len(self.paths)


@dataclass(frozen=True)
class ValidatedPath:
    """A path that passed sandbox validation.

    `path` is the resolved real path for existing targets and the
    normalized requested path for targets that do not exist yet.
    """

    path: str
    exists: bool
    requested: str = ""

    def __fspath__(self) -> str:
        return self.path

    def __str__(self) -> str:
        return self.path


def _resolve_strict(path: str, requested: str, what: str) -> str:
    try:
        return os.path.normpath(str(Path(path).resolve(strict=True)))
    except PermissionError as exc:
        raise PathSecurityError(
            f"Permission denied while accessing {what}'{requested}': {exc.strerror or exc}",
            requested,
            "validate",
        ) from exc
    except FileNotFoundError:
        raise
    except (OSError, RuntimeError, ValueError) as exc:
        # Symlink loops surface as RuntimeError on older interpreters;
        # embedded NUL bytes as ValueError.
        raise PathSecurityError(
            f"Cannot resolve {what}'{requested}': {exc}", requested, "validate"
        ) from exc


class PathSandbox:
    """Validate user-supplied paths against an `AllowedRoots` set.

    Usage:
        sandbox = PathSandbox(AllowedRoots.from_paths(["~/projects"]))
        target = sandbox.validate("~/projects/notes.txt")
        sandbox.validate("~/projects/../.ssh/id_rsa")  # raises PathSecurityError
    """

    def __init__(self, roots: AllowedRoots):
        self.roots = roots

    def validate(self, requested_path: str | os.PathLike) -> ValidatedPath:
        """Validate `requested_path`.

        Raises:
            PathSecurityError: the path, its symlink target, or (for new
                paths) its parent lies outside the allowed roots, or
                resolution failed.
        """
        requested = os.fspath(requested_path)
        normalized = normalize_path(requested)

        if not self.roots.contains(normalized):
            logger.warning("path_outside_roots", path=requested)
            raise PathSecurityError(
                f"Access denied: Path '{requested}' resolves outside allowed directories.",
                requested,
                "validate",
            )

        try:
            os.lstat(normalized)
            present = True
        except (FileNotFoundError, NotADirectoryError):
            present = False
        except PermissionError as exc:
            raise PathSecurityError(
                f"Permission denied while accessing '{requested}': {exc.strerror or exc}",
                requested,
                "validate",
            ) from exc
        except (OSError, ValueError) as exc:
            logger.warning("path_unresolvable", path=requested, error=str(exc))
            raise PathSecurityError(
                f"Cannot access '{requested}': {getattr(exc, 'strerror', None) or exc}",
                requested,
                "validate",
            ) from exc

        if present:
            try:
                real = _resolve_strict(normalized, requested, "")
            except FileNotFoundError:
                # Dangling symlink: its eventual target must also stay inside.
                target = os.path.normpath(os.path.realpath(normalized))
                if not self.roots.contains(target):
                    logger.warning("symlink_escape", path=requested, target=target)
                    raise PathSecurityError(
                        f"Access denied: Path '{requested}' resolves via symlinks outside allowed directories.",
                        requested,
                        "validate",
                    )
                self._check_parent(target, requested)
                return ValidatedPath(path=normalized, exists=False, requested=requested)

            if not self.roots.contains(real):
                logger.warning("symlink_escape", path=requested, target=real)
                raise PathSecurityError(
                    f"Access denied: Path '{requested}' resolves via symlinks outside allowed directories.",
                    requested,
                    "validate",
                )
            return ValidatedPath(path=real, exists=True, requested=requested)

        self._check_parent(normalized, requested)
        return ValidatedPath(path=normalized, exists=False, requested=requested)

    def _check_parent(self, normalized: str, requested: str) -> None:
        parent = os.path.dirname(normalized)
        try:
            real_parent = _resolve_strict(parent, requested, "parent of ")
        except FileNotFoundError as exc:
            raise PathSecurityError(
                f"Access denied: Cannot create '{requested}'. Parent directory does not exist.",
                requested,
                "validate",
            ) from exc

        if not os.path.isdir(real_parent):
            raise PathSecurityError(
                f"Access denied: Cannot create '{requested}'. Parent is not a directory.",
                requested,
                "validate",
            )
        if not self.roots.contains(real_parent):
            logger.warning("parent_outside_roots", path=requested, parent=real_parent)
            raise PathSecurityError(
                f"Access denied: Cannot create '{requested}'. Parent directory resolves outside allowed directories.",
                requested,
                "validate",
            )

    def is_allowed(self, path: str | os.PathLike) -> bool:
        """Quick check that never raises."""
        try:
            self.validate(path)
            return True
        except PathSecurityError:
            return False

    def __repr__(self) -> str:
        return f"PathSandbox(roots={list(self.roots.paths)!r})"
