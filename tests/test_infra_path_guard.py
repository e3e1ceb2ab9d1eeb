"""Tests for the path sandbox."""

import os

import pytest

from fsroots.domain.errors import ConfigurationError, ErrorKind, PathSecurityError
from fsroots.infrastructure.storage.path_guard import (
    AllowedRoots,
    PathSandbox,
    is_within_root,
    normalize_path,
)


class TestAllowedRoots:
    """Root set construction."""

    def test_roots_are_resolved_and_deduplicated(self, tmp_path):
        real = tmp_path / "real"
        real.mkdir()
        link = tmp_path / "link"
        link.symlink_to(real, target_is_directory=True)

        roots = AllowedRoots.from_paths([str(real), str(link), str(real) + "/."])
        assert roots.paths == (os.path.realpath(real),)

    def test_order_is_preserved(self, tmp_path):
        a = tmp_path / "a"
        b = tmp_path / "b"
        a.mkdir()
        b.mkdir()
        roots = AllowedRoots.from_paths([str(b), str(a)])
        assert list(roots) == [os.path.realpath(b), os.path.realpath(a)]

    def test_missing_root_is_rejected(self, tmp_path):
        with pytest.raises(ConfigurationError):
            AllowedRoots.from_paths([str(tmp_path / "nope")])

    def test_file_root_is_rejected(self, tmp_path):
        target = tmp_path / "file.txt"
        target.write_text("x")
        with pytest.raises(ConfigurationError, match="not a directory"):
            AllowedRoots.from_paths([str(target)])

    def test_empty_root_list_is_rejected(self):
        with pytest.raises(ConfigurationError):
            AllowedRoots.from_paths([])

    def test_home_marker_is_expanded(self, tmp_path, monkeypatch):
        monkeypatch.setenv("HOME", str(tmp_path))
        (tmp_path / "projects").mkdir()
        roots = AllowedRoots.from_paths(["~/projects"])
        assert roots.paths == (os.path.realpath(tmp_path / "projects"),)


def test_is_within_root_uses_separator_boundary():
    assert is_within_root("/data", "/data")
    assert is_within_root("/data", "/data/file.txt")
    assert not is_within_root("/data", "/data-other/file.txt")
    assert is_within_root("/", "/etc/passwd")


def test_normalize_path_collapses_dot_segments(tmp_path):
    raw = str(tmp_path / "a" / ".." / "b" / "." / "c")
    assert normalize_path(raw) == os.path.join(str(tmp_path), "b", "c")


class TestLexicalChecks:
    """Rejections that need no filesystem access."""

    def test_outside_path_is_rejected(self, sandbox, outside):
        with pytest.raises(PathSecurityError) as exc_info:
            sandbox.validate(str(outside / "secret.txt"))
        assert exc_info.value.kind is ErrorKind.SECURITY

    def test_nonexistent_outside_path_is_rejected(self, sandbox, outside):
        with pytest.raises(PathSecurityError):
            sandbox.validate(str(outside / "does-not-exist.txt"))

    def test_traversal_is_rejected(self, sandbox, workspace):
        for attempt in (
            str(workspace / ".." / "outside" / "secret.txt"),
            str(workspace / "sub" / ".." / ".." / "etc"),
            str(workspace) + "/../" * 10 + "etc/passwd",
        ):
            with pytest.raises(PathSecurityError):
                sandbox.validate(attempt)

    def test_sibling_with_common_prefix_is_rejected(self, sandbox, workspace):
        sibling = workspace.parent / (workspace.name + "-other")
        sibling.mkdir()
        (sibling / "file.txt").write_text("x")
        with pytest.raises(PathSecurityError):
            sandbox.validate(str(sibling / "file.txt"))

    def test_empty_path_is_rejected(self, sandbox):
        with pytest.raises(PathSecurityError):
            sandbox.validate("   ")

    def test_relative_path_resolves_from_cwd(self, sandbox, workspace, monkeypatch):
        (workspace / "notes.txt").write_text("hi")
        monkeypatch.chdir(workspace)
        validated = sandbox.validate("notes.txt")
        assert validated.exists
        assert validated.path == str(workspace / "notes.txt")


class TestExistingTargets:
    """Existing targets are checked via their real path."""

    def test_root_itself_is_allowed(self, sandbox, workspace):
        validated = sandbox.validate(str(workspace))
        assert validated.exists
        assert validated.path == str(workspace)

    def test_existing_file_returns_real_path(self, sandbox, workspace):
        (workspace / "a.txt").write_text("a")
        validated = sandbox.validate(str(workspace / "sub" / ".." / "a.txt"))
        assert validated.exists
        assert validated.path == str(workspace / "a.txt")
        assert os.fspath(validated) == validated.path

    def test_symlink_escaping_roots_is_rejected(self, sandbox, workspace, outside):
        link = workspace / "escape.txt"
        link.symlink_to(outside / "secret.txt")
        with pytest.raises(PathSecurityError, match="symlinks"):
            sandbox.validate(str(link))

    def test_symlinked_directory_escape_is_rejected(self, sandbox, workspace, outside):
        (workspace / "linkdir").symlink_to(outside, target_is_directory=True)
        with pytest.raises(PathSecurityError):
            sandbox.validate(str(workspace / "linkdir" / "secret.txt"))
        with pytest.raises(PathSecurityError):
            sandbox.validate(str(workspace / "linkdir" / "new.txt"))

    def test_symlink_inside_roots_is_allowed(self, sandbox, workspace):
        target = workspace / "target.txt"
        target.write_text("ok")
        (workspace / "alias.txt").symlink_to(target)
        validated = sandbox.validate(str(workspace / "alias.txt"))
        assert validated.path == str(target)

    def test_dangling_symlink_pointing_outside_is_rejected(self, sandbox, workspace, outside):
        (workspace / "dangling").symlink_to(outside / "not-yet.txt")
        with pytest.raises(PathSecurityError):
            sandbox.validate(str(workspace / "dangling"))

    def test_is_allowed_never_raises(self, sandbox, workspace, outside):
        assert sandbox.is_allowed(str(workspace))
        assert not sandbox.is_allowed(str(outside))


class TestNewTargets:
    """Not-yet-existing targets are checked via their parent."""

    def test_new_file_with_allowed_parent(self, sandbox, workspace):
        validated = sandbox.validate(str(workspace / "sub" / ".." / "new.txt"))
        assert validated.exists is False
        assert validated.path == str(workspace / "new.txt")

    def test_missing_parent_is_rejected(self, sandbox, workspace):
        with pytest.raises(PathSecurityError, match="Parent directory does not exist"):
            sandbox.validate(str(workspace / "missing" / "new.txt"))

    def test_parent_that_is_a_file_is_rejected(self, sandbox, workspace):
        (workspace / "file.txt").write_text("x")
        with pytest.raises(PathSecurityError):
            sandbox.validate(str(workspace / "file.txt" / "child"))

    def test_multiple_roots(self, tmp_path):
        a = tmp_path / "a"
        b = tmp_path / "b"
        a.mkdir()
        b.mkdir()
        sandbox = PathSandbox(AllowedRoots.from_paths([str(a), str(b)]))
        assert sandbox.validate(str(b / "new.txt")).exists is False
        with pytest.raises(PathSecurityError):
            sandbox.validate(str(tmp_path / "c.txt"))


class TestUnresolvablePaths:
    """System errors during validation surface as security errors."""

    def test_overlong_component(self, sandbox, workspace):
        with pytest.raises(PathSecurityError):
            sandbox.validate(str(workspace / ("a" * 300) / "x"))
        with pytest.raises(PathSecurityError):
            sandbox.validate(str(workspace / ("a" * 300)))

    def test_embedded_nul_byte(self, sandbox, workspace):
        with pytest.raises(PathSecurityError):
            sandbox.validate(str(workspace) + "/bad\0name.txt")

    def test_symlink_loop_in_middle_component(self, sandbox, workspace):
        (workspace / "loop_a").symlink_to(workspace / "loop_b")
        (workspace / "loop_b").symlink_to(workspace / "loop_a")
        with pytest.raises(PathSecurityError):
            sandbox.validate(str(workspace / "loop_a" / "child.txt"))
        assert not sandbox.is_allowed(str(workspace / "loop_a"))
