"""Shared fixtures: an allowed workspace, a directory outside it, and tools bound to it."""

import os
from pathlib import Path

import pytest

from fsroots.infrastructure.storage.file_tools import FileTools
from fsroots.infrastructure.storage.path_guard import AllowedRoots, PathSandbox


@pytest.fixture
def workspace(tmp_path):
    root = tmp_path / "workspace"
    root.mkdir()
    return Path(os.path.realpath(root))


@pytest.fixture
def outside(tmp_path):
    root = tmp_path / "outside"
    root.mkdir()
    (root / "secret.txt").write_text("top secret")
    return Path(os.path.realpath(root))


@pytest.fixture
def sandbox(workspace):
    return PathSandbox(AllowedRoots.from_paths([str(workspace)]))


@pytest.fixture
def file_tools(sandbox):
    return FileTools(sandbox, fsync=False)

