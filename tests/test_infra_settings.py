"""Tests for environment parsing and settings."""

import os

import pytest
from pydantic import ValidationError

from fsroots.bootstrap import bootstrap
from fsroots.config import Settings
from fsroots.domain.errors import ConfigurationError
from fsroots.infrastructure.config.settings_utils import env_bool, env_list, parse_bool, split_list
from fsroots.kernel.tools.tool_executor import ToolExecutor

_ENV_VARS = (
    "FSROOTS_ALLOWED_DIRS",
    "FSROOTS_ENABLE_AUTH",
    "FSROOTS_API_KEY",
    "FSROOTS_LOG_LEVEL",
    "FSROOTS_LOG_JSON",
    "FSROOTS_IO_FSYNC",
    "ALLOWED_DIRECTORIES",
    "ENABLE_AUTH",
    "API_KEY",
    "LOG_LEVEL",
    "LOG_JSON",
    "IO_FSYNC",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_parse_bool():
    assert parse_bool("YES") is True
    assert parse_bool(" off ") is False
    assert parse_bool("maybe", default=True) is True
    assert parse_bool(None) is False


def test_split_list_multiple_separators():
    assert split_list("a, b;;c ", ",;") == ["a", "b", "c"]


def test_env_list_and_bool(monkeypatch):
    monkeypatch.setenv("FSROOTS_ALLOWED_DIRS", f"/a{os.pathsep}/b, /c")
    assert env_list("FSROOTS_ALLOWED_DIRS", separators="," + os.pathsep) == ["/a", "/b", "/c"]
    monkeypatch.setenv("FSROOTS_ALLOWED_DIRS", " , ")
    assert env_list("FSROOTS_ALLOWED_DIRS", default=["/d"]) == ["/d"]
    monkeypatch.setenv("FSROOTS_LOG_JSON", "1")
    assert env_bool("FSROOTS_LOG_JSON") is True


class TestSettings:
    """Settings loaded from the environment."""

    def test_defaults(self):
        settings = Settings()
        assert settings.allowed_directories == []
        assert settings.enable_auth is False
        assert settings.io_fsync is True
        assert settings.log_level == "INFO"

    def test_allowed_dirs_from_env(self, monkeypatch, tmp_path):
        a = tmp_path / "a"
        b = tmp_path / "b"
        a.mkdir()
        b.mkdir()
        monkeypatch.setenv("FSROOTS_ALLOWED_DIRS", f"{a},{b}")
        settings = Settings()
        assert settings.allowed_directories == [str(a), str(b)]
        assert list(settings.allowed_roots()) == [os.path.realpath(a), os.path.realpath(b)]

    def test_only_documented_variable_sets_roots(self, monkeypatch, tmp_path):
        monkeypatch.setenv("FSROOTS_ALLOWED_DIRECTORIES", "not json")
        monkeypatch.setenv("FSROOTS_ALLOWED_DIRS", str(tmp_path))
        assert Settings().allowed_directories == [str(tmp_path)]

    def test_auth_requires_api_key(self, monkeypatch):
        monkeypatch.setenv("FSROOTS_ENABLE_AUTH", "true")
        with pytest.raises(ValidationError):
            Settings()
        monkeypatch.setenv("FSROOTS_API_KEY", "secret")
        assert Settings().enable_auth is True

    def test_missing_root_fails_at_startup(self, tmp_path):
        settings = Settings(allowed_directories=[str(tmp_path / "missing")])
        with pytest.raises(ConfigurationError):
            settings.allowed_roots()


def test_bootstrap_builds_executor(tmp_path):
    settings = Settings(allowed_directories=[str(tmp_path)], io_fsync=False)
    executor = bootstrap(settings)
    assert isinstance(executor, ToolExecutor)
    assert executor.auth_required is False
    assert executor.execute("list_allowed_directories") == (
        f"Allowed directories:\n{os.path.realpath(tmp_path)}"
    )
