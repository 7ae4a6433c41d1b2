"""Tests for reqtree.config -- XDG paths, atomic writes, precedence."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any
from unittest.mock import patch

import pytest

from reqtree.config import (
    atomic_write,
    default_workspace_path,
    get_config_dir,
    get_data_dir,
    load_global_config,
    load_project_config,
    parse_timeout,
    resolve_config,
    save_global_config,
)
from reqtree.exceptions import ConfigError
from reqtree.models import GlobalConfig, OutputConfig, RequestConfig


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _write_json(path: Path, data: Any) -> None:
    """Write a dict as JSON to *path*, creating parent dirs."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")


# ---------------------------------------------------------------------------
# XDG path resolution
# ---------------------------------------------------------------------------


class TestXDGPaths:
    def test_config_dir_from_env(self, isolated_config: Path) -> None:
        path = get_config_dir()
        assert path == isolated_config / "config" / "reqtree"
        assert path.is_dir()

    def test_data_dir_from_env(self, isolated_config: Path) -> None:
        path = get_data_dir()
        assert path == isolated_config / "data" / "reqtree"
        assert path.is_dir()

    def test_config_dir_xdg_default(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("reqtree.config._is_xdg_platform", lambda: True)
        monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
        monkeypatch.setattr(Path, "home", staticmethod(lambda: tmp_path))
        assert get_config_dir() == tmp_path / ".config" / "reqtree"

    def test_data_dir_xdg_default(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("reqtree.config._is_xdg_platform", lambda: True)
        monkeypatch.delenv("XDG_DATA_HOME", raising=False)
        monkeypatch.setattr(Path, "home", staticmethod(lambda: tmp_path))
        assert get_data_dir() == tmp_path / ".local" / "share" / "reqtree"

    def test_fallback_on_macos(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("reqtree.config._is_xdg_platform", lambda: False)
        monkeypatch.setattr(Path, "home", staticmethod(lambda: tmp_path))
        assert get_config_dir() == tmp_path / ".reqtree"
        assert get_data_dir() == tmp_path / ".reqtree" / "data"

    def test_default_workspace_path(self, isolated_config: Path) -> None:
        assert default_workspace_path() == isolated_config / "data" / "reqtree" / "workspace.json"


# ---------------------------------------------------------------------------
# Atomic writes
# ---------------------------------------------------------------------------


class TestAtomicWrite:
    def test_creates_parents(self, tmp_path: Path) -> None:
        path = tmp_path / "a" / "b" / "file.json"
        atomic_write(path, "{}")
        assert path.read_text(encoding="utf-8") == "{}"

    def test_replaces_content(self, tmp_path: Path) -> None:
        path = tmp_path / "file.txt"
        path.write_text("old", encoding="utf-8")
        atomic_write(path, "new")
        assert path.read_text(encoding="utf-8") == "new"

    def test_no_temp_files_left(self, tmp_path: Path) -> None:
        atomic_write(tmp_path / "file.txt", "data")
        assert [p.name for p in tmp_path.iterdir()] == ["file.txt"]

    def test_failure_cleans_up(self, tmp_path: Path) -> None:
        path = tmp_path / "file.txt"
        path.write_text("keep", encoding="utf-8")
        with patch("reqtree.config.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(OSError, match="disk full"):
                atomic_write(path, "lost")
        assert path.read_text(encoding="utf-8") == "keep"
        assert [p.name for p in tmp_path.iterdir()] == ["file.txt"]


# ---------------------------------------------------------------------------
# Global config
# ---------------------------------------------------------------------------


class TestGlobalConfig:
    def test_defaults_when_missing(self, isolated_config: Path) -> None:
        config = load_global_config()
        assert config == GlobalConfig()
        assert config.request.timeout == 30

    def test_save_and_load(self, isolated_config: Path) -> None:
        config = GlobalConfig(
            workspace_path="/srv/ws.json",
            request=RequestConfig(timeout=5, verify_ssl=False),
        )
        save_global_config(config)
        assert (isolated_config / "config" / "reqtree" / "config.json").is_file()
        assert load_global_config() == config

    def test_invalid_json(self, isolated_config: Path) -> None:
        path = isolated_config / "config" / "reqtree" / "config.json"
        path.parent.mkdir(parents=True)
        path.write_text("{nope", encoding="utf-8")
        with pytest.raises(ConfigError, match="Invalid global config"):
            load_global_config()

    def test_invalid_shape(self, isolated_config: Path) -> None:
        _write_json(
            isolated_config / "config" / "reqtree" / "config.json",
            {"request": {"timeout": "soon"}},
        )
        with pytest.raises(ConfigError):
            load_global_config()


# ---------------------------------------------------------------------------
# Project config
# ---------------------------------------------------------------------------


class TestProjectConfig:
    def test_missing(self, isolated_config: Path) -> None:
        assert load_project_config() is None

    def test_loaded_from_cwd(self, isolated_config: Path) -> None:
        _write_json(isolated_config / "reqtree.json", {"workspace_path": "api.json"})
        assert load_project_config() == {"workspace_path": "api.json"}

    def test_not_an_object(self, isolated_config: Path) -> None:
        _write_json(isolated_config / "reqtree.json", ["a"])
        with pytest.raises(ConfigError, match="expected an object"):
            load_project_config()

    def test_invalid_json(self, isolated_config: Path) -> None:
        (isolated_config / "reqtree.json").write_text("{", encoding="utf-8")
        with pytest.raises(ConfigError, match="Invalid project config"):
            load_project_config()


# ---------------------------------------------------------------------------
# Precedence resolution
# ---------------------------------------------------------------------------


class TestResolveConfig:
    def test_defaults(self, isolated_config: Path) -> None:
        config = resolve_config()
        assert config.workspace_path == str(default_workspace_path())
        assert config.request.timeout == 30

    def test_global_config(self, isolated_config: Path) -> None:
        save_global_config(GlobalConfig(workspace_path="global.json", request=RequestConfig(timeout=9)))
        config = resolve_config()
        assert config.workspace_path == "global.json"
        assert config.request.timeout == 9

    def test_project_overrides_global(self, isolated_config: Path) -> None:
        save_global_config(GlobalConfig(workspace_path="global.json", request=RequestConfig(timeout=9)))
        _write_json(isolated_config / "reqtree.json", {"workspace_path": "project.json", "timeout": 4})
        config = resolve_config()
        assert config.workspace_path == "project.json"
        assert config.request.timeout == 4

    def test_env_overrides_project(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        _write_json(isolated_config / "reqtree.json", {"workspace_path": "project.json", "timeout": 4})
        monkeypatch.setenv("REQTREE_WORKSPACE", "env.json")
        monkeypatch.setenv("REQTREE_TIMEOUT", "2.5")
        config = resolve_config()
        assert config.workspace_path == "env.json"
        assert config.request.timeout == 2.5

    def test_cli_overrides_env(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("REQTREE_WORKSPACE", "env.json")
        monkeypatch.setenv("REQTREE_TIMEOUT", "2.5")
        config = resolve_config(cli_workspace="cli.json", cli_timeout=1)
        assert config.workspace_path == "cli.json"
        assert config.request.timeout == 1

    def test_cli_format_overrides_saved_format(self, isolated_config: Path) -> None:
        save_global_config(GlobalConfig(output=OutputConfig(format="json")))
        assert resolve_config().output.format == "json"
        assert resolve_config(cli_format="plain").output.format == "plain"

    def test_unknown_saved_format(self, isolated_config: Path) -> None:
        _write_json(isolated_config / "config" / "reqtree" / "config.json", {"output": {"format": "xml"}})
        with pytest.raises(ConfigError):
            resolve_config()

    def test_empty_env_ignored(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("REQTREE_WORKSPACE", "")
        assert resolve_config().workspace_path == str(default_workspace_path())

    def test_non_string_project_workspace_ignored(self, isolated_config: Path) -> None:
        _write_json(isolated_config / "reqtree.json", {"workspace_path": 3})
        assert resolve_config().workspace_path == str(default_workspace_path())

    @pytest.mark.parametrize(("value", "message"), [("abc", "Invalid timeout"), ("0", "must be positive")])
    def test_bad_env_timeout(
        self,
        isolated_config: Path,
        monkeypatch: pytest.MonkeyPatch,
        value: str,
        message: str,
    ) -> None:
        monkeypatch.setenv("REQTREE_TIMEOUT", value)
        with pytest.raises(ConfigError, match=message):
            resolve_config()

    def test_bad_cli_timeout(self, isolated_config: Path) -> None:
        with pytest.raises(ConfigError, match="must be positive"):
            resolve_config(cli_timeout=-1)

    def test_parse_timeout_names_origin(self) -> None:
        assert parse_timeout("1.5", "--timeout") == 1.5
        with pytest.raises(ConfigError, match="from --timeout"):
            parse_timeout("0", "--timeout")

    def test_bad_project_timeout(self, isolated_config: Path) -> None:
        _write_json(isolated_config / "reqtree.json", {"timeout": "later"})
        with pytest.raises(ConfigError, match="reqtree.json"):
            resolve_config()
