"""Tests for delivery.config -- XDG paths, atomic writes, files, precedence."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any
from unittest.mock import patch

import pytest

from delivery.config import (
    _atomic_write,
    find_project_config,
    get_config_dir,
    get_data_dir,
    global_config_path,
    load_config_file,
    require,
    resolve_config,
    save_config,
)
from delivery.exceptions import DeliveryError, Kind
from delivery.models import CliConfig


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


class TestPaths:
    def test_config_dir_from_xdg(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("delivery.config._is_xdg_platform", lambda: True)
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
        assert get_config_dir() == tmp_path / "xdg" / "delivery"
        assert global_config_path() == tmp_path / "xdg" / "delivery" / "cli.json"

    def test_config_dir_xdg_default(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("delivery.config._is_xdg_platform", lambda: True)
        monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
        monkeypatch.setattr(Path, "home", lambda: tmp_path)
        assert get_config_dir() == tmp_path / ".config" / "delivery"

    def test_config_dir_non_xdg(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("delivery.config._is_xdg_platform", lambda: False)
        monkeypatch.setattr(Path, "home", lambda: tmp_path)
        assert get_config_dir() == tmp_path / ".delivery"

    def test_no_homedir(self, monkeypatch: pytest.MonkeyPatch) -> None:
        def _no_home() -> Path:
            raise RuntimeError("Could not determine home directory.")

        monkeypatch.setattr("delivery.config._is_xdg_platform", lambda: True)
        monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
        monkeypatch.setattr(Path, "home", _no_home)
        with pytest.raises(DeliveryError) as exc_info:
            get_config_dir()
        assert exc_info.value.kind is Kind.NO_HOMEDIR

    def test_data_dir_created(self, isolated_config: Path) -> None:
        path = get_data_dir()
        assert path == isolated_config / "data" / "delivery"
        assert path.is_dir()

    def test_data_dir_non_xdg(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("delivery.config._is_xdg_platform", lambda: False)
        monkeypatch.setattr(Path, "home", lambda: tmp_path)
        assert get_data_dir() == tmp_path / ".delivery"


class TestFindProjectConfig:
    def test_in_working_directory(self, isolated_config: Path) -> None:
        target = Path.cwd() / ".delivery" / "cli.json"
        _write_json(target, {"server": "a"})
        assert find_project_config() == target.resolve()

    def test_in_parent_directory(self, isolated_config: Path) -> None:
        target = Path.cwd() / ".delivery" / "cli.json"
        _write_json(target, {"server": "a"})
        nested = Path.cwd() / "cookbooks" / "app"
        nested.mkdir(parents=True)
        assert find_project_config(nested) == target.resolve()

    def test_absent(self, isolated_config: Path) -> None:
        assert find_project_config() is None


# ---------------------------------------------------------------------------
# Loading and saving
# ---------------------------------------------------------------------------


class TestLoadConfigFile:
    def test_missing_file(self, tmp_path: Path) -> None:
        assert load_config_file(tmp_path / "nope.json") is None

    def test_valid_file(self, tmp_path: Path) -> None:
        path = tmp_path / "cli.json"
        _write_json(path, {"server": "d.example.com", "enterprise": "acme", "unknown": 1})
        config = load_config_file(path)
        assert config is not None
        assert config.server == "d.example.com"
        assert config.enterprise == "acme"
        assert config.verify_ssl is True

    def test_invalid_json(self, tmp_path: Path) -> None:
        path = tmp_path / "cli.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(DeliveryError) as exc_info:
            load_config_file(path)
        assert exc_info.value.kind is Kind.CONFIG_PARSE
        assert str(path) in exc_info.value.detail

    def test_wrong_types(self, tmp_path: Path) -> None:
        path = tmp_path / "cli.json"
        _write_json(path, {"timeout": "soon"})
        with pytest.raises(DeliveryError) as exc_info:
            load_config_file(path)
        assert exc_info.value.kind is Kind.CONFIG_PARSE

    def test_unreadable_file(self, tmp_path: Path) -> None:
        path = tmp_path / "cli.json"
        _write_json(path, {"server": "a"})
        with patch.object(Path, "read_text", side_effect=PermissionError("Permission denied")):
            with pytest.raises(DeliveryError) as exc_info:
                load_config_file(path)
        assert exc_info.value.kind is Kind.IO_ERROR
        assert exc_info.value.detail == "Permission denied"


class TestSaveConfig:
    def test_round_trip(self, tmp_path: Path) -> None:
        path = tmp_path / ".delivery" / "cli.json"
        save_config(CliConfig(server="d.example.com", user="alice"), path)
        assert load_config_file(path) == CliConfig(server="d.example.com", user="alice")

    def test_writes_only_set_fields(self, tmp_path: Path) -> None:
        path = tmp_path / "cli.json"
        save_config(CliConfig(server="d.example.com"), path)
        assert json.loads(path.read_text()) == {"server": "d.example.com"}

    def test_write_failure_is_io_error(self, tmp_path: Path) -> None:
        with patch("delivery.config._atomic_write", side_effect=OSError("No space left on device")):
            with pytest.raises(DeliveryError) as exc_info:
                save_config(CliConfig(server="a"), tmp_path / "cli.json")
        assert exc_info.value.kind is Kind.IO_ERROR


class TestAtomicWrite:
    def test_leaves_no_temp_files(self, tmp_path: Path) -> None:
        path = tmp_path / "cli.json"
        _atomic_write(path, "{}\n")
        assert path.read_text() == "{}\n"
        assert [p.name for p in tmp_path.iterdir()] == ["cli.json"]

    def test_cleans_up_on_failure(self, tmp_path: Path) -> None:
        path = tmp_path / "cli.json"
        with patch("delivery.config.os.replace", side_effect=OSError("rename failed")):
            with pytest.raises(OSError):
                _atomic_write(path, "{}\n")
        assert list(tmp_path.iterdir()) == []


# ---------------------------------------------------------------------------
# Precedence resolution
# ---------------------------------------------------------------------------


class TestResolveConfig:
    def test_defaults(self, isolated_config: Path) -> None:
        assert resolve_config() == CliConfig()

    def test_global_file(self, isolated_config: Path) -> None:
        _write_json(isolated_config / "config" / "delivery" / "cli.json", {"server": "global"})
        assert resolve_config().server == "global"

    def test_project_overrides_global(self, isolated_config: Path) -> None:
        _write_json(
            isolated_config / "config" / "delivery" / "cli.json",
            {"server": "global", "user": "alice"},
        )
        _write_json(Path.cwd() / ".delivery" / "cli.json", {"server": "project"})
        config = resolve_config()
        assert config.server == "project"
        assert config.user == "alice"

    def test_env_overrides_files(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        _write_json(Path.cwd() / ".delivery" / "cli.json", {"enterprise": "project"})
        monkeypatch.setenv("DELIVERY_ENTERPRISE", "env")
        assert resolve_config().enterprise == "env"

    def test_cli_overrides_everything(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DELIVERY_USER", "env")
        _write_json(Path.cwd() / ".delivery" / "cli.json", {"user": "project"})
        assert resolve_config(user="cli").user == "cli"

    def test_none_cli_values_are_ignored(self, isolated_config: Path) -> None:
        _write_json(Path.cwd() / ".delivery" / "cli.json", {"user": "project"})
        assert resolve_config(user=None).user == "project"

    def test_broken_project_file(self, isolated_config: Path) -> None:
        path = Path.cwd() / ".delivery" / "cli.json"
        path.parent.mkdir()
        path.write_text("[", encoding="utf-8")
        with pytest.raises(DeliveryError) as exc_info:
            resolve_config()
        assert exc_info.value.kind is Kind.CONFIG_PARSE


class TestRequire:
    def test_all_present(self) -> None:
        require(CliConfig(server="a", enterprise="b"), "server", "enterprise")

    def test_missing_fields_are_named(self) -> None:
        with pytest.raises(DeliveryError) as exc_info:
            require(CliConfig(server="a"), "server", "enterprise", "user")
        assert exc_info.value.kind is Kind.CONFIG_VALIDATION
        assert exc_info.value.detail == "Missing required option(s): enterprise, user"
