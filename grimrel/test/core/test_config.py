"""Tests for grimrel.core.config module."""

from __future__ import annotations

from pathlib import Path

import pytest

from grimrel.core.config import (
    Config,
    ConfigError,
    PathsConfig,
    ReleaseConfig,
    TemplatesConfig,
    TimeoutsConfig,
    load_config,
    load_config_or_default,
)
from grimrel.core.result import Err, Ok


class TestDefaults:
    def test_release_defaults(self) -> None:
        config = ReleaseConfig()
        assert config.app == "grim"
        assert config.binary == "grim"
        assert config.branch == "master"
        assert config.remote == "origin"

    def test_paths_defaults(self) -> None:
        config = PathsConfig()
        assert config.scratch == "target/release-scratch"
        assert config.publish_dir == "dist/releases"

    def test_timeouts_defaults(self) -> None:
        config = TimeoutsConfig()
        assert config.build == 3600.0
        assert config.package == 900.0
        assert config.publish == 600.0

    def test_windows_has_no_template(self) -> None:
        templates = TemplatesConfig()
        assert templates.for_os("linux") == "linux/Grim.AppDir"
        assert templates.for_os("macos") == "macos/Grim.app"
        assert templates.for_os("windows") is None

    def test_frozen(self) -> None:
        config = Config()
        with pytest.raises(AttributeError):
            config.release = ReleaseConfig(app="x")  # type: ignore[misc]


class TestFromDict:
    def test_empty_uses_defaults(self) -> None:
        assert Config.from_dict({}) == Config()

    def test_binary_defaults_to_app(self) -> None:
        config = Config.from_dict({"release": {"app": "demo"}})
        assert config.release.app == "demo"
        assert config.release.binary == "demo"

    def test_overrides(self) -> None:
        config = Config.from_dict(
            {
                "release": {"branch": "main", "remote": "upstream"},
                "timeouts": {"build": 120},
                "publish": {"backend": "directory", "repo": "owner/grim"},
            }
        )
        assert config.release.branch == "main"
        assert config.release.remote == "upstream"
        assert config.timeouts.build == 120.0
        assert config.timeouts.package == 900.0
        assert config.publish.backend == "directory"
        assert config.publish.repo == "owner/grim"

    def test_non_positive_timeout_falls_back(self) -> None:
        config = Config.from_dict({"timeouts": {"build": 0, "package": True}})
        assert config.timeouts.build == 3600.0
        assert config.timeouts.package == 900.0

    def test_empty_repo_is_none(self) -> None:
        config = Config.from_dict({"publish": {"repo": "  "}})
        assert config.publish.repo is None

    def test_unknown_backend_raises(self) -> None:
        with pytest.raises(ValueError):
            Config.from_dict({"publish": {"backend": "s3"}})


class TestLoadConfig:
    def test_load_valid(self, tmp_path: Path) -> None:
        path = tmp_path / "release.toml"
        path.write_text('[release]\napp = "grim"\nbranch = "main"\n', encoding="utf-8")

        result = load_config(path)
        assert isinstance(result, Ok)
        assert result.value.release.branch == "main"

    def test_missing_file(self, tmp_path: Path) -> None:
        result = load_config(tmp_path / "release.toml")
        assert isinstance(result, Err)
        assert isinstance(result.error, ConfigError)
        assert "not found" in result.error.message

    def test_invalid_toml(self, tmp_path: Path) -> None:
        path = tmp_path / "release.toml"
        path.write_text("[release\n", encoding="utf-8")

        result = load_config(path)
        assert isinstance(result, Err)
        assert "Invalid TOML" in result.error.message

    def test_invalid_structure(self, tmp_path: Path) -> None:
        path = tmp_path / "release.toml"
        path.write_text('[publish]\nbackend = "ftp"\n', encoding="utf-8")

        result = load_config(path)
        assert isinstance(result, Err)
        assert "Invalid config structure" in result.error.message

    def test_or_default_missing(self, tmp_path: Path) -> None:
        result = load_config_or_default(tmp_path / "release.toml")
        assert isinstance(result, Ok)
        assert result.value == Config()

    def test_or_default_still_reports_bad_file(self, tmp_path: Path) -> None:
        path = tmp_path / "release.toml"
        path.write_text("not = [toml", encoding="utf-8")
        assert isinstance(load_config_or_default(path), Err)
