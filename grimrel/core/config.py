"""Typed configuration loading and access.

The optional ``release.toml`` at the project root overrides the defaults
below. Missing tables or keys fall back to the defaults; a malformed file is
reported as a ConfigError.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

from .result import Err, Ok, Result
from .structured import StrDict, as_str_dict, get_float, get_str, get_table

__all__ = [
    "Config",
    "ConfigError",
    "PathsConfig",
    "PublishConfig",
    "ReleaseConfig",
    "TemplatesConfig",
    "TimeoutsConfig",
    "load_config",
    "load_config_or_default",
    "CONFIG_FILE_NAME",
]

CONFIG_FILE_NAME = "release.toml"

PublishBackend = Literal["github", "directory"]

DEFAULT_APP = "grim"
DEFAULT_BRANCH = "master"
DEFAULT_REMOTE = "origin"

DEFAULT_BUILD_TIMEOUT_SECONDS = 60 * 60.0
DEFAULT_PACKAGE_TIMEOUT_SECONDS = 15 * 60.0
DEFAULT_PUBLISH_TIMEOUT_SECONDS = 10 * 60.0


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Error when config cannot be loaded or parsed."""

    message: str
    path: Path | None = None


@dataclass(frozen=True, slots=True)
class ReleaseConfig:
    """Identity of the released application and its release branch."""

    app: str = DEFAULT_APP
    binary: str = DEFAULT_APP
    branch: str = DEFAULT_BRANCH
    remote: str = DEFAULT_REMOTE


@dataclass(frozen=True, slots=True)
class PathsConfig:
    """Paths relative to the project root."""

    scratch: str = "target/release-scratch"
    publish_dir: str = "dist/releases"


@dataclass(frozen=True, slots=True)
class TemplatesConfig:
    """Bundle skeletons copied during staging.

    Windows stages into a flat directory and has no skeleton.
    """

    linux: str = "linux/Grim.AppDir"
    macos: str = "macos/Grim.app"

    def for_os(self, os_name: str) -> str | None:
        return {"linux": self.linux, "macos": self.macos}.get(os_name)


@dataclass(frozen=True, slots=True)
class TimeoutsConfig:
    """Upper bounds (seconds) for external tool invocations."""

    build: float = DEFAULT_BUILD_TIMEOUT_SECONDS
    package: float = DEFAULT_PACKAGE_TIMEOUT_SECONDS
    publish: float = DEFAULT_PUBLISH_TIMEOUT_SECONDS


@dataclass(frozen=True, slots=True)
class PublishConfig:
    backend: PublishBackend = "github"
    repo: str | None = None


@dataclass(frozen=True, slots=True)
class Config:
    """Main configuration container."""

    release: ReleaseConfig = field(default_factory=ReleaseConfig)
    paths: PathsConfig = field(default_factory=PathsConfig)
    templates: TemplatesConfig = field(default_factory=TemplatesConfig)
    timeouts: TimeoutsConfig = field(default_factory=TimeoutsConfig)
    publish: PublishConfig = field(default_factory=PublishConfig)

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> Config:
        """Create Config from a mapping (parsed TOML)."""
        release: StrDict = get_table(data, "release") or {}
        paths: StrDict = get_table(data, "paths") or {}
        templates: StrDict = get_table(data, "templates") or {}
        timeouts: StrDict = get_table(data, "timeouts") or {}
        publish: StrDict = get_table(data, "publish") or {}

        app = get_str(release, "app") or DEFAULT_APP
        backend = get_str(publish, "backend") or "github"
        if backend not in ("github", "directory"):
            raise ValueError(f"unknown publish backend: {backend}")

        defaults_paths = PathsConfig()
        defaults_templates = TemplatesConfig()
        return cls(
            release=ReleaseConfig(
                app=app,
                binary=get_str(release, "binary") or app,
                branch=get_str(release, "branch") or DEFAULT_BRANCH,
                remote=get_str(release, "remote") or DEFAULT_REMOTE,
            ),
            paths=PathsConfig(
                scratch=get_str(paths, "scratch") or defaults_paths.scratch,
                publish_dir=get_str(paths, "publish_dir") or defaults_paths.publish_dir,
            ),
            templates=TemplatesConfig(
                linux=get_str(templates, "linux") or defaults_templates.linux,
                macos=get_str(templates, "macos") or defaults_templates.macos,
            ),
            timeouts=TimeoutsConfig(
                build=get_float(timeouts, "build") or DEFAULT_BUILD_TIMEOUT_SECONDS,
                package=get_float(timeouts, "package") or DEFAULT_PACKAGE_TIMEOUT_SECONDS,
                publish=get_float(timeouts, "publish") or DEFAULT_PUBLISH_TIMEOUT_SECONDS,
            ),
            publish=PublishConfig(
                backend="directory" if backend == "directory" else "github",
                repo=get_str(publish, "repo"),
            ),
        )


def _parse_toml(path: Path) -> Result[StrDict, ConfigError]:
    """Parse a TOML file, handling read and parse errors."""
    import tomllib

    try:
        content = path.read_bytes()
        data_obj: object = tomllib.loads(content.decode("utf-8"))
        data = as_str_dict(data_obj)
        if data is None:
            return Err(ConfigError("Config root must be a TOML table", path=path))
        return Ok(data)
    except FileNotFoundError:
        return Err(ConfigError(f"Config file not found: {path}", path=path))
    except PermissionError:
        return Err(ConfigError(f"Permission denied reading: {path}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigError(f"Invalid TOML syntax: {e}", path=path))
    except UnicodeDecodeError as e:
        return Err(ConfigError(f"Error reading config: {e}", path=path))


def load_config(path: Path) -> Result[Config, ConfigError]:
    """Load and parse configuration from a TOML file.

    Args:
        path: Path to release.toml

    Returns:
        Ok(Config) on success, Err(ConfigError) on failure
    """
    result = _parse_toml(path)
    if isinstance(result, Err):
        return result

    try:
        return Ok(Config.from_dict(result.value))
    except (KeyError, TypeError, ValueError) as e:
        return Err(ConfigError(f"Invalid config structure: {e}", path=path))


def load_config_or_default(path: Path) -> Result[Config, ConfigError]:
    """Like load_config, but a missing file yields the default Config."""
    if not path.exists():
        return Ok(Config())
    return load_config(path)
