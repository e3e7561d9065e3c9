"""Typed configuration loading and access.

The pipeline never reads ambient process state for its policy: the trunk
name, the remote, the CI poll interval, and every external command come
from ``ship.toml`` at the repository root (or built-in defaults).
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from .result import Err, Ok, Result
from .structured import (
    StrDict,
    as_obj_list,
    as_str_dict,
    as_str_tuple,
    get_float,
    get_str,
    get_table,
)

__all__ = [
    "CONFIG_FILE_NAME",
    "DEFAULT_POLL_INTERVAL_SECONDS",
    "DEFAULT_REMOTE",
    "DEFAULT_TRUNK",
    "CiConfig",
    "Command",
    "Config",
    "ConfigError",
    "GitConfig",
    "ReleaseConfig",
    "VerifyConfig",
    "load_config",
    "load_config_or_default",
]

CONFIG_FILE_NAME = "ship.toml"

DEFAULT_REMOTE = "github"
DEFAULT_TRUNK = "master"
DEFAULT_POLL_INTERVAL_SECONDS = 5.0

type Command = tuple[str, ...]


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Error when config cannot be loaded or parsed."""

    message: str
    path: Path | None = None


@dataclass(frozen=True, slots=True)
class GitConfig:
    """Remote and trunk branch names."""

    remote: str = DEFAULT_REMOTE
    trunk: str = DEFAULT_TRUNK


@dataclass(frozen=True, slots=True)
class CiConfig:
    """CI status polling.

    Attributes:
        poll_interval: Seconds between status queries while CI is pending.
        repo: ``owner/name`` passed to gh; None lets gh infer it.
    """

    poll_interval: float = DEFAULT_POLL_INTERVAL_SECONDS
    repo: str | None = None


@dataclass(frozen=True, slots=True)
class ReleaseConfig:
    """Release artifacts and the registry publish command."""

    metadata: str = "Cargo.toml"
    changelog: str = "target/gen/CHANGELOG.md"
    publish: Command = ("cargo", "publish")


@dataclass(frozen=True, slots=True)
class VerifyConfig:
    """Verification suite commands, grouped by category.

    Categories run in the order tests, lint, minimal_versions, docs; the
    working-tree check follows, then style. ``outdated`` only runs for
    publish checks.
    """

    tests: tuple[Command, ...] = (("cargo", "test", "--all"),)
    lint: tuple[Command, ...] = (("cargo", "clippy", "--all"), ("./bin/lint",))
    minimal_versions: tuple[Command, ...] = (("./bin/check-minimal-versions",),)
    docs: tuple[Command, ...] = (
        ("cargo", "build"),
        ("cargo", "run", "--package", "gen", "--", "--bin", "target/debug/imdl", "all"),
    )
    style: tuple[Command, ...] = (("cargo", "+nightly", "fmt", "--all", "--", "--check"),)
    outdated: tuple[Command, ...] = (("cargo", "outdated", "--exit-code", "1"),)


@dataclass(frozen=True, slots=True)
class Config:
    """Main configuration container."""

    git: GitConfig = field(default_factory=GitConfig)
    ci: CiConfig = field(default_factory=CiConfig)
    release: ReleaseConfig = field(default_factory=ReleaseConfig)
    verify: VerifyConfig = field(default_factory=VerifyConfig)

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> Config:
        """Create Config from a mapping (parsed TOML).

        Raises:
            ValueError: If a value has the wrong type.
        """
        git: StrDict = get_table(data, "git") or {}
        ci: StrDict = get_table(data, "ci") or {}
        release: StrDict = get_table(data, "release") or {}
        verify: StrDict = get_table(data, "verify") or {}

        poll_interval = get_float(ci, "poll_interval")
        if poll_interval is None:
            if "poll_interval" in ci:
                raise ValueError("ci.poll_interval must be a number")
            poll_interval = DEFAULT_POLL_INTERVAL_SECONDS
        if poll_interval <= 0:
            raise ValueError("ci.poll_interval must be positive")

        defaults = VerifyConfig()
        release_defaults = ReleaseConfig()
        publish = release_defaults.publish
        if "publish" in release:
            parsed = as_str_tuple(release["publish"])
            if not parsed:
                raise ValueError("release.publish must be a non-empty list of strings")
            publish = parsed

        return cls(
            git=GitConfig(
                remote=get_str(git, "remote") or DEFAULT_REMOTE,
                trunk=get_str(git, "trunk") or DEFAULT_TRUNK,
            ),
            ci=CiConfig(poll_interval=poll_interval, repo=get_str(ci, "repo")),
            release=ReleaseConfig(
                metadata=get_str(release, "metadata") or release_defaults.metadata,
                changelog=get_str(release, "changelog") or release_defaults.changelog,
                publish=publish,
            ),
            verify=VerifyConfig(
                tests=_commands(verify, "tests", defaults.tests),
                lint=_commands(verify, "lint", defaults.lint),
                minimal_versions=_commands(verify, "minimal_versions", defaults.minimal_versions),
                docs=_commands(verify, "docs", defaults.docs),
                style=_commands(verify, "style", defaults.style),
                outdated=_commands(verify, "outdated", defaults.outdated),
            ),
        )


def _commands(
    table: Mapping[str, object], key: str, default: tuple[Command, ...]
) -> tuple[Command, ...]:
    """Read a category: one command (list of str) or several (list of lists)."""
    if key not in table:
        return default

    items = as_obj_list(table[key])
    if items is None:
        raise ValueError(f"verify.{key} must be a list")
    if not items:
        return ()

    single = as_str_tuple(items)
    if single is not None:
        return (single,)

    commands: list[Command] = []
    for item in items:
        command = as_str_tuple(item)
        if not command:
            raise ValueError(f"verify.{key} entries must be non-empty lists of strings")
        commands.append(command)
    return tuple(commands)


def _parse_toml(path: Path) -> Result[StrDict, ConfigError]:
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
        path: Path to ship.toml

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
    """Load config, falling back to defaults only when the file is absent.

    A present but broken file is still an error.
    """
    if not path.exists():
        return Ok(Config())
    return load_config(path)
