from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

import typer

from ship.core.config import CONFIG_FILE_NAME, Config, load_config_or_default
from ship.core.errors import ErrorCode
from ship.core.result import Err, Ok, Result
from ship.git.repository import Repository
from ship.output.console import ConsoleProtocol, RichConsole

ROOT_ENV = "SHIP_ROOT"
CONFIG_ENV = "SHIP_CONFIG"


@dataclass(frozen=True, slots=True)
class CLIContext:
    root: Path
    repo: Repository
    config: Config
    console: ConsoleProtocol


def find_repo_root(start: Path) -> Result[Path, str]:
    """Walk upward from ``start`` to the directory containing ``.git``."""
    for parent in (start, *start.parents):
        if Repository(parent).exists():
            return Ok(parent)
    return Err(f"not inside a git repository: {start}")


def build_context() -> CLIContext:
    env_root = os.environ.get(ROOT_ENV)
    if env_root:
        root = Path(env_root)
    else:
        found = find_repo_root(Path.cwd().resolve())
        if isinstance(found, Err):
            typer.echo(f"error: {found.error}", err=True)
            raise typer.Exit(code=int(ErrorCode.ENV_ERROR))
        root = found.value

    env_config = os.environ.get(CONFIG_ENV)
    config_path = Path(env_config) if env_config else root / CONFIG_FILE_NAME
    config = load_config_or_default(config_path)
    if isinstance(config, Err):
        typer.echo(f"error: {config.error.message}", err=True)
        raise typer.Exit(code=int(ErrorCode.USER_ERROR))

    return CLIContext(
        root=root,
        repo=Repository(root),
        config=config.value,
        console=RichConsole(),
    )
