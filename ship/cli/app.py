from __future__ import annotations

import os
from pathlib import Path

import typer

from ship import __version__
from ship.cli.commands.branch_cmd import done, merge, push
from ship.cli.commands.pr_cmd import draft, pr
from ship.cli.commands.release_cmd import check, publish, publish_check, version
from ship.cli.context import CONFIG_ENV, ROOT_ENV
from ship.core.errors import ErrorCode
from ship.git.repository import Repository


app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# Branch workflow
app.command()(push)
app.command()(done)
app.command()(merge)
app.command()(pr)
app.command()(draft)

# Release
app.command()(check)
app.command("publish-check")(publish_check)
app.command()(publish)
app.command()(version)


def _show_version(value: bool) -> None:
    if value:
        typer.echo(__version__)
        raise typer.Exit(code=0)


@app.callback()
def _main(  # pyright: ignore[reportUnusedFunction]
    show_version: bool = typer.Option(
        False,
        "--version",
        callback=_show_version,
        is_eager=True,
        help="Show version and exit.",
    ),
    root: Path | None = typer.Option(
        None,
        "--root",
        help="Repository root (overrides auto detection)",
    ),
    config: Path | None = typer.Option(
        None,
        "--config",
        help="Config file (default: <root>/ship.toml)",
    ),
) -> None:
    del show_version

    if root is not None:
        try:
            resolved = root.expanduser().resolve()
        except OSError as e:
            typer.echo(f"error: invalid --root: {e}", err=True)
            raise typer.Exit(code=int(ErrorCode.USER_ERROR))

        if not Repository(resolved).exists():
            typer.echo(f"error: --root '{resolved}' is not a git repository", err=True)
            raise typer.Exit(code=int(ErrorCode.ENV_ERROR))

        os.environ[ROOT_ENV] = str(resolved)

    if config is not None:
        os.environ[CONFIG_ENV] = str(config.expanduser().resolve())


def main() -> None:
    app()
