from __future__ import annotations

import typer

from ship.cli.commands._helpers import cancel_on_interrupt, exit_on_error
from ship.cli.context import CLIContext, build_context
from ship.core.result import Err, Ok, Result
from ship.output.console import Style
from ship.release.ci import GhCiStatus
from ship.release.errors import ReleaseError
from ship.release.gh import ensure_gh_available
from ship.release.preflight import PreflightGate
from ship.release.publisher import ReleasePublisher
from ship.release.registry import CommandRegistry
from ship.release.version import check_changelog, load_version


def check() -> None:
    """Run the verification suite and require a clean working tree."""
    ctx = build_context()
    exit_on_error(_preflight(ctx, include_outdated=False).run(), ctx, stage="preflight")


def publish_check() -> None:
    """Everything `publish` verifies locally, without touching the remote."""
    ctx = build_context()
    exit_on_error(run_publish_check(ctx), ctx, stage="publish-check")


def run_publish_check(ctx: CLIContext) -> Result[None, ReleaseError]:
    verified = _preflight(ctx, include_outdated=True).run()
    if isinstance(verified, Err):
        return verified

    version = load_version(ctx.root / ctx.config.release.metadata)
    if isinstance(version, Err):
        return version

    changelog = check_changelog(ctx.root / ctx.config.release.changelog, version.value)
    if isinstance(changelog, Err):
        return changelog

    ctx.console.success(f"ready to publish {version.value.tag}")
    return Ok(None)


def publish(
    ci_timeout: float | None = typer.Option(
        None,
        "--ci-timeout",
        help="Give up waiting for CI after this many seconds (default: wait forever).",
    ),
) -> None:
    """Verify, wait for CI, tag, merge to trunk, and publish to the registry."""
    ctx = build_context()
    exit_on_error(ensure_gh_available(), ctx, stage="ci")

    publisher = ReleasePublisher(
        repo=ctx.repo,
        config=ctx.config,
        console=ctx.console,
        preflight=_preflight(ctx, include_outdated=True),
        ci=GhCiStatus(ctx.repo, slug=ctx.config.ci.repo),
        registry=CommandRegistry(
            root=ctx.root,
            command=ctx.config.release.publish,
            console=ctx.console,
        ),
        cancel_scope=lambda: cancel_on_interrupt(ci_timeout),
    )
    result = publisher.publish()

    if isinstance(result, Err):
        ctx.console.print(f"pipeline stopped after: {publisher.state}", Style.DIM)
    exit_on_error(result, ctx, stage="publish")


def version() -> None:
    """Print the release tag derived from project metadata."""
    ctx = build_context()
    resolved = exit_on_error(
        load_version(ctx.root / ctx.config.release.metadata), ctx, stage="version"
    )
    typer.echo(resolved.tag)


def _preflight(ctx: CLIContext, *, include_outdated: bool) -> PreflightGate:
    return PreflightGate(
        repo=ctx.repo,
        verify=ctx.config.verify,
        console=ctx.console,
        include_outdated=include_outdated,
    )
