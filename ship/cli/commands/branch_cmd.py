from __future__ import annotations

import typer

from ship.cli.commands._helpers import (
    cancel_on_interrupt,
    current_branch_or_exit,
    exit_on_error,
)
from ship.cli.context import CLIContext, build_context
from ship.core.result import Err, Ok, Result
from ship.output.console import Style
from ship.release.ci import GhCiStatus, await_ci_success
from ship.release.errors import ReleaseError
from ship.release.gh import ensure_gh_available
from ship.release.guard import guard_push
from ship.release.merge import BranchMerger


def push() -> None:
    """Push the current feature branch (never trunk)."""
    ctx = build_context()
    exit_on_error(push_current_branch(ctx), ctx, stage="push")


def push_current_branch(ctx: CLIContext) -> Result[None, ReleaseError]:
    branch = current_branch_or_exit(ctx)
    guard = guard_push(branch, ctx.config.git.trunk)
    if isinstance(guard, Err):
        return guard

    remote = ctx.config.git.remote
    ctx.console.print(f"git push {remote} {branch}", Style.DIM)
    pushed = ctx.repo.push(remote, branch)
    if isinstance(pushed, Err):
        return Err(
            ReleaseError(
                kind="push_rejected",
                message=f"push of {branch} to {remote} rejected",
                stage="push",
                hint=pushed.error.message,
            )
        )
    ctx.console.success(f"pushed {branch} to {remote}")
    return Ok(None)


def done(
    branch: str | None = typer.Argument(None, help="Feature branch (default: current)"),
) -> None:
    """Land BRANCH on trunk, rebase local trunk, delete BRANCH."""
    ctx = build_context()
    source = branch or current_branch_or_exit(ctx)
    merger = BranchMerger(repo=ctx.repo, git=ctx.config.git, console=ctx.console)
    exit_on_error(merger.merge(source), ctx, stage="done")


def merge(
    branch: str | None = typer.Argument(None, help="Feature branch (default: current)"),
    ci_timeout: float | None = typer.Option(
        None,
        "--ci-timeout",
        help="Give up waiting for CI after this many seconds (default: wait forever).",
    ),
) -> None:
    """Wait for CI on BRANCH to pass, then run `done` on it."""
    ctx = build_context()
    source = branch or current_branch_or_exit(ctx)

    exit_on_error(guard_push(source, ctx.config.git.trunk), ctx, stage="guard")
    exit_on_error(ensure_gh_available(), ctx, stage="ci")

    ctx.console.header("CI")
    with cancel_on_interrupt(ci_timeout) as cancel:
        waited = await_ci_success(
            source,
            source=GhCiStatus(ctx.repo, slug=ctx.config.ci.repo),
            poll_interval=ctx.config.ci.poll_interval,
            cancel=cancel,
            console=ctx.console,
        )
    exit_on_error(waited, ctx, stage="ci")

    ctx.console.header("Merge")
    merger = BranchMerger(repo=ctx.repo, git=ctx.config.git, console=ctx.console)
    exit_on_error(merger.merge(source), ctx, stage="merge")
