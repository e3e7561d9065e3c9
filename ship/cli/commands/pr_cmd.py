from __future__ import annotations

from ship.cli.commands._helpers import exit_on_error
from ship.cli.commands.branch_cmd import push_current_branch
from ship.cli.context import build_context
from ship.release.gh import ensure_gh_available
from ship.release.preflight import PreflightGate
from ship.release.pull_request import open_pull_request


def pr() -> None:
    """Verify, push the current branch, and open a pull request."""
    ctx = build_context()
    exit_on_error(ensure_gh_available(), ctx, stage="pr")
    gate = PreflightGate(repo=ctx.repo, verify=ctx.config.verify, console=ctx.console)
    exit_on_error(gate.run(), ctx, stage="preflight")
    exit_on_error(push_current_branch(ctx), ctx, stage="push")
    opened = open_pull_request(root=ctx.root, draft=False, console=ctx.console)
    exit_on_error(opened, ctx, stage="pr")


def draft() -> None:
    """Push the current branch and open a draft pull request."""
    ctx = build_context()
    exit_on_error(ensure_gh_available(), ctx, stage="pr")
    exit_on_error(push_current_branch(ctx), ctx, stage="push")
    opened = open_pull_request(root=ctx.root, draft=True, console=ctx.console)
    exit_on_error(opened, ctx, stage="pr")
