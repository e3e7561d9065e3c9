from __future__ import annotations

from pathlib import Path

from ship.core.result import Err, Ok, Result
from ship.output.console import ConsoleProtocol, Style
from ship.release.errors import ReleaseError
from ship.release.preflight import CommandRunner, stream_command


def open_pull_request(
    *,
    root: Path,
    draft: bool,
    console: ConsoleProtocol,
    runner: CommandRunner = stream_command,
) -> Result[None, ReleaseError]:
    """Open a pull request for the pushed branch, then show it in the browser."""
    create = ["gh", "pr", "create", "--fill"]
    if draft:
        create.append("--draft")

    for cmd in (create, ["gh", "pr", "view", "--web"]):
        console.print(" ".join(cmd), Style.DIM)
        result = runner(cmd, root)
        if isinstance(result, Err):
            return Err(
                ReleaseError(
                    kind="pr_failed",
                    message=f"{result.error}",
                    stage="pr",
                    hint=result.error.detail or None,
                )
            )
    return Ok(None)
