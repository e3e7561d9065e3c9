from __future__ import annotations

from ship.core.config import GitConfig
from ship.core.result import Err, Ok, Result
from ship.git.repository import Repository
from ship.output.console import ConsoleProtocol, Style
from ship.release.errors import ReleaseError
from ship.release.guard import guard_push


class BranchMerger:
    """Land a feature branch on trunk and clean it up.

    The remote trunk is fast-forwarded with an explicit ``source:trunk``
    push; no merge commit is created anywhere. Each step runs only after the
    previous one succeeded, so a rejected push leaves both local trunk and the
    source branch untouched.
    """

    def __init__(self, *, repo: Repository, git: GitConfig, console: ConsoleProtocol) -> None:
        self._repo = repo
        self._git = git
        self._console = console

    def merge(self, source: str) -> Result[None, ReleaseError]:
        remote = self._git.remote
        trunk = self._git.trunk

        guard = guard_push(source, trunk)
        if isinstance(guard, Err):
            return guard

        refspec = f"{source}:{trunk}"
        self._console.print(f"git push {remote} {refspec}", Style.DIM)
        pushed = self._repo.push(remote, refspec)
        if isinstance(pushed, Err):
            return Err(
                ReleaseError(
                    kind="push_rejected",
                    message=f"push of {source} to {remote}/{trunk} rejected",
                    stage="push",
                    hint=pushed.error.message,
                )
            )

        upstream = f"{remote}/{trunk}"
        self._console.print(f"git rebase {upstream} {trunk}", Style.DIM)
        rebased = self._repo.rebase(upstream, trunk)
        if isinstance(rebased, Err):
            return Err(
                ReleaseError(
                    kind="rebase_conflict",
                    message=f"rebase of {trunk} onto {upstream} failed",
                    stage="rebase",
                    hint=f"{rebased.error.message}\nResolve manually or run: git rebase --abort",
                )
            )

        self._console.print(f"git branch -d {source}", Style.DIM)
        deleted = self._repo.delete_branch(source)
        if isinstance(deleted, Err):
            return Err(
                ReleaseError(
                    kind="branch_delete_failed",
                    message=f"could not delete merged branch {source}",
                    stage="cleanup",
                    hint=deleted.error.message,
                )
            )

        self._console.success(f"{source} landed on {remote}/{trunk}")
        return Ok(None)
