"""Local verification suite run before any remote-affecting action."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from ship.core.config import Command, VerifyConfig
from ship.core.result import Err, Ok, Result
from ship.git.repository import Repository
from ship.output.console import ConsoleProtocol, Style
from ship.platform.process import ProcessError, run_silent
from ship.release.errors import ReleaseError

Category = Literal["tests", "lint", "minimal_versions", "docs", "style", "outdated"]

CommandRunner = Callable[[list[str], Path], Result[None, ProcessError]]


def stream_command(cmd: list[str], cwd: Path) -> Result[None, ProcessError]:
    return run_silent(cmd, cwd=cwd)


@dataclass(frozen=True, slots=True)
class PreflightStep:
    category: Category
    command: Command


class PreflightGate:
    """Run the verification suite, then require a clean working tree.

    Steps run in order and stop at the first failure. Documentation
    generation runs before the tree check so that stale generated files
    show up as a dirty tree.
    """

    def __init__(
        self,
        *,
        repo: Repository,
        verify: VerifyConfig,
        console: ConsoleProtocol,
        include_outdated: bool = False,
        runner: CommandRunner = stream_command,
    ) -> None:
        self._repo = repo
        self._verify = verify
        self._console = console
        self._include_outdated = include_outdated
        self._runner = runner

    def steps_before_tree_check(self) -> list[PreflightStep]:
        v = self._verify
        groups: list[tuple[Category, tuple[Command, ...]]] = [
            ("tests", v.tests),
            ("lint", v.lint),
            ("minimal_versions", v.minimal_versions),
            ("docs", v.docs),
        ]
        return [PreflightStep(category, cmd) for category, cmds in groups for cmd in cmds]

    def steps_after_tree_check(self) -> list[PreflightStep]:
        steps = [PreflightStep("style", cmd) for cmd in self._verify.style]
        if self._include_outdated:
            steps.extend(PreflightStep("outdated", cmd) for cmd in self._verify.outdated)
        return steps

    def run(self) -> Result[None, ReleaseError]:
        self._console.header("Preflight")

        for step in self.steps_before_tree_check():
            result = self._run_step(step)
            if isinstance(result, Err):
                return result

        clean = self._repo.diff_is_clean()
        if isinstance(clean, Err):
            return Err(
                ReleaseError(
                    kind="git_failed",
                    message="cannot check working tree",
                    stage="preflight",
                    hint=clean.error.message,
                )
            )
        if not clean.value:
            return Err(
                ReleaseError(
                    kind="dirty_tree",
                    message="working tree has changes after verification",
                    stage="preflight",
                    hint="Commit regenerated files or run: git diff",
                )
            )
        self._console.print("working tree: clean", Style.DIM)

        for step in self.steps_after_tree_check():
            result = self._run_step(step)
            if isinstance(result, Err):
                return result

        self._console.success("preflight passed")
        return Ok(None)

    def _run_step(self, step: PreflightStep) -> Result[None, ReleaseError]:
        cmd = list(step.command)
        self._console.print(f"{step.category}: {' '.join(cmd)}", Style.DIM)
        result = self._runner(cmd, self._repo.path)
        if isinstance(result, Err):
            return Err(
                ReleaseError(
                    kind="verification_failed",
                    message=f"{step.category} check failed: {result.error}",
                    stage="preflight",
                    hint=result.error.detail or None,
                )
            )
        return Ok(None)
