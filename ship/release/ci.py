"""CI status polling.

``await_ci_success`` blocks until the CI system reports success for a
branch, reports failure, or the caller's ``CancelToken`` fires. There is no
retry cap: CI runs take as long as they take. A caller that wants a
deadline layers it on the token with ``cancel_after``.
"""

from __future__ import annotations

import json
import threading
from enum import Enum
from typing import Protocol

from ship.core.result import Err, Ok, Result
from ship.core.structured import as_obj_list, as_str_dict, get_str
from ship.git.repository import Repository
from ship.output.console import ConsoleProtocol, Style
from ship.release.errors import ReleaseError
from ship.release.gh import run_gh_read

_RUN_LIST_LIMIT = 100

# Conclusions that do not block a release.
_PASSING_CONCLUSIONS = frozenset({"success", "skipped", "neutral"})


class CiState(Enum):
    SUCCESS = "success"
    PENDING = "pending"
    FAILURE = "failure"


class CiStatusSource(Protocol):
    def query(self, branch: str) -> Result[CiState, ReleaseError]: ...


class CancelToken:
    """Cancellation signal for the CI wait.

    Waiting on the token sleeps until either the timeout elapses or
    ``cancel`` is called from another thread or a signal handler.
    """

    def __init__(self) -> None:
        self._event = threading.Event()
        self._timers: list[threading.Timer] = []

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def wait(self, seconds: float) -> bool:
        """Sleep up to ``seconds``. Returns True if cancelled."""
        return self._event.wait(seconds)

    def cancel_after(self, seconds: float) -> None:
        """Cancel automatically once ``seconds`` have elapsed."""
        timer = threading.Timer(seconds, self.cancel)
        timer.daemon = True
        timer.start()
        self._timers.append(timer)

    def close(self) -> None:
        """Stop pending ``cancel_after`` timers."""
        for timer in self._timers:
            timer.cancel()
        self._timers.clear()


def classify_runs(payload: str) -> Result[CiState, ReleaseError]:
    """Reduce ``gh run list --json status,conclusion`` output to one state.

    Any failed run wins. Otherwise any unfinished run, or no run at all yet,
    means pending.
    """
    try:
        obj: object = json.loads(payload)
    except json.JSONDecodeError as e:
        return Err(
            ReleaseError(
                kind="ci_query_failed",
                message=f"invalid JSON from gh run list: {e}",
                stage="ci",
            )
        )

    runs = as_obj_list(obj)
    if runs is None:
        return Err(
            ReleaseError(
                kind="ci_query_failed", message="unexpected gh run list payload", stage="ci"
            )
        )

    pending = not runs
    for item in runs:
        run = as_str_dict(item)
        if run is None:
            continue
        if get_str(run, "status") != "completed":
            pending = True
            continue
        conclusion = get_str(run, "conclusion") or ""
        if conclusion not in _PASSING_CONCLUSIONS:
            return Ok(CiState.FAILURE)

    return Ok(CiState.PENDING if pending else CiState.SUCCESS)


class GhCiStatus:
    """CI status from GitHub Actions runs for the branch head commit."""

    def __init__(self, repo: Repository, *, slug: str | None = None) -> None:
        self._repo = repo
        self._slug = slug

    def query(self, branch: str) -> Result[CiState, ReleaseError]:
        sha = self._repo.rev_parse(branch)
        if isinstance(sha, Err):
            return Err(
                ReleaseError(
                    kind="ci_query_failed",
                    message=f"cannot resolve branch '{branch}'",
                    stage="ci",
                    hint=sha.error.message,
                )
            )

        cmd = [
            "gh",
            "run",
            "list",
            "--branch",
            branch,
            "--commit",
            sha.value,
            "--limit",
            str(_RUN_LIST_LIMIT),
            "--json",
            "status,conclusion,workflowName",
        ]
        if self._slug:
            cmd.extend(["--repo", self._slug])

        result = run_gh_read(
            root=self._repo.path,
            cmd=cmd,
            kind="ci_query_failed",
            message=f"failed to query CI status for {branch}",
        )
        if isinstance(result, Err):
            return Err(result.error.at("ci"))
        return classify_runs(result.value)


def await_ci_success(
    branch: str,
    *,
    source: CiStatusSource,
    poll_interval: float,
    cancel: CancelToken,
    console: ConsoleProtocol,
) -> Result[None, ReleaseError]:
    """Block until CI for ``branch`` succeeds.

    Returns:
        Ok(None) on success; Err with kind ``ci_failed`` on the first failure,
        ``cancelled`` when the token fires, or the query error.
    """
    console.print(f"waiting for CI on {branch} (every {poll_interval:g}s)", Style.DIM)
    polls = 0
    while True:
        if cancel.cancelled:
            return Err(_cancelled(branch, polls))

        state = source.query(branch)
        polls += 1
        if isinstance(state, Err):
            # Ctrl-C also kills the in-flight gh query.
            if cancel.cancelled:
                return Err(_cancelled(branch, polls))
            return state

        match state.value:
            case CiState.SUCCESS:
                console.success(f"CI green: {branch}")
                return Ok(None)
            case CiState.FAILURE:
                return Err(
                    ReleaseError(
                        kind="ci_failed",
                        message=f"CI failed for {branch}",
                        stage="ci",
                        hint=f"Inspect runs: gh run list --branch {branch}",
                    )
                )
            case CiState.PENDING:
                if polls == 1:
                    console.print("CI pending...", Style.DIM)

        if cancel.wait(poll_interval):
            return Err(_cancelled(branch, polls))


def _cancelled(branch: str, polls: int) -> ReleaseError:
    return ReleaseError(
        kind="cancelled",
        message=f"stopped waiting for CI on {branch} after {polls} queries",
        stage="ci",
    )
