from __future__ import annotations

from pathlib import Path

import pytest
import typer

import ship.cli.commands.branch_cmd as branch_cmd
from ship.core.errors import ErrorCode
from ship.core.result import Ok
from ship.output.console import MockConsole
from ship.release.ci import CiState
from ship.test.cli._ctx import make_ctx
from ship.test.release._fakes import FakeRepository, ScriptedCiSource


def _use(monkeypatch: pytest.MonkeyPatch, repo: FakeRepository) -> MockConsole:
    ctx = make_ctx(repo)
    monkeypatch.setattr(branch_cmd, "build_context", lambda: ctx)
    assert isinstance(ctx.console, MockConsole)
    return ctx.console


def _ci(monkeypatch: pytest.MonkeyPatch, source: ScriptedCiSource) -> None:
    monkeypatch.setattr(branch_cmd, "ensure_gh_available", lambda: Ok(None))
    monkeypatch.setattr(branch_cmd, "GhCiStatus", lambda repo, slug=None: source)


def test_push_feature_branch(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    repo = FakeRepository(path=tmp_path)
    _use(monkeypatch, repo)

    branch_cmd.push()

    assert repo.calls == ["push github feature"]


def test_push_refuses_trunk(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    repo = FakeRepository(path=tmp_path, current="master")
    console = _use(monkeypatch, repo)

    with pytest.raises(typer.Exit) as exc:
        branch_cmd.push()

    assert exc.value.exit_code == int(ErrorCode.USER_ERROR)
    assert repo.calls == []
    assert console.find("[guard]")


def test_push_refuses_detached_head(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    repo = FakeRepository(path=tmp_path, current="")
    console = _use(monkeypatch, repo)

    with pytest.raises(typer.Exit) as exc:
        branch_cmd.push()

    assert exc.value.exit_code == int(ErrorCode.USER_ERROR)
    assert console.find("GuardError: no_branch")


def test_done_lands_named_branch(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    repo = FakeRepository(path=tmp_path)
    _use(monkeypatch, repo)

    branch_cmd.done(branch="feature")

    assert repo.remote.branches["master"] == "c1"
    assert not repo.branch_exists("feature")


def test_done_rebase_conflict_exits_with_git_error(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    repo = FakeRepository(path=tmp_path, fail_rebase="CONFLICT (content)")
    console = _use(monkeypatch, repo)

    with pytest.raises(typer.Exit) as exc:
        branch_cmd.done(branch=None)

    assert exc.value.exit_code == int(ErrorCode.GIT_ERROR)
    assert console.find("[rebase]")
    assert repo.branch_exists("feature")


def test_merge_waits_for_ci_then_lands(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    repo = FakeRepository(path=tmp_path)
    _use(monkeypatch, repo)
    source = ScriptedCiSource([CiState.PENDING, CiState.SUCCESS])
    _ci(monkeypatch, source)

    branch_cmd.merge(branch=None, ci_timeout=None)

    assert source.queries == ["feature", "feature"]
    assert repo.remote.branches["master"] == "c1"


def test_merge_red_ci_touches_nothing(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    repo = FakeRepository(path=tmp_path)
    console = _use(monkeypatch, repo)
    _ci(monkeypatch, ScriptedCiSource([CiState.FAILURE]))

    with pytest.raises(typer.Exit) as exc:
        branch_cmd.merge(branch="feature", ci_timeout=None)

    assert exc.value.exit_code == int(ErrorCode.CI_ERROR)
    assert repo.calls == []
    assert console.find("[ci]")


def test_merge_ci_timeout_cancels(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    repo = FakeRepository(path=tmp_path)
    _use(monkeypatch, repo)
    _ci(monkeypatch, ScriptedCiSource([CiState.PENDING]))

    with pytest.raises(typer.Exit) as exc:
        branch_cmd.merge(branch="feature", ci_timeout=0.05)

    assert exc.value.exit_code == int(ErrorCode.CANCELLED)
    assert repo.calls == []


def test_merge_refuses_trunk_before_ci(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    repo = FakeRepository(path=tmp_path)
    _use(monkeypatch, repo)
    source = ScriptedCiSource([CiState.SUCCESS])
    _ci(monkeypatch, source)

    with pytest.raises(typer.Exit) as exc:
        branch_cmd.merge(branch="master", ci_timeout=None)

    assert exc.value.exit_code == int(ErrorCode.USER_ERROR)
    assert source.queries == []
