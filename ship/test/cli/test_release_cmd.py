from __future__ import annotations

import time
from pathlib import Path

import pytest
import typer

import ship.cli.commands.release_cmd as release_cmd
from ship.core.errors import ErrorCode
from ship.core.result import Ok, Result
from ship.output.console import MockConsole
from ship.release.ci import CiState
from ship.release.errors import ReleaseError
from ship.test.cli._ctx import make_ctx, write_project
from ship.test.release._fakes import (
    FakePreflight,
    FakeRegistry,
    FakeRepository,
    ScriptedCiSource,
)


def _use(monkeypatch: pytest.MonkeyPatch, repo: FakeRepository) -> MockConsole:
    ctx = make_ctx(repo)
    monkeypatch.setattr(release_cmd, "build_context", lambda: ctx)
    assert isinstance(ctx.console, MockConsole)
    return ctx.console


def _remote_side(
    monkeypatch: pytest.MonkeyPatch, source: ScriptedCiSource, registry: FakeRegistry
) -> None:
    monkeypatch.setattr(release_cmd, "ensure_gh_available", lambda: Ok(None))
    monkeypatch.setattr(release_cmd, "GhCiStatus", lambda repo, slug=None: source)
    monkeypatch.setattr(release_cmd, "CommandRegistry", lambda **_: registry)


def test_check_passes_on_clean_tree(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    _use(monkeypatch, FakeRepository(path=tmp_path))
    release_cmd.check()


def test_check_fails_on_dirty_tree(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    console = _use(monkeypatch, FakeRepository(path=tmp_path, clean=False))

    with pytest.raises(typer.Exit) as exc:
        release_cmd.check()

    assert exc.value.exit_code == int(ErrorCode.VERIFY_ERROR)
    assert console.find("dirty_tree")


def test_publish_check_ready(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    write_project(tmp_path)
    repo = FakeRepository(path=tmp_path)
    console = _use(monkeypatch, repo)

    release_cmd.publish_check()

    assert console.find("ready to publish v3.1.0")
    assert repo.calls == []


def test_publish_check_missing_changelog(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    write_project(tmp_path, version="3.2.0", entry="3.1.0")
    console = _use(monkeypatch, FakeRepository(path=tmp_path))

    with pytest.raises(typer.Exit) as exc:
        release_cmd.publish_check()

    assert exc.value.exit_code == int(ErrorCode.PUBLISH_ERROR)
    assert console.find("[changelog]")


def test_version_prints_tag(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    write_project(tmp_path, version="0.1.2")
    _use(monkeypatch, FakeRepository(path=tmp_path))

    release_cmd.version()

    assert capsys.readouterr().out.strip() == "v0.1.2"


def test_version_without_metadata(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    _use(monkeypatch, FakeRepository(path=tmp_path))

    with pytest.raises(typer.Exit) as exc:
        release_cmd.version()

    assert exc.value.exit_code == int(ErrorCode.USER_ERROR)


def test_publish_full_pipeline(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    write_project(tmp_path)
    repo = FakeRepository(path=tmp_path)
    console = _use(monkeypatch, repo)
    registry = FakeRegistry()
    _remote_side(monkeypatch, ScriptedCiSource([CiState.SUCCESS]), registry)

    release_cmd.publish(ci_timeout=None)

    assert repo.remote.tags == {"v3.1.0"}
    assert registry.calls == 1
    assert console.find("state: package-published")


def test_publish_reports_last_state(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    write_project(tmp_path)
    repo = FakeRepository(path=tmp_path)
    console = _use(monkeypatch, repo)
    registry = FakeRegistry(fail=True)
    _remote_side(monkeypatch, ScriptedCiSource([CiState.SUCCESS]), registry)

    with pytest.raises(typer.Exit) as exc:
        release_cmd.publish(ci_timeout=None)

    assert exc.value.exit_code == int(ErrorCode.PUBLISH_ERROR)
    assert console.find("pipeline stopped after: merged")
    assert console.find("[registry]")


def test_ci_timeout_does_not_count_preflight(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    write_project(tmp_path)
    repo = FakeRepository(path=tmp_path)
    _use(monkeypatch, repo)
    source = ScriptedCiSource([CiState.SUCCESS])
    registry = FakeRegistry()
    _remote_side(monkeypatch, source, registry)

    class SlowPreflight(FakePreflight):
        def run(self) -> Result[None, ReleaseError]:
            time.sleep(0.3)
            return super().run()

    monkeypatch.setattr(release_cmd, "_preflight", lambda ctx, include_outdated: SlowPreflight())

    release_cmd.publish(ci_timeout=0.1)

    assert source.queries == ["feature"]
    assert registry.calls == 1
