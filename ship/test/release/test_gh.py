from __future__ import annotations

import pytest

import ship.release.gh as gh_mod
from ship.core.result import Err, Ok


def test_gh_missing(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(gh_mod.shutil, "which", lambda name: None)

    result = gh_mod.ensure_gh_available()

    assert isinstance(result, Err)
    assert result.error.kind == "gh_missing"
    assert result.error.hint is not None


def test_gh_present(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(gh_mod.shutil, "which", lambda name: f"/usr/bin/{name}")
    assert gh_mod.ensure_gh_available() == Ok(None)
