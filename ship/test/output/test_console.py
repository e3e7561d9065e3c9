from __future__ import annotations

import pytest

from ship.output.console import MockConsole, RichConsole, Style


class TestMockConsole:
    def test_records_styles(self) -> None:
        console = MockConsole()

        console.print("git push github feature", Style.DIM)
        console.success("tagged v1.0.0")
        console.error("[ci] CI failed for feature")
        console.header("Merge")

        assert console.messages == [
            "git push github feature",
            "OK tagged v1.0.0",
            "error: [ci] CI failed for feature",
            "Merge",
        ]
        assert console.has_error()
        assert console.count(Style.HEADER) == 1
        assert len(console.find("feature")) == 2

    def test_clear(self) -> None:
        console = MockConsole()
        console.warning("slow CI")
        console.clear()
        assert console.text == ""
        assert not console.has_error()


class TestRichConsole:
    def test_brackets_are_not_markup(self, capsys: pytest.CaptureFixture[str]) -> None:
        console = RichConsole()

        console.error("[tag] tag v1.0.0 already exists")
        console.print("[package] version = [1.0.0]", Style.DIM)

        out = capsys.readouterr().out
        assert "error: [tag] tag v1.0.0 already exists" in out
        assert "[package] version = [1.0.0]" in out
