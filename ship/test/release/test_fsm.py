from __future__ import annotations

from ship.core.result import Err, Ok, Result
from ship.release.errors import ReleaseError
from ship.release.fsm import FINISH, StepOutcome, advance, run_state_machine


def test_run_state_machine_advances_and_reports() -> None:
    entered: list[str] = []

    def step_a() -> Result[StepOutcome[str], ReleaseError]:
        return Ok(advance("b"))

    def step_b() -> Result[StepOutcome[str], ReleaseError]:
        return Ok(advance("c"))

    def step_c() -> Result[StepOutcome[str], ReleaseError]:
        return Ok(FINISH)

    result = run_state_machine(
        initial_state="a",
        handlers={"a": step_a, "b": step_b, "c": step_c},
        on_advance=entered.append,
    )

    assert result == Ok("c")
    assert entered == ["b", "c"]


def test_run_state_machine_finishing_immediately() -> None:
    entered: list[str] = []

    result = run_state_machine(
        initial_state="done",
        handlers={"done": lambda: Ok(FINISH)},
        on_advance=entered.append,
    )

    assert result == Ok("done")
    assert entered == []


def test_run_state_machine_unknown_state_fails() -> None:
    result = run_state_machine(
        initial_state="missing",
        handlers={},
        on_advance=lambda s: None,
    )

    assert isinstance(result, Err)
    assert result.error.kind == "config_invalid"
    assert "missing" in result.error.message


def test_run_state_machine_stops_at_handler_error() -> None:
    entered: list[str] = []
    calls: list[str] = []

    def step_a() -> Result[StepOutcome[str], ReleaseError]:
        calls.append("a")
        return Ok(advance("b"))

    def bad_step() -> Result[StepOutcome[str], ReleaseError]:
        calls.append("b")
        return Err(ReleaseError(kind="ci_failed", message="boom"))

    def never() -> Result[StepOutcome[str], ReleaseError]:
        calls.append("c")
        return Ok(FINISH)

    result = run_state_machine(
        initial_state="a",
        handlers={"a": step_a, "b": bad_step, "c": never},
        on_advance=entered.append,
    )

    assert isinstance(result, Err)
    assert result.error.kind == "ci_failed"
    assert entered == ["b"]
    assert calls == ["a", "b"]
