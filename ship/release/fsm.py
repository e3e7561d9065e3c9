from __future__ import annotations

from collections.abc import Callable, Hashable, Mapping
from dataclasses import dataclass
from typing import TypeVar

from ship.core.result import Err, Ok, Result
from ship.release.errors import ReleaseError

S = TypeVar("S", bound=Hashable)


@dataclass(frozen=True, slots=True)
class StepAdvance[S]:
    state: S


@dataclass(frozen=True, slots=True)
class StepFinish:
    pass


StepOutcome = StepAdvance[S] | StepFinish
StepHandler = Callable[[], Result[StepOutcome[S], ReleaseError]]
OnAdvance = Callable[[S], None]


FINISH = StepFinish()


def advance[S](state: S) -> StepAdvance[S]:
    return StepAdvance(state=state)


def run_state_machine(
    *,
    initial_state: S,
    handlers: Mapping[S, StepHandler[S]],
    on_advance: OnAdvance[S],
) -> Result[S, ReleaseError]:
    """Drive handlers from ``initial_state`` until one returns FINISH.

    ``on_advance`` is called after every successful transition, so the
    observer always holds the last state that was fully reached. A handler
    error stops the machine there.

    Returns:
        Ok(final state) or the first handler error.
    """
    current = initial_state

    while True:
        handler = handlers.get(current)
        if handler is None:
            return Err(
                ReleaseError(kind="config_invalid", message=f"no handler for state: {current}")
            )

        outcome = handler()
        if isinstance(outcome, Err):
            return outcome

        if isinstance(outcome.value, StepFinish):
            return Ok(current)

        current = outcome.value.state
        on_advance(current)
