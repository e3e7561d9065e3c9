"""Result type for explicit error handling.

Every operation in ship that talks to git, gh, or an external tool returns
``Ok(value)`` or ``Err(error)`` instead of raising. Callers branch on the
variant with ``isinstance`` or structural pattern matching:

    match repo.current_branch():
        case Ok(branch):
            console.print(branch)
        case Err(e):
            console.error(e.message)
"""

from __future__ import annotations

from dataclasses import dataclass

__all__ = ["Err", "Ok", "Result"]


@dataclass(frozen=True, slots=True)
class Ok[T]:
    """Successful result.

    Attributes:
        value: The success value.
    """

    value: T

    def __repr__(self) -> str:
        return f"Ok({self.value!r})"


@dataclass(frozen=True, slots=True)
class Err[E]:
    """Failed result.

    Attributes:
        error: The error payload.
    """

    error: E

    def __repr__(self) -> str:
        return f"Err({self.error!r})"


type Result[T, E] = Ok[T] | Err[E]
