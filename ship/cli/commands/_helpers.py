"""Shared helpers for CLI commands."""

from __future__ import annotations

import signal
from collections.abc import Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING, TypeVar

import typer

from ship.core.errors import ErrorCode
from ship.core.result import Err, Result
from ship.output.console import Style
from ship.release.ci import CancelToken
from ship.release.errors import ReleaseError

if TYPE_CHECKING:
    from ship.cli.context import CLIContext


T = TypeVar("T")


def exit_on_error[T](result: Result[T, ReleaseError], ctx: CLIContext, *, stage: str) -> T:
    """Return the Ok value, or report the error and exit non-zero.

    The failing stage is always printed; ``stage`` is used when the error
    does not carry a more specific one.
    """
    if isinstance(result, Err):
        error = result.error.at(stage)
        ctx.console.error(f"[{error.stage}] {error.message}")
        ctx.console.print(f"{error.family}: {error.kind}", Style.DIM)
        if error.hint:
            ctx.console.print(f"hint: {error.hint}", Style.DIM)
        raise typer.Exit(code=int(error.exit_code))
    return result.value


def current_branch_or_exit(ctx: CLIContext) -> str:
    result = ctx.repo.current_branch()
    if isinstance(result, Err):
        ctx.console.error(f"[git] {result.error.message}")
        raise typer.Exit(code=int(ErrorCode.ENV_ERROR))
    return result.value


@contextmanager
def cancel_on_interrupt(timeout: float | None = None) -> Iterator[CancelToken]:
    """Yield a CancelToken that fires on Ctrl-C or after ``timeout`` seconds."""
    token = CancelToken()
    if timeout is not None:
        token.cancel_after(timeout)

    def _handler(signum: int, frame: object) -> None:
        del signum, frame
        token.cancel()

    previous = signal.signal(signal.SIGINT, _handler)
    try:
        yield token
    finally:
        signal.signal(signal.SIGINT, previous)
        token.close()
