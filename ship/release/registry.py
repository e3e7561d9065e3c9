from __future__ import annotations

from pathlib import Path
from typing import Protocol

from ship.core.config import Command
from ship.core.result import Err, Ok, Result
from ship.output.console import ConsoleProtocol, Style
from ship.release.errors import ReleaseError
from ship.release.preflight import CommandRunner, stream_command


class RegistryPublisher(Protocol):
    def publish(self) -> Result[None, ReleaseError]: ...


class CommandRegistry:
    """Publish the built artifact with an external command (``cargo publish``).

    Registry uploads are not idempotent: a failure is reported and never
    retried here.
    """

    def __init__(
        self,
        *,
        root: Path,
        command: Command,
        console: ConsoleProtocol,
        runner: CommandRunner = stream_command,
    ) -> None:
        self._root = root
        self._command = command
        self._console = console
        self._runner = runner

    def publish(self) -> Result[None, ReleaseError]:
        cmd = list(self._command)
        self._console.print(" ".join(cmd), Style.DIM)
        result = self._runner(cmd, self._root)
        if isinstance(result, Err):
            return Err(
                ReleaseError(
                    kind="registry_failed",
                    message=f"registry publish failed: {result.error}",
                    stage="registry",
                    hint="Check the registry before retrying; the upload may be partial.",
                )
            )
        return Ok(None)
