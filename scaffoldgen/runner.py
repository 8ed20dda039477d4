"""Post-generation command runner.

Runs the plan's commands one after another in the generation root, capturing
combined stdout/stderr for each.  The first command that cannot start or
exits non-zero stops the run.  Cancellation is cooperative: when the
cancellation event is set, the running command is killed and no further
commands start.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path

from rich.markup import escape

from scaffoldgen.errors import CommandFailure
from scaffoldgen.plan.models import CommandEntry
from scaffoldgen.utils import console


@dataclass
class CommandResult:
    """Outcome of one completed command."""

    name: str
    args: list[str] = field(default_factory=list)
    returncode: int = 0
    output: str = ""

    @property
    def command_line(self) -> str:
        return " ".join([self.name, *self.args])


class CommandRunner:
    """Executes command entries sequentially.

    Args:
        cwd: Working directory for every command.  ``None`` keeps the
            current process directory.
        cancel_event: Optional event; once set, the running command is killed
            and :class:`CommandFailure` is raised.
        verbose: Print each command line before it runs.
    """

    def __init__(
        self,
        cwd: str | Path | None = None,
        cancel_event: asyncio.Event | None = None,
        *,
        verbose: bool = False,
    ) -> None:
        self.cwd = Path(cwd) if cwd is not None else None
        self.cancel_event = cancel_event
        self.verbose = verbose

    @property
    def cancelled(self) -> bool:
        return self.cancel_event is not None and self.cancel_event.is_set()

    async def run_all(self, commands: Iterable[CommandEntry]) -> list[CommandResult]:
        """Run *commands* in order, waiting for each before starting the next."""
        results: list[CommandResult] = []
        for command in commands:
            results.append(await self.run(command))
        return results

    async def run(self, command: CommandEntry) -> CommandResult:
        """Run a single command and return its result.

        Raises:
            CommandFailure: The command could not start, exited non-zero, or
                the run was cancelled.
        """
        cmd_str = command.display()
        if self.cancelled:
            raise CommandFailure(f"Command {cmd_str} cancelled before start", command=cmd_str)

        if self.verbose:
            console.print(f"  [cyan]$ {escape(cmd_str)}[/cyan]")

        try:
            process = await asyncio.create_subprocess_exec(
                *command.argv(),
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT,
                cwd=str(self.cwd) if self.cwd is not None else None,
            )
        except FileNotFoundError as exc:
            raise CommandFailure(
                f"Command not found: '{command.name}'", command=cmd_str
            ) from exc
        except PermissionError as exc:
            raise CommandFailure(
                f"Permission denied executing: '{command.name}'", command=cmd_str
            ) from exc
        except OSError as exc:
            raise CommandFailure(
                f"Failed to start {cmd_str}: {exc}", command=cmd_str
            ) from exc

        output_bytes = await self._communicate(process, cmd_str)
        output = output_bytes.decode("utf-8", errors="replace")
        returncode = process.returncode if process.returncode is not None else -1

        if returncode != 0:
            raise CommandFailure(
                f"Command failed (exit {returncode}): {cmd_str}",
                command=cmd_str,
                returncode=returncode,
                output=output,
            )

        return CommandResult(
            name=command.name,
            args=list(command.args),
            returncode=returncode,
            output=output,
        )

    async def _communicate(self, process: asyncio.subprocess.Process, cmd_str: str) -> bytes:
        """Wait for *process*, killing it if the cancel event fires first."""
        if self.cancel_event is None:
            stdout_bytes, _ = await process.communicate()
            return stdout_bytes or b""

        communicate = asyncio.ensure_future(process.communicate())
        cancelled = asyncio.ensure_future(self.cancel_event.wait())
        try:
            await asyncio.wait(
                {communicate, cancelled}, return_when=asyncio.FIRST_COMPLETED
            )
        finally:
            cancelled.cancel()

        if not communicate.done():
            process.kill()
            stdout_bytes, _ = await communicate
            raise CommandFailure(
                f"Command {cmd_str} cancelled",
                command=cmd_str,
                returncode=process.returncode,
                output=(stdout_bytes or b"").decode("utf-8", errors="replace"),
            )

        stdout_bytes, _ = communicate.result()
        return stdout_bytes or b""
