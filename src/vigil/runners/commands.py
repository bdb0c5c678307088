"""External command runner used by analyzers."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)


class CommandError(RuntimeError):
    """A command exited with a non-zero status while ``check`` was set."""

    def __init__(self, result: CommandResult) -> None:
        super().__init__(f"Command '{result.command}' exited with status {result.returncode}")
        self.result = result


class CommandTimeoutError(TimeoutError):
    """A command did not finish within its timeout."""

    def __init__(self, command: str, timeout: float) -> None:
        super().__init__(f"Command '{command}' timed out after {timeout} seconds")
        self.command = command
        self.timeout = timeout


@dataclass(frozen=True)
class CommandResult:
    """Captured output of a finished command."""

    command: str
    returncode: int
    stdout: str
    stderr: str
    duration: float

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def output(self) -> str:
        """Combined stdout and stderr."""
        if self.stderr:
            return f"{self.stdout}\n\nSTDERR:\n{self.stderr}"
        return self.stdout


class CommandRunner:
    """Executes shell commands in the project root."""

    def __init__(self, project_root: Path, timeout: int = 300) -> None:
        self.project_root = project_root
        self.timeout = timeout  # Per-command timeout

    async def run(self, command: str, check: bool = False) -> CommandResult:
        """Run a shell command and capture its output.

        Args:
            command: Shell command line
            check: Raise CommandError on a non-zero exit status

        Returns:
            CommandResult with exit status and decoded output

        Raises:
            CommandTimeoutError: If the command exceeds the timeout
            CommandError: If ``check`` is set and the command fails
        """
        logger.debug(f"Running command: {command}")
        start = time.perf_counter()
        process = await asyncio.create_subprocess_shell(
            command,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=self.project_root,
        )

        try:
            stdout, stderr = await asyncio.wait_for(
                process.communicate(),
                timeout=self.timeout,
            )
        except TimeoutError:
            process.kill()
            await process.wait()
            raise CommandTimeoutError(command, self.timeout) from None

        result = CommandResult(
            command=command,
            returncode=process.returncode if process.returncode is not None else -1,
            stdout=stdout.decode("utf-8", errors="replace"),
            stderr=stderr.decode("utf-8", errors="replace"),
            duration=time.perf_counter() - start,
        )
        logger.debug(f"Command '{command}' exited with {result.returncode} in {result.duration:.2f}s")

        if check and not result.ok:
            raise CommandError(result)
        return result
