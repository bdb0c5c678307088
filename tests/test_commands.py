"""Tests for the external command runner."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

from vigil.runners.commands import CommandError, CommandResult, CommandRunner, CommandTimeoutError

pytestmark = pytest.mark.skipif(sys.platform == "win32", reason="uses POSIX shell commands")


class TestCommandResult:
    """Tests for CommandResult."""

    def test_output_without_stderr(self) -> None:
        result = CommandResult(command="x", returncode=0, stdout="out", stderr="", duration=0.1)
        assert result.ok
        assert result.output == "out"

    def test_output_with_stderr(self) -> None:
        result = CommandResult(command="x", returncode=2, stdout="out", stderr="err", duration=0.1)
        assert not result.ok
        assert result.output == "out\n\nSTDERR:\nerr"


class TestCommandRunner:
    """Tests for CommandRunner.run."""

    @pytest.mark.asyncio
    async def test_captures_stdout(self, temp_dir: Path) -> None:
        runner = CommandRunner(temp_dir)

        result = await runner.run("echo hello")

        assert result.ok
        assert result.stdout.strip() == "hello"
        assert result.duration >= 0

    @pytest.mark.asyncio
    async def test_runs_in_project_root(self, temp_dir: Path) -> None:
        (temp_dir / "marker.txt").write_text("x")
        runner = CommandRunner(temp_dir)

        result = await runner.run("ls")

        assert "marker.txt" in result.stdout

    @pytest.mark.asyncio
    async def test_nonzero_exit_returned(self, temp_dir: Path) -> None:
        runner = CommandRunner(temp_dir)

        result = await runner.run("echo boom >&2; exit 3")

        assert result.returncode == 3
        assert result.stderr.strip() == "boom"

    @pytest.mark.asyncio
    async def test_check_raises(self, temp_dir: Path) -> None:
        runner = CommandRunner(temp_dir)

        with pytest.raises(CommandError) as exc_info:
            await runner.run("exit 1", check=True)

        assert exc_info.value.result.returncode == 1

    @pytest.mark.asyncio
    async def test_timeout(self, temp_dir: Path) -> None:
        runner = CommandRunner(temp_dir, timeout=1)

        with pytest.raises(CommandTimeoutError, match="timed out after 1 seconds"):
            await runner.run("sleep 5")
