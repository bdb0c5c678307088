"""Execution runners for external commands."""

from vigil.runners.commands import CommandError, CommandResult, CommandRunner, CommandTimeoutError

__all__ = [
    "CommandError",
    "CommandResult",
    "CommandRunner",
    "CommandTimeoutError",
]
