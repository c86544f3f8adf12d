"""
superinit.errors - Exception Hierarchy
======================================

All errors raised by superinit derive from ``SuperinitError`` so the CLI
can map them to exit codes in one place.
"""

from __future__ import annotations

from collections.abc import Sequence


class SuperinitError(Exception):
    """Base class for superinit errors."""


class CommandError(SuperinitError):
    """
    An external command exited non-zero or could not be started.

    Attributes
    ----------
    command : list[str]
        The argument vector that was executed.

    returncode : int
        Exit status of the command. 127 if the executable was not found.

    stdout, stderr : str
        Captured output, empty when the command wrote to the terminal.
    """

    def __init__(
        self,
        command: Sequence[str],
        returncode: int,
        stdout: str = "",
        stderr: str = "",
    ) -> None:
        self.command = list(command)
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        super().__init__(
            f"Command '{' '.join(self.command)}' failed with exit code {returncode}"
        )


class PreconditionError(SuperinitError):
    """A step was asked to act before an earlier step's output exists."""


class UnknownTaskError(SuperinitError):
    """The requested task is not in the task table."""

    def __init__(self, name: str, available: Sequence[str]) -> None:
        self.name = name
        self.available = list(available)
        super().__init__(
            f"Unknown task '{name}'. Valid tasks: {', '.join(self.available)}"
        )
