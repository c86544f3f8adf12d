"""
superinit.runner - External Command Execution
=============================================

Every external tool superinit drives (git, poetry, django-admin, pre-commit,
the task runner's tools) goes through ``CommandRunner.run``. A non-zero exit
raises ``CommandError`` carrying the tool's exit status, which the CLI
propagates unchanged.

By default commands inherit the terminal, so the operator sees each tool's
own output and, on failure, its diagnostic is the last thing printed.
Pass ``capture=True`` to collect output instead (used for probes such as
``git rev-parse``).
"""

from __future__ import annotations

import logging
import os
import subprocess
from collections.abc import Mapping, Sequence
from pathlib import Path

from superinit.errors import CommandError


logger = logging.getLogger(__name__)

# Shell convention for "command not found"
EXIT_NOT_FOUND = 127


class CommandRunner:
    """
    Run subprocesses and raise on failure.

    Parameters
    ----------
    env : Mapping[str, str] | None
        Extra environment variables layered over ``os.environ`` for every
        command.
    """

    def __init__(self, env: Mapping[str, str] | None = None) -> None:
        self.env = dict(env or {})

    def run(
        self,
        command: Sequence[str],
        *,
        cwd: Path | None = None,
        capture: bool = False,
        check: bool = True,
    ) -> subprocess.CompletedProcess[str]:
        """
        Execute ``command`` and return the completed process.

        Parameters
        ----------
        command : Sequence[str]
            Argument vector; never passed through a shell.

        cwd : Path | None
            Working directory for the command.

        capture : bool, default=False
            Capture stdout/stderr as text instead of inheriting the terminal.

        check : bool, default=True
            Raise ``CommandError`` on a non-zero exit status.

        Raises
        ------
        CommandError
            If the command fails and ``check`` is set, or if the executable
            does not exist (exit status 127).
        """
        argv = list(command)
        logger.debug("Running %s (cwd=%s)", " ".join(argv), cwd or Path.cwd())

        process_env = {**os.environ, **self.env}
        try:
            result = subprocess.run(
                argv,
                cwd=str(cwd) if cwd else None,
                env=process_env,
                capture_output=capture,
                text=True,
                check=False,
            )
        except FileNotFoundError as e:
            logger.debug("Executable not found: %s", argv[0])
            raise CommandError(argv, EXIT_NOT_FOUND, stderr=str(e)) from e

        logger.debug("Exit status %d from %s", result.returncode, argv[0])
        if check and result.returncode != 0:
            raise CommandError(
                argv,
                result.returncode,
                stdout=result.stdout or "",
                stderr=result.stderr or "",
            )
        return result

    def succeeds(self, command: Sequence[str], *, cwd: Path | None = None) -> bool:
        """Run a probe command quietly and report whether it exited 0."""
        try:
            return self.run(command, cwd=cwd, capture=True, check=False).returncode == 0
        except CommandError:
            return False
