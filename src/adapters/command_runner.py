"""`subprocess` implementation of `CommandRunner`."""

from __future__ import annotations

import os
import shlex
import subprocess
from typing import Mapping, Sequence

from core.domain.models import CommandResult
from core.interfaces.runner import CommandRunner
from core.logging import get_logger

logger = get_logger("runner")

# What a POSIX shell reports for a command it cannot find.
EXIT_COMMAND_NOT_FOUND = 127
EXIT_NOT_EXECUTABLE = 126


class SubprocessRunner(CommandRunner):
    """Runs commands locally and captures their output as text."""

    def run(
        self,
        command: str | Sequence[str],
        *,
        shell: bool = False,
        env: Mapping[str, str] | None = None,
        display: str | None = None,
    ) -> CommandResult:
        if display is None:
            display = command if isinstance(command, str) else shlex.join(command)

        child_env: dict[str, str] | None = None
        if env:
            child_env = {**os.environ, **env}

        logger.debug("Running: %s", display)
        try:
            completed = subprocess.run(
                command,
                shell=shell,
                env=child_env,
                capture_output=True,
                text=True,
                check=False,
            )
        except FileNotFoundError as exc:
            return CommandResult(
                command=display,
                exit_status=EXIT_COMMAND_NOT_FOUND,
                stderr=f"{exc.filename or display}: command not found\n",
            )
        except PermissionError as exc:
            return CommandResult(
                command=display,
                exit_status=EXIT_NOT_EXECUTABLE,
                stderr=f"{exc.filename or display}: permission denied\n",
            )

        logger.debug("Exit status %s for: %s", completed.returncode, display)
        return CommandResult(
            command=display,
            exit_status=completed.returncode,
            stdout=completed.stdout,
            stderr=completed.stderr,
        )
