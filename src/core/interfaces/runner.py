"""Command runner contract.

Why Protocol:
- A structural contract (duck typing) without rigid inheritance.
- Lets the smoke controls run against the real `subprocess` adapter or a
  scripted fake in tests.
"""

from __future__ import annotations

from typing import Mapping, Protocol, Sequence, runtime_checkable

from core.domain.models import CommandResult


@runtime_checkable
class CommandRunner(Protocol):
    """Minimal contract for running one external process.

    Design rules:
    - `run` blocks until the process exits; no timeout is applied.
    - Exit status, stdout and stderr are the whole observed contract.
    """

    def run(
        self,
        command: str | Sequence[str],
        *,
        shell: bool = False,
        env: Mapping[str, str] | None = None,
        display: str | None = None,
    ) -> CommandResult:
        """Run `command` and capture its result.

        `env` entries are added to the inherited environment. `display` is
        the command line recorded in the result, for commands whose real
        arguments should not be echoed.
        """

        ...
