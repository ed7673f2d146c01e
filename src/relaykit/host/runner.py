"""Subprocess execution for host commands.

All real collaborators shell out through ``CommandRunner.run``. It never
raises for a failing command: a non-zero exit, a missing binary or a timeout
comes back as ``Err(CommandError)`` carrying the command line, the exit code
and the command's own stderr.
"""

from __future__ import annotations

import os
import subprocess
from pathlib import Path

from relaykit.core.errors import CommandError
from relaykit.core.logging import get_logger
from relaykit.core.result import Err, Ok, Result
from relaykit.host._types import CommandOutput

logger = get_logger(__name__)


class CommandRunner:
    """Runs host commands, optionally through ``sudo``.

    Parameters
    ----------
    use_sudo
        Prefix privileged commands (``privileged=True``) with ``sudo``.
    timeout
        Default per-command timeout in seconds. ``None`` waits forever.
    env
        Extra environment variables merged over ``os.environ``.
    """

    def __init__(
        self,
        use_sudo: bool = True,
        timeout: float | None = 900,
        env: dict[str, str] | None = None,
    ) -> None:
        self.use_sudo = use_sudo
        self.timeout = timeout
        self.env = dict(env or {})

    def run(
        self,
        args: list[str],
        *,
        cwd: Path | str | None = None,
        privileged: bool = False,
        timeout: float | None = None,
    ) -> Result[CommandOutput]:
        """Run ``args`` and capture its output."""
        cmd = list(args)
        if privileged and self.use_sudo and os.geteuid() != 0:
            cmd = ["sudo", *cmd]
        timeout = timeout if timeout is not None else self.timeout

        logger.debug("command.exec", cmd=" ".join(cmd), cwd=str(cwd or ""))
        try:
            proc = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=timeout,
                cwd=str(cwd) if cwd else None,
                env={**os.environ, **self.env},
            )
        except subprocess.TimeoutExpired as exc:
            return Err(CommandError(
                f"Command timed out after {timeout}s: {' '.join(cmd)}",
                command=cmd,
                cause=exc,
            ))
        except OSError as exc:
            return Err(CommandError(
                f"Could not execute {cmd[0]}: {exc.strerror or exc}",
                command=cmd,
                stderr=str(exc),
                cause=exc,
            ))

        output = CommandOutput(
            args=tuple(cmd),
            returncode=proc.returncode,
            stdout=proc.stdout or "",
            stderr=proc.stderr or "",
        )
        if proc.returncode != 0:
            return Err(CommandError(
                f"Command failed (exit {proc.returncode}): {' '.join(cmd)}",
                command=cmd,
                returncode=proc.returncode,
                stderr=output.stderr,
            ))
        return Ok(output)
