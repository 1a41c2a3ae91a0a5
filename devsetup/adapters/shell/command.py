"""
Subprocess runner — the single place where install commands are executed.

Every package-manager call, download script and build step goes
through ``SubprocessRunner.run``. All timeout handling, logging and
error capture is centralised here.
"""

from __future__ import annotations

import logging
import shlex
import subprocess
import time

from devsetup.adapters.base import CommandRunner
from devsetup.core.models.result import CommandResult

logger = logging.getLogger(__name__)

# Output kept per stream; installers can be very chatty.
_OUTPUT_TAIL = 4000


class SubprocessRunner(CommandRunner):
    """Run commands with ``subprocess.run`` and capture their output.

    String commands run through ``bash -c`` so pipes like
    ``curl ... | bash`` behave as they would in a terminal.

    Output is decoded as UTF-8; undecodable bytes become U+FFFD.
    """

    def run(
        self,
        command: list[str] | str,
        *,
        cwd: str | None = None,
        timeout: int | None = None,
    ) -> CommandResult:
        if isinstance(command, str):
            argv = ["bash", "-c", command]
            display = command
        else:
            argv = list(command)
            display = shlex.join(argv)

        logger.debug("Executing: %s (cwd=%s, timeout=%s)", display, cwd, timeout)
        start = time.monotonic()

        try:
            result = subprocess.run(
                argv,
                cwd=cwd,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                timeout=timeout,
            )
        except subprocess.TimeoutExpired:
            return CommandResult.failure(
                command=display,
                returncode=-1,
                timed_out=True,
                error=f"timed out after {timeout}s",
                duration_ms=_elapsed_ms(start),
            )
        except FileNotFoundError:
            return CommandResult.failure(
                command=display,
                returncode=127,
                error=f"command not found: {argv[0]}",
                duration_ms=_elapsed_ms(start),
            )
        except OSError as e:
            logger.exception("Subprocess error: %s", display)
            return CommandResult.failure(
                command=display,
                returncode=-1,
                error=f"execution error: {e}",
                duration_ms=_elapsed_ms(start),
            )

        stdout = (result.stdout or "")[-_OUTPUT_TAIL:]
        stderr = (result.stderr or "")[-_OUTPUT_TAIL:]
        elapsed = _elapsed_ms(start)

        if result.returncode == 0:
            return CommandResult.success(
                command=display,
                stdout=stdout,
                stderr=stderr,
                duration_ms=elapsed,
            )

        logger.debug("Command failed (exit %d): %s", result.returncode, display)
        return CommandResult.failure(
            command=display,
            returncode=result.returncode,
            stdout=stdout,
            stderr=stderr,
            duration_ms=elapsed,
        )


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)
