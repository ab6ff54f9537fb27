"""
Command runner — the single place external commands are executed.

Commands are argument vectors, never shell strings, and the child's
environment is an explicit map built by the caller.  The runner never
raises for a failing command: the outcome is captured in a
``CommandResult``.
"""

from __future__ import annotations

import logging
import subprocess
import time
from collections.abc import Callable, Mapping

from op_ubi.core.models.command import CommandResult

logger = logging.getLogger(__name__)

# Tail kept from each stream; installer output can be long
_OUTPUT_LIMIT = 4000

Runner = Callable[..., CommandResult]


def run_command(
    argv: list[str],
    *,
    env: Mapping[str, str] | None = None,
    timeout: int = 120,
    cwd: str | None = None,
) -> CommandResult:
    """Run ``argv`` and capture its outcome.

    Args:
        argv: Executable and arguments.
        env: Complete child environment.  None inherits the parent's.
        timeout: Seconds before the child is killed.
        cwd: Working directory.

    Returns:
        CommandResult (``ok`` is False on non-zero exit, timeout or
        launch failure).
    """
    # argv only: env may carry secrets and is never logged
    logger.debug("Executing: %s", " ".join(argv))
    start = time.monotonic()

    try:
        result = subprocess.run(
            argv,
            capture_output=True,
            text=True,
            timeout=timeout,
            env=dict(env) if env is not None else None,
            cwd=cwd,
        )
    except subprocess.TimeoutExpired:
        return CommandResult(
            argv=argv,
            returncode=-1,
            timed_out=True,
            stderr=f"Command timed out after {timeout}s",
            elapsed_ms=int((time.monotonic() - start) * 1000),
        )
    except OSError as e:
        return CommandResult(
            argv=argv,
            returncode=-1,
            launch_error=f"Cannot execute {argv[0]}: {e}",
            elapsed_ms=int((time.monotonic() - start) * 1000),
        )

    elapsed_ms = int((time.monotonic() - start) * 1000)
    logger.debug("%s exited %d in %dms", argv[0], result.returncode, elapsed_ms)

    return CommandResult(
        argv=argv,
        returncode=result.returncode,
        stdout=result.stdout[-_OUTPUT_LIMIT:] if result.stdout else "",
        stderr=result.stderr[-_OUTPUT_LIMIT:] if result.stderr else "",
        elapsed_ms=elapsed_ms,
    )
