"""Run external commands with an enforced wall-clock timeout."""

from __future__ import annotations

import logging
import os
import signal
import subprocess
import time
from typing import Sequence

from . import CommandResult
from .errors import CommandFailedError, CommandStartError, CommandTimeoutError

logger = logging.getLogger(__name__)


def run_with_timeout(cmd: Sequence[str], timeout: float, merge_stderr: bool = True) -> CommandResult:
    """Execute *cmd*, killing it if it runs longer than *timeout* seconds.

    By default stdout and stderr are merged into a single captured stream so
    failures can be logged with everything the tool printed. With
    ``merge_stderr=False`` stderr is kept apart in ``CommandResult.errors``
    (and appended to the output carried by a raised error). The process is
    always reaped before this returns or raises. It runs in its own session so a
    timeout kills any programs it started along with it.

    Raises
    ------
    CommandStartError
        The executable could not be started; no timeout was armed.
    CommandTimeoutError
        The process was killed after *timeout* seconds.
    CommandFailedError
        The process exited with a non-zero status.
    """
    cmd = [str(part) for part in cmd]
    start = time.perf_counter()
    try:
        process = subprocess.Popen(
            cmd,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT if merge_stderr else subprocess.PIPE,
            start_new_session=True,
        )
    except OSError as exc:
        raise CommandStartError(cmd, f"Could not start {cmd[0]}: {exc}") from exc

    with process:
        try:
            raw_output, raw_errors = process.communicate(timeout=timeout)
        except subprocess.TimeoutExpired:
            logger.warning("Command timed out after %ss, killing: %s", timeout, cmd[0])
            _kill_group(process)
            raw_output, raw_errors = process.communicate()
            raise CommandTimeoutError(cmd, timeout, _decode(raw_output) + _decode(raw_errors)) from None

    output, errors = _decode(raw_output), _decode(raw_errors)
    if process.returncode != 0:
        raise CommandFailedError(cmd, process.returncode, output + errors)

    duration_ms = int((time.perf_counter() - start) * 1000)
    logger.debug("Command %s finished in %sms", cmd[0], duration_ms)
    return CommandResult(
        cmd=cmd,
        returncode=process.returncode,
        output=output,
        errors=errors,
        duration_ms=duration_ms,
    )


def _kill_group(process: subprocess.Popen) -> None:
    # Delegates (convert spawning ffmpeg) share the group and hold the pipes open.
    try:
        os.killpg(process.pid, signal.SIGKILL)
    except ProcessLookupError:
        pass
    except PermissionError:
        process.kill()


def _decode(raw: bytes | None) -> str:
    if not raw:
        return ""
    return raw.decode("utf-8", errors="replace")
