"""Domain-specific exceptions for the media processor."""

from __future__ import annotations

from typing import Sequence


class InvalidArgumentsError(ValueError):
    """Raised when request options cannot be turned into process arguments."""


class FiresizeError(RuntimeError):
    """Raised when the processing pipeline fails unexpectedly."""


class WorkspaceError(FiresizeError):
    """Raised when a request workspace cannot be allocated."""


class FetchError(FiresizeError):
    """Raised when the source asset cannot be downloaded or proxied."""

    def __init__(self, url: str, reason: str | None = None):
        message = f"Failed to fetch {url}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)
        self.url = url


class CommandError(FiresizeError):
    """Raised when an external command does not complete successfully."""

    def __init__(self, cmd: Sequence[str], message: str, output: str = ""):
        super().__init__(message)
        self.cmd = list(cmd)
        self.output = output


class CommandStartError(CommandError):
    """Raised when the executable could not be started at all."""


class CommandFailedError(CommandError):
    """Raised when the command exits with a non-zero status."""

    def __init__(self, cmd: Sequence[str], returncode: int, output: str = ""):
        super().__init__(cmd, f"{cmd[0]} exited with status {returncode}", output)
        self.returncode = returncode


class CommandTimeoutError(CommandError):
    """Raised when the command was killed after exceeding its timeout."""

    def __init__(self, cmd: Sequence[str], timeout: float, output: str = ""):
        super().__init__(cmd, f"{cmd[0]} timed out after {timeout:g}s", output)
        self.timeout = timeout
