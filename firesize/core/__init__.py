"""Core processing scaffolding for remote media transformation."""

__all__ = [
    "ProcessorConfig",
    "CommandResult",
]

import os
import shlex
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

# Low timeout as a request can run up to three external steps and the hosting
# platform kills requests after 30 seconds.
NORMAL_TIMEOUT_SECONDS = 10.0
COALESCE_TIMEOUT_SECONDS = 60.0
MAX_DOWNLOAD_BYTES = 50 * 1024 * 1024  # 50MB guardrail


@dataclass(frozen=True)
class ProcessorConfig:
    """Tool locations, timeouts and workspace policy for a processor."""

    identify_command: tuple[str, ...] = ("identify",)
    convert_command: tuple[str, ...] = ("convert",)
    ffmpeg_command: tuple[str, ...] = ("ffmpeg",)
    identify_timeout: float = NORMAL_TIMEOUT_SECONDS
    transform_timeout: float = NORMAL_TIMEOUT_SECONDS
    coalesce_timeout: float = COALESCE_TIMEOUT_SECONDS
    video_timeout: float = NORMAL_TIMEOUT_SECONDS
    fetch_timeout: float = NORMAL_TIMEOUT_SECONDS
    max_download_bytes: int = MAX_DOWNLOAD_BYTES
    workspace_root: Optional[Path] = None
    keep_workspace: bool = False

    @classmethod
    def from_env(cls) -> "ProcessorConfig":
        """Build a config from ``FIRESIZE_*`` environment variables."""

        root = os.environ.get("FIRESIZE_WORKSPACE_ROOT")
        return cls(
            identify_command=_command_from_env("FIRESIZE_IDENTIFY", cls.identify_command),
            convert_command=_command_from_env("FIRESIZE_CONVERT", cls.convert_command),
            ffmpeg_command=_command_from_env("FIRESIZE_FFMPEG", cls.ffmpeg_command),
            identify_timeout=float(os.environ.get("FIRESIZE_IDENTIFY_TIMEOUT", NORMAL_TIMEOUT_SECONDS)),
            transform_timeout=float(os.environ.get("FIRESIZE_TRANSFORM_TIMEOUT", NORMAL_TIMEOUT_SECONDS)),
            coalesce_timeout=float(os.environ.get("FIRESIZE_COALESCE_TIMEOUT", COALESCE_TIMEOUT_SECONDS)),
            video_timeout=float(os.environ.get("FIRESIZE_VIDEO_TIMEOUT", NORMAL_TIMEOUT_SECONDS)),
            fetch_timeout=float(os.environ.get("FIRESIZE_FETCH_TIMEOUT", NORMAL_TIMEOUT_SECONDS)),
            max_download_bytes=int(os.environ.get("FIRESIZE_MAX_DOWNLOAD_MB", "50")) * 1024 * 1024,
            workspace_root=Path(root) if root else None,
            keep_workspace=os.environ.get("FIRESIZE_KEEP_WORKSPACE", "").lower() in {"1", "true", "yes"},
        )


@dataclass
class CommandResult:
    """Outcome of an external command that exited cleanly."""

    cmd: list[str]
    returncode: int
    output: str
    duration_ms: int
    errors: str = ""


def _command_from_env(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    value = os.environ.get(name, "").strip()
    if not value:
        return default
    return tuple(shlex.split(value))
