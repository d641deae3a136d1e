"""Animated-asset detection."""

from __future__ import annotations

from pathlib import Path
from typing import Sequence

from .errors import CommandError
from .events import EventLog
from .process_runner import run_with_timeout

IDENTIFY_TIMEOUT_SECONDS = 10.0


class AnimationClassifier:
    """Decide whether a file has more than one frame using ``identify``.

    Inspection never fails the caller: any tool error or unreadable output is
    recorded and treated as "not animated".
    """

    def __init__(
        self,
        events: EventLog,
        identify_command: Sequence[str] = ("identify",),
        timeout: float = IDENTIFY_TIMEOUT_SECONDS,
    ):
        self.events = events
        self.identify_command = tuple(identify_command)
        self.timeout = timeout

    def is_animated(self, in_file: Path) -> bool:
        # identify -format "%n\n" anim.gif prints the frame count once per frame
        cmd = [*self.identify_command, "-format", "%n\n", str(in_file)]
        try:
            result = run_with_timeout(cmd, self.timeout, merge_stderr=False)
        except CommandError as exc:
            self.events.record(processor="imagick", step="identify", failure=str(exc), output=exc.output)
            return False

        output = result.output.strip()
        try:
            num_frames = parse_frame_count(output)
        except ValueError as exc:
            self.events.record(
                processor="imagick",
                step="identify",
                failure=str(exc),
                output=output,
                message="non numeric identify output",
            )
            return False

        self.events.record(processor="imagick", step="identify", num_frames=num_frames)
        return num_frames > 1


def parse_frame_count(output: str) -> int:
    """Parse the first line of ``identify -format %n`` output."""

    lines = [line.strip() for line in output.splitlines() if line.strip()]
    if not lines:
        raise ValueError("empty identify output")
    return int(lines[0])
