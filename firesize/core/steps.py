"""The four pipeline stages: fetch, preprocess, transform, post-process.

Each step takes the workspace, the current working file and the request
arguments, and returns the next working file together with the (possibly
replaced) arguments. Steps raise to halt the pipeline.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Protocol, Sequence

import httpx

from . import MAX_DOWNLOAD_BYTES, formats
from .args import ProcessArgs
from .classifier import AnimationClassifier
from .errors import CommandError, FetchError
from .events import EventLog
from .process_runner import run_with_timeout
from .workspace import Workspace

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024


class PipelineStep(Protocol):
    name: str

    def execute(
        self, workspace: Workspace, token: Optional[Path], args: ProcessArgs
    ) -> tuple[Path, ProcessArgs]:
        ...


class FetchStep:
    """Download the source asset into ``<workspace>/in``."""

    name = "download"

    def __init__(
        self,
        client: httpx.Client,
        events: EventLog,
        timeout: float = 10.0,
        max_bytes: int = MAX_DOWNLOAD_BYTES,
    ):
        self.client = client
        self.events = events
        self.timeout = timeout
        self.max_bytes = max_bytes

    def execute(self, workspace, token, args):
        in_file = workspace.file("in")
        self.events.record(processor="imagick", download=args.url, local=str(in_file))

        written = 0
        try:
            with self.client.stream("GET", args.url, timeout=self.timeout, follow_redirects=True) as response:
                response.raise_for_status()
                with in_file.open("wb") as handle:
                    for chunk in response.iter_bytes(CHUNK_SIZE):
                        written += len(chunk)
                        if written > self.max_bytes:
                            reason = f"larger than {self.max_bytes} bytes"
                            self.events.record(processor="imagick", step=self.name, failure=reason, args=args.url)
                            raise FetchError(args.url, reason)
                        handle.write(chunk)
        except httpx.HTTPError as exc:
            self.events.record(processor="imagick", step=self.name, failure=str(exc), args=args.url)
            raise FetchError(args.url, str(exc)) from exc
        except OSError as exc:
            self.events.record(processor="imagick", step=self.name, failure=str(exc), local=str(in_file))
            raise FetchError(args.url, f"could not write {in_file}: {exc}") from exc

        logger.debug("Downloaded %s bytes from %s", written, args.url)
        return in_file, args


class PreprocessStep:
    """Detect animated sources, correct their format and coalesce the frames."""

    name = "coalesce"

    def __init__(
        self,
        classifier: AnimationClassifier,
        events: EventLog,
        convert_command: Sequence[str] = ("convert",),
        timeout: float = 60.0,
    ):
        self.classifier = classifier
        self.events = events
        self.convert_command = tuple(convert_command)
        self.timeout = timeout

    def execute(self, workspace, token, args):
        if not self.classifier.is_animated(token):
            return token, args

        args = formats.apply_animated_override(args)
        out_file = workspace.file(f"temp.{formats.ANIMATED_IMAGE_FORMAT}")

        # convert do.gif -coalesce temp.gif
        cmd = [*self.convert_command, str(token), "-coalesce", str(out_file)]
        try:
            run_with_timeout(cmd, self.timeout)
        except CommandError as exc:
            self.events.record(processor="imagick", step=self.name, failure=str(exc), output=exc.output)
            raise
        return out_file, args


class TransformStep:
    """Run ``convert`` with the operations requested by the caller."""

    name = "convert"

    def __init__(self, events: EventLog, convert_command: Sequence[str] = ("convert",), timeout: float = 10.0):
        self.events = events
        self.convert_command = tuple(convert_command)
        self.timeout = timeout

    def execute(self, workspace, token, args):
        cmd_args, out_file = args.command_args(token, workspace.file("out"))
        self.events.record(processor="imagick", args=cmd_args)

        try:
            run_with_timeout([*self.convert_command, *cmd_args], self.timeout)
        except CommandError as exc:
            self.events.record(
                processor="imagick",
                step=self.name,
                failure=str(exc),
                args=cmd_args,
                output=exc.output,
            )
            raise
        return out_file, args


class PostProcessStep:
    """Turn a transformed GIF into MP4 when the caller asked for video."""

    name = "post-process-mp4"

    def __init__(self, events: EventLog, ffmpeg_command: Sequence[str] = ("ffmpeg",), timeout: float = 10.0):
        self.events = events
        self.ffmpeg_command = tuple(ffmpeg_command)
        self.timeout = timeout

    def execute(self, workspace, token, args):
        # mp4 may have been requested even though preprocessing switched to gif
        self.events.record(processor="ffmpeg", step=self.name, args=args.as_fields())
        if not formats.needs_video_conversion(args):
            return token, args

        out_file = workspace.file("video.mp4")
        cmd_args = [
            "-y",
            "-f",
            formats.ANIMATED_IMAGE_FORMAT,
            "-i",
            str(token),
            "-movflags",
            "faststart",
            "-pix_fmt",
            "yuv420p",
            # yuv420p needs even dimensions
            "-vf",
            "scale=trunc(iw/2)*2:trunc(ih/2)*2",
            str(out_file),
        ]
        self.events.record(processor="ffmpeg", args=cmd_args)

        try:
            run_with_timeout([*self.ffmpeg_command, *cmd_args], self.timeout)
        except CommandError as exc:
            self.events.record(
                processor="ffmpeg",
                step=self.name,
                failure=str(exc),
                args=cmd_args,
                output=exc.output,
            )
            raise
        return out_file, args
