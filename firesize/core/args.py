"""Parsed request arguments and the convert command they describe."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional

from .errors import InvalidArgumentsError
from ..utils import validators


@dataclass(frozen=True)
class ProcessArgs:
    """Source url plus the operations requested for it.

    ``request_format`` is what the caller asked for and never changes.
    ``format`` is the effective output format; pipeline steps may return a
    copy with it replaced (see :mod:`firesize.core.formats`).
    """

    url: str
    request_format: Optional[str] = None
    format: Optional[str] = None
    size: Optional[str] = None
    gravity: Optional[str] = None
    frame: Optional[int] = None
    quality: Optional[int] = None

    @classmethod
    def from_options(
        cls,
        url: str | None,
        *,
        size: str | None = None,
        gravity: str | None = None,
        frame: str | int | None = None,
        quality: str | int | None = None,
        format: str | None = None,
    ) -> "ProcessArgs":
        """Validate raw option values and build arguments."""

        fmt = validators.parse_format(format)
        return cls(
            url=validators.validate_url(url),
            request_format=fmt,
            format=fmt,
            size=validators.parse_geometry(size),
            gravity=validators.parse_gravity(gravity),
            frame=validators.parse_optional_non_negative_int(frame, "frame"),
            quality=validators.parse_quality(quality),
        )

    @classmethod
    def from_path(cls, options: Iterable[str], url: str) -> "ProcessArgs":
        """Build arguments from path segments like ``500x300/g_center/frame_0/png``."""

        values: dict[str, str] = {}
        for segment in options:
            if not segment:
                continue
            if segment.startswith("g_"):
                key, value = "gravity", segment[2:]
            elif segment.startswith("frame_"):
                key, value = "frame", segment[len("frame_"):]
            elif segment.startswith("q_"):
                key, value = "quality", segment[2:]
            elif validators.GEOMETRY_PATTERN.match(segment):
                key, value = "size", segment
            else:
                key, value = "format", segment
            if key in values:
                raise InvalidArgumentsError(f"Option {key} given more than once")
            values[key] = value
        return cls.from_options(url, **values)

    def has_operations(self) -> bool:
        return any(
            value is not None
            for value in (self.request_format, self.size, self.gravity, self.frame, self.quality)
        )

    def command_args(self, in_file: Path, out_file: Path) -> tuple[list[str], Path]:
        """Return convert arguments and the output path qualified with its format."""

        source = str(in_file)
        if self.frame is not None:
            source = f"{source}[{self.frame}]"
        cmd_args = [source]

        if self.size:
            width, height = validators.geometry_dimensions(self.size)
            if self.gravity and width and height:
                # Fill the box, then crop around the gravity point.
                cmd_args += ["-resize", f"{width}x{height}^", "-gravity", self.gravity, "-extent", f"{width}x{height}"]
            else:
                cmd_args += ["-resize", self.size]
        elif self.gravity:
            cmd_args += ["-gravity", self.gravity]

        if self.quality is not None:
            cmd_args += ["-quality", str(self.quality)]

        out_with_format = out_file
        if self.format:
            out_with_format = out_file.with_name(f"{out_file.name}.{self.format}")
        cmd_args.append(str(out_with_format))
        return cmd_args, out_with_format

    def as_fields(self) -> dict[str, object]:
        return {
            "url": self.url,
            "request_format": self.request_format,
            "format": self.format,
            "size": self.size,
            "gravity": self.gravity,
            "frame": self.frame,
            "quality": self.quality,
        }


def split_request_path(path: str, query: str = "") -> tuple[list[str], str]:
    """Split ``/opt/opt/https://host/file`` into option segments and the source url.

    Proxies sometimes collapse ``//`` to ``/``, so the scheme separator is
    rebuilt rather than trusted.
    """

    segments = path.lstrip("/").split("/")
    for index, segment in enumerate(segments):
        scheme = segment.lower()
        if scheme in ("http:", "https:"):
            rest = "/".join(segments[index + 1:]).lstrip("/")
            url = f"{scheme}//{rest}"
            if query:
                url = f"{url}?{query}"
            return segments[:index], url
    raise InvalidArgumentsError("No source url found in path")
