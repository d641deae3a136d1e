"""Output format rules shared by the pipeline steps."""

from __future__ import annotations

from dataclasses import replace
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .args import ProcessArgs

ANIMATED_IMAGE_FORMAT = "gif"
MOTION_FORMATS = frozenset({"mp4"})
IMAGE_FORMATS = frozenset({"png", "jpg", "jpeg", "gif", "webp"})
SUPPORTED_FORMATS = IMAGE_FORMATS | MOTION_FORMATS

MEDIA_TYPES = {
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "gif": "image/gif",
    "webp": "image/webp",
    "mp4": "video/mp4",
}


def apply_animated_override(args: "ProcessArgs") -> "ProcessArgs":
    """Force the effective format of an animated source to GIF.

    Upstream metadata can claim a still format (e.g. ``.png``) for what is
    really an animated GIF; frame count wins over the declared format.
    """

    if args.format == ANIMATED_IMAGE_FORMAT:
        return args
    return replace(args, format=ANIMATED_IMAGE_FORMAT)


def needs_video_conversion(args: "ProcessArgs") -> bool:
    """True when a motion format was asked for but the transform produced a GIF."""

    return args.request_format in MOTION_FORMATS and args.format == ANIMATED_IMAGE_FORMAT


def media_type_for(fmt: str | None) -> str:
    if not fmt:
        return "application/octet-stream"
    return MEDIA_TYPES.get(fmt.lower(), "application/octet-stream")
