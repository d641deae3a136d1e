"""Filesystem helpers."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import Iterable

from PIL import Image, UnidentifiedImageError

from ..core.formats import media_type_for

logger = logging.getLogger(__name__)

PIL_FORMATS = {
    "PNG": "png",
    "JPEG": "jpg",
    "GIF": "gif",
    "WEBP": "webp",
}


def ensure_directory(path: Path) -> Path:
    """Create a directory if it does not exist."""

    path.mkdir(parents=True, exist_ok=True)
    logger.debug("Ensured directory exists: %s", path)
    return path


def sniff_format(path: Path) -> str | None:
    """Return the short image format of *path* by reading its header, if known."""

    try:
        with Image.open(path) as img:
            return PIL_FORMATS.get(img.format or "")
    except (OSError, UnidentifiedImageError):
        return None


def sniff_media_type(path: Path) -> str:
    """Media type for a file whose name carries no extension."""

    return media_type_for(sniff_format(path))


def copy_output(source: Path, destination: Path) -> Path:
    """Copy a finished artifact out of its workspace."""

    ensure_directory(destination.parent)
    shutil.copyfile(source, destination)
    logger.info("Wrote %s", destination)
    return destination


def discover_tools(commands: Iterable[tuple[str, ...]]) -> dict[str, bool]:
    """Report whether the executable of each command resolves on PATH."""

    return {command[0]: shutil.which(command[0]) is not None for command in commands if command}
