"""Validation helpers for request options."""

from __future__ import annotations

import re
from typing import Optional
from urllib.parse import urlparse

from ..core.errors import InvalidArgumentsError
from ..core.formats import SUPPORTED_FORMATS

GEOMETRY_PATTERN = re.compile(r"^(?P<width>\d+)?x(?P<height>\d+)?(?P<flag>[!^<>])?$")
GRAVITIES = {
    "northwest",
    "north",
    "northeast",
    "west",
    "center",
    "east",
    "southwest",
    "south",
    "southeast",
}
ALLOWED_URL_SCHEMES = {"http", "https"}


def validate_url(value: str | None) -> str:
    """Ensure the source url is an absolute http(s) url."""

    if not value:
        raise InvalidArgumentsError("A source url is required")
    parsed = urlparse(value)
    if parsed.scheme.lower() not in ALLOWED_URL_SCHEMES or not parsed.netloc:
        raise InvalidArgumentsError(f"Unsupported source url: {value}")
    return value


def parse_geometry(value: str | None) -> Optional[str]:
    """Validate a resize geometry like ``500x300``, ``500x`` or ``x300^``."""

    if value is None or value == "":
        return None
    match = GEOMETRY_PATTERN.match(value)
    if not match or not (match.group("width") or match.group("height")):
        raise InvalidArgumentsError(f"Invalid size: {value}")
    for dimension in ("width", "height"):
        number = match.group(dimension)
        if number is not None and int(number) <= 0:
            raise InvalidArgumentsError(f"Size {dimension} must be greater than zero")
    return value


def geometry_dimensions(value: str) -> tuple[Optional[int], Optional[int]]:
    """Return the ``(width, height)`` of a validated geometry."""

    match = GEOMETRY_PATTERN.match(value)
    if not match:
        raise InvalidArgumentsError(f"Invalid size: {value}")
    width, height = match.group("width"), match.group("height")
    return (int(width) if width else None, int(height) if height else None)


def parse_gravity(value: str | None) -> Optional[str]:
    if value is None or value == "":
        return None
    gravity = value.strip().lower()
    if gravity not in GRAVITIES:
        raise InvalidArgumentsError(f"Unknown gravity: {value}")
    return gravity


def parse_optional_non_negative_int(value: str | int | None, field: str) -> Optional[int]:
    """Parse a non-negative integer (0 allowed) from a string value."""

    if value is None or value == "":
        return None
    try:
        parsed = int(value)
    except ValueError as exc:
        raise InvalidArgumentsError(f"{field} must be an integer") from exc
    if parsed < 0:
        raise InvalidArgumentsError(f"{field} must be zero or greater")
    return parsed


def parse_quality(value: str | int | None) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        parsed = int(value)
    except ValueError as exc:
        raise InvalidArgumentsError("quality must be an integer") from exc
    if parsed < 1 or parsed > 100:
        raise InvalidArgumentsError("quality must be between 1 and 100")
    return parsed


def parse_format(value: str | None) -> Optional[str]:
    if value is None or value == "":
        return None
    fmt = value.strip().lower().lstrip(".")
    if fmt not in SUPPORTED_FORMATS:
        raise InvalidArgumentsError(f"Unsupported format: {value}")
    return fmt
