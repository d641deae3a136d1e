"""Structured diagnostic records for pipeline steps."""

from __future__ import annotations

import logging
from typing import Any, Optional


class EventLog:
    """Render ``key=value`` records onto a standard logger.

    Components receive an instance explicitly instead of reaching for a global
    logger, so tests and callers can swap the sink.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger("firesize.events")

    def record(self, **fields: Any) -> None:
        level = logging.WARNING if "failure" in fields else logging.INFO
        if self.logger.isEnabledFor(level):
            self.logger.log(level, "%s", format_fields(fields), extra={"fields": fields})


class MemoryEventLog(EventLog):
    """Keep records in memory, for tests and dry runs."""

    def __init__(self) -> None:
        super().__init__(logging.getLogger("firesize.events.memory"))
        self.records: list[dict[str, Any]] = []

    def record(self, **fields: Any) -> None:
        self.records.append(fields)
        super().record(**fields)

    def find(self, **match: Any) -> list[dict[str, Any]]:
        return [r for r in self.records if all(r.get(k) == v for k, v in match.items())]


def format_fields(fields: dict[str, Any]) -> str:
    """Format a record as space-separated ``key=value`` pairs."""

    parts = []
    for key, value in fields.items():
        key = key.replace("_", "-")
        if isinstance(value, (list, tuple)):
            value = " ".join(str(v) for v in value)
        text = str(value)
        if not text or any(ch in text for ch in ' ="\n'):
            text = '"' + text.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n") + '"'
        parts.append(f"{key}={text}")
    return " ".join(parts)
