"""Data models for the Go module proxy client."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime

# Go emits nanosecond precision; datetime stops at microseconds.
_FRACTION_RE = re.compile(r"(\.\d{6})\d+")


@dataclass(frozen=True)
class ModuleVersion:
    """A module version as reported by a proxy ``.info`` or ``list`` response."""

    path: str
    version: str
    time: datetime | None = None


def parse_time(value: str | None) -> datetime | None:
    """Parse an RFC 3339 timestamp, returning None on failure."""
    if not value:
        return None
    try:
        return datetime.fromisoformat(_FRACTION_RE.sub(r"\1", value).replace("Z", "+00:00"))
    except (ValueError, AttributeError):
        return None
