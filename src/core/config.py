"""Core configuration dataclasses.

We keep config parsing outside the core, but these dataclasses define the
shape the core expects so adapters and app layers can build safely.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import time, tzinfo

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


@dataclass(frozen=True)
class DigestConfig:
    """Digest rendering and pacing settings."""

    max_messages_per_group: int = 10
    max_post_chars: int = 4000
    post_delay_seconds: float = 1.0


@dataclass(frozen=True)
class DigestSchedule:
    """When the recurring digest fires (weekday index follows ``date.weekday``)."""

    enabled: bool
    weekday: int
    at: time
    timezone: tzinfo


def parse_weekday(value: str) -> int:
    """Return the ``date.weekday`` index for a weekday name."""

    try:
        return WEEKDAYS.index(value.strip().lower())
    except ValueError:
        raise ValueError(f"Unsupported weekday: {value}") from None


def parse_clock(value: str) -> time:
    """Parse an ``HH:MM`` string into a naive time."""

    hours, sep, minutes = value.strip().partition(":")
    if not sep or not hours.isdigit() or not minutes.isdigit():
        raise ValueError(f"Time must look like HH:MM, got: {value}")
    return time(int(hours), int(minutes))
