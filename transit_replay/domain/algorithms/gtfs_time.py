from __future__ import annotations

import math

DAY_SECONDS = 86400


def parse_gtfs_time(raw: str | None) -> int | None:
    """Convert "HH:MM:SS" (or "HH:MM") into seconds since service day midnight.

    Hours may exceed 24 for trips running past midnight; the value is not
    wrapped. Returns None for an absent/blank field and raises ValueError for a
    malformed one.
    """

    if raw is None:
        return None
    value = raw.strip()
    if not value:
        return None

    parts = value.split(":")
    if len(parts) not in (2, 3):
        raise ValueError(f"Invalid GTFS time: {raw!r}")
    hh, mm = int(parts[0]), int(parts[1])
    ss = int(parts[2]) if len(parts) == 3 else 0
    if hh < 0 or not (0 <= mm < 60) or not (0 <= ss < 60):
        raise ValueError(f"Invalid GTFS time: {raw!r}")
    return hh * 3600 + mm * 60 + ss


def format_time(seconds: float) -> str:
    """Format seconds since midnight as a 24h "HH:MM:SS" clock string."""

    whole = int(math.floor(seconds))
    hours = (whole // 3600) % 24
    minutes = (whole % 3600) // 60
    secs = whole % 60
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


def format_countdown(seconds: float) -> str:
    whole = int(math.floor(seconds))
    return f"{whole // 60}m {whole % 60}s"
