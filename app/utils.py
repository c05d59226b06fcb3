"""Utility helpers shared by the playlist jobs."""

from __future__ import annotations

import re
from datetime import date, datetime, time, timezone


ISO_DATE_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})")


def parse_release_date(value: str | None) -> date | None:
    """Return the calendar date of a TMDB release/air date string.

    This is the single place dates are interpreted. Anything that is not a
    real ``YYYY-MM-DD`` date (blank strings, ``0000-00-00``, bare years)
    yields ``None``.
    """

    if not value:
        return None
    match = ISO_DATE_RE.match(value.strip())
    if not match:
        return None
    try:
        return date(int(match.group(1)), int(match.group(2)), int(match.group(3)))
    except ValueError:
        return None


def extract_year(value: str | None) -> str:
    """Return the first four characters of a date string, or ``""``."""

    if not value:
        return ""
    return value.strip()[:4]


def release_timestamp(value: date | None) -> int:
    """Return the UTC epoch seconds for midnight of ``value`` (0 when absent)."""

    if value is None:
        return 0
    return int(datetime.combine(value, time.min, tzinfo=timezone.utc).timestamp())


def build_image_url(path: str | None, base_url: str) -> str:
    if not path:
        return ""
    if path.startswith("http"):
        return path
    return f"{base_url.rstrip('/')}{path}"


def normalise_list_keys(value: str | None) -> tuple[str, ...] | None:
    """Split a comma-separated list selection into unique ``snake_case`` keys."""

    if value is None:
        return None
    cleaned: list[str] = []
    for part in value.split(","):
        key = part.strip().lower().replace("-", "_").replace(" ", "_")
        key = "_".join(filter(None, key.split("_")))
        if key and key not in cleaned:
            cleaned.append(key)
    return tuple(cleaned) or None
