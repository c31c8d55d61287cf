"""Shared helpers for provider adapters."""

import hashlib
import math
import random
from datetime import datetime
from typing import Any, Callable, Optional

from ..models import Event, EventSource, default_image

Clock = Callable[[], datetime]

DATE_TBA = "Date TBA"
TIME_TBA = "Time TBA"
LOCATION_TBA = "Location TBA"
UNKNOWN_TITLE = "Unknown Event"
ERROR_DESCRIPTION = "Error processing event details"


def text(value: Any) -> str:
    """Coerce an upstream value to a stripped string ("" for missing)."""
    if value is None:
        return ""
    return str(value).strip()


def first_text(*values: Any) -> str:
    """Return the first non-empty string among values."""
    for value in values:
        value = text(value)
        if value:
            return value
    return ""


def dig(data: Any, *path: Any) -> Any:
    """Walk nested dicts/lists, returning None on any missing step."""
    current = data
    for key in path:
        if isinstance(key, int):
            if not isinstance(current, list) or len(current) <= key:
                return None
        elif not isinstance(current, dict):
            return None
        current = current[key] if isinstance(key, int) else current.get(key)
        if current is None:
            return None
    return current


def join_parts(parts: list[Any], sep: str = ", ") -> str:
    """Join non-empty parts, dropping repeats (case-insensitive)."""
    seen: set[str] = set()
    kept = []
    for part in parts:
        part = text(part)
        if not part or part.lower() in seen:
            continue
        seen.add(part.lower())
        kept.append(part)
    return sep.join(kept)


def to_float(value: Any) -> Optional[float]:
    """Parse a float, returning None for missing or non-finite values."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def parse_coordinates(longitude: Any, latitude: Any) -> Optional[tuple[float, float]]:
    """Build a [lng, lat] pair when both parts are finite and in range."""
    lng = to_float(longitude)
    lat = to_float(latitude)
    if lng is None or lat is None:
        return None
    if not (-180 <= lng <= 180 and -90 <= lat <= 90):
        return None
    return (lng, lat)


def source_id(source: EventSource, raw_id: Any, *fallback_parts: Any) -> str:
    """Source-prefixed id; records without an upstream id get a content hash."""
    raw_id = text(raw_id)
    if not raw_id:
        digest = hashlib.sha1("|".join(text(p) for p in fallback_parts).encode("utf-8"))
        raw_id = digest.hexdigest()[:16]
    return f"{source.value}-{raw_id}"


def estimated_start(clock: Clock) -> dict[str, Any]:
    """Timing fields for an event whose start is unknown upstream."""
    return {
        "date": DATE_TBA,
        "time": TIME_TBA,
        "raw_start": clock().isoformat(),
        "start_is_estimated": True,
    }


def error_event(
    source: EventSource,
    raw: Any,
    clock: Clock,
    rng: Optional[random.Random] = None,
) -> Event:
    """Minimal valid event used when a raw record cannot be normalized."""
    rng = rng or random
    now = clock()
    title = UNKNOWN_TITLE
    if isinstance(raw, dict):
        title = first_text(raw.get("name"), raw.get("title")) or UNKNOWN_TITLE

    return Event(
        id=f"{source.value}-error-{int(now.timestamp() * 1000)}-{rng.getrandbits(32)}",
        source=source,
        title=title,
        description=ERROR_DESCRIPTION,
        date=DATE_TBA,
        time=TIME_TBA,
        raw_start=now.isoformat(),
        start_is_estimated=True,
        location=LOCATION_TBA,
        category="other",
        image=default_image("other"),
    )
