"""
Geographic radius filtering.

Distances are in miles end to end. Kilometres only appear at the PredictHQ
request boundary, via KM_PER_MILE.
"""

import math
import random
from typing import NamedTuple, Optional

import structlog

from .models import Event

logger = structlog.get_logger()

EARTH_RADIUS_MILES = 3958.8
KM_PER_MILE = 1.60934
JITTER_DEGREES = 0.05

# Floating-point slack for events sitting exactly on the radius
DISTANCE_TOLERANCE = 1e-9


class GeoPoint(NamedTuple):
    latitude: float
    longitude: float


class GeoFilterResult(NamedTuple):
    events: list[Event]
    jittered: int


def valid_coordinates(coordinates: Optional[tuple[float, float]]) -> bool:
    """True for a finite, in-range [lng, lat] pair."""
    if coordinates is None or len(coordinates) != 2:
        return False
    lng, lat = coordinates
    if not (math.isfinite(lng) and math.isfinite(lat)):
        return False
    return -180 <= lng <= 180 and -90 <= lat <= 90


def haversine_miles(a: GeoPoint, b: GeoPoint) -> float:
    """Great-circle distance between two points in miles."""
    lat1, lat2 = math.radians(a.latitude), math.radians(b.latitude)
    d_lat = lat2 - lat1
    d_lng = math.radians(b.longitude - a.longitude)

    h = math.sin(d_lat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(d_lng / 2) ** 2
    return 2 * EARTH_RADIUS_MILES * math.asin(min(1.0, math.sqrt(h)))


def distance_to(center: GeoPoint, event: Event) -> Optional[float]:
    """Distance from center to an event, or None when it has no coordinates."""
    if not valid_coordinates(event.coordinates):
        return None
    lng, lat = event.coordinates
    return haversine_miles(center, GeoPoint(lat, lng))


def jitter_coordinates(center: GeoPoint, rng: Optional[random.Random] = None) -> tuple[float, float]:
    """A random [lng, lat] within +/-0.05 degrees of the center."""
    rng = rng or random
    lng = center.longitude + rng.uniform(-JITTER_DEGREES, JITTER_DEGREES)
    lat = center.latitude + rng.uniform(-JITTER_DEGREES, JITTER_DEGREES)
    return (max(-180.0, min(180.0, lng)), max(-90.0, min(90.0, lat)))


def filter_by_radius(
    events: list[Event],
    center: GeoPoint,
    radius_miles: float,
    jitter_missing: bool = False,
    rng: Optional[random.Random] = None,
) -> GeoFilterResult:
    """Keep events within radius_miles of center.

    Events without coordinates are dropped unless jitter_missing is set, in
    which case a copy is placed near the center and flagged with
    approximate_location. Input events are never mutated.
    """
    kept: list[Event] = []
    jittered = 0
    dropped_missing = 0

    for event in events:
        distance = distance_to(center, event)
        if distance is None:
            if jitter_missing:
                kept.append(
                    event.model_copy(
                        update={
                            "coordinates": jitter_coordinates(center, rng),
                            "approximate_location": True,
                        }
                    )
                )
                jittered += 1
            else:
                dropped_missing += 1
            continue
        if distance <= radius_miles + DISTANCE_TOLERANCE:
            kept.append(event)

    logger.debug(
        "geofilter_applied",
        radius_miles=radius_miles,
        input=len(events),
        kept=len(kept),
        jittered=jittered,
        dropped_missing=dropped_missing,
    )
    return GeoFilterResult(kept, jittered)
