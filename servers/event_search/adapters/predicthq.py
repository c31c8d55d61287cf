"""
PredictHQ Events API adapter.

Docs: https://docs.predicthq.com/resources/events

PredictHQ returns no images and often no description, so both fall back to
category defaults. Party labels on an event take precedence over the
provider's own category.
"""

import re
from typing import Any

from ..classifier import detect_party_subcategory
from ..geo import KM_PER_MILE
from ..models import Attendance, Event, EventSource, SearchParams, default_image
from .base import ProviderAdapter, RequestSpec
from .common import (
    LOCATION_TBA,
    dig,
    estimated_start,
    first_text,
    join_parts,
    parse_coordinates,
    source_id,
    text,
    to_float,
)

PREDICTHQ_BASE = "https://api.predicthq.com/v1/events/"
PREDICTHQ_EVENT_PAGE = "https://predicthq.com/events/"
MAX_PAGE_SIZE = 200

# PredictHQ category -> category
PHQ_CATEGORIES = {
    "concerts": "music",
    "festivals": "music",
    "sports": "sports",
    "performing-arts": "arts",
    "community": "family",
    "expos": "family",
    "food-drink": "food",
}

# Category -> PredictHQ categories to request
CATEGORY_QUERY = {
    "music": ["concerts", "festivals"],
    "sports": ["sports"],
    "arts": ["performing-arts"],
    "family": ["community", "expos"],
    "food": ["food-drink"],
    "party": ["concerts", "festivals", "community"],
}

PARTY_LABELS = {
    "nightlife", "party", "club", "nightclub", "dance-club", "disco",
    "dance-party", "dj-set", "dj-night", "dj-party", "rave",
}

_PROVIDER_MENTION = re.compile(
    r"\s*\b(?:sourced from|powered by|via|from)?\s*predicthq\b[.:]?", re.IGNORECASE
)


def clean_description(value: Any) -> str:
    """Strip provider self-references from a description."""
    cleaned = _PROVIDER_MENTION.sub("", text(value))
    return re.sub(r"\s{2,}", " ", cleaned).strip()


def has_party_label(labels: Any) -> bool:
    if not isinstance(labels, list):
        return False
    return any(text(label).lower() in PARTY_LABELS for label in labels)


class PredictHQAdapter(ProviderAdapter):
    """Adapter for the PredictHQ Events API."""

    source = EventSource.PREDICTHQ
    api_key_env = "PREDICTHQ_API_KEY"
    base_url = PREDICTHQ_BASE
    default_timeout = 10.0

    def build_request(self, params: SearchParams) -> RequestSpec:
        query: dict[str, Any] = {
            "limit": min(params.limit, MAX_PAGE_SIZE),
            "offset": params.offset,
            "sort": "start",
        }

        if params.has_coordinates:
            radius_km = max(1, round(params.radius * KM_PER_MILE))
            query["within"] = f"{radius_km}km@{params.latitude},{params.longitude}"
        elif params.location:
            query["place.name"] = params.location

        start = params.start_date or self.clock().date()
        query["start.gte"] = start.isoformat()
        if params.end_date:
            query["active.lte"] = params.end_date.isoformat()

        phq_categories: list[str] = []
        for category in params.categories:
            for phq in CATEGORY_QUERY.get(category, []):
                if phq not in phq_categories:
                    phq_categories.append(phq)
        if phq_categories:
            query["category"] = ",".join(phq_categories)

        if params.is_party_search:
            query["labels"] = ",".join(sorted(PARTY_LABELS))
        if params.keyword:
            query["q"] = params.keyword

        headers = {
            "Authorization": f"Bearer {self.api_key or ''}",
            "Accept": "application/json",
        }
        return self.base_url, query, headers

    def extract_records(self, data: Any) -> list[dict[str, Any]]:
        results = dig(data, "results")
        return [r for r in results if isinstance(r, dict)] if isinstance(results, list) else []

    def _normalize(self, raw: dict[str, Any]) -> Event:
        title = first_text(raw.get("title")) or "Untitled Event"

        # Timing
        start = text(raw.get("start"))
        if start:
            date_part, _, time_part = start.partition("T")
            timing = {
                "date": date_part,
                "time": time_part[:5] or "00:00",
                "raw_start": start,
            }
        else:
            timing = estimated_start(self.clock)

        # Location
        entities = raw.get("entities") if isinstance(raw.get("entities"), list) else []
        venue_entity = next(
            (e for e in entities if isinstance(e, dict) and e.get("type") == "venue"), {}
        )
        venue_name = text(venue_entity.get("name")) or None
        location = join_parts([
            venue_name,
            venue_entity.get("formatted_address"),
            dig(raw, "place", "name"),
            raw.get("state") or dig(raw, "place", "state"),
            raw.get("country"),
        ]) or LOCATION_TBA

        location_pair = raw.get("location")
        if not (isinstance(location_pair, list) and len(location_pair) == 2):
            location_pair = dig(raw, "geo", "geometry", "coordinates")
        coordinates = None
        if isinstance(location_pair, list) and len(location_pair) == 2:
            coordinates = parse_coordinates(location_pair[0], location_pair[1])

        # Classification
        raw_labels = raw.get("labels") if isinstance(raw.get("labels"), list) else []
        labels = [text(label) for label in raw_labels if text(label)]
        description = clean_description(raw.get("description")) or f"{title} in {location}"
        if has_party_label(labels):
            category = "party"
            party_subcategory = detect_party_subcategory(title, description, timing["time"])
        else:
            category = PHQ_CATEGORIES.get(text(raw.get("category")).lower(), "other")
            party_subcategory = None

        url = first_text(
            next((e.get("website") for e in entities if isinstance(e, dict) and e.get("website")), None)
        ) or f"{PREDICTHQ_EVENT_PAGE}{text(raw.get('id'))}"

        forecast = to_float(raw.get("phq_attendance"))
        actual = to_float(raw.get("actual_attendance"))
        attendance = None
        if forecast is not None or actual is not None:
            attendance = Attendance(
                forecast=int(forecast) if forecast is not None else None,
                actual=int(actual) if actual is not None else None,
            )

        return Event(
            id=source_id(self.source, raw.get("id"), title, start, location),
            source=self.source,
            title=title,
            description=description,
            end=text(raw.get("end")) or None,
            location=location,
            venue=venue_name,
            coordinates=coordinates,
            category=category,
            party_subcategory=party_subcategory,
            subcategories=labels,
            image=default_image(category),
            url=url,
            rank=to_float(raw.get("rank")),
            local_relevance=to_float(raw.get("local_rank")),
            attendance=attendance,
            **timing,
        )
