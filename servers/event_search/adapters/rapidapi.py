"""
RapidAPI "Real-Time Events Search" adapter.

Results come from a web-wide search with no category taxonomy, so every
event is either a party (by keyword or venue type) or "other".
"""

from datetime import datetime
from typing import Any, Optional

from dateutil import parser

from ..classifier import PARTY_QUERY_TERMS, detect_party_subcategory, is_party_event
from ..models import Event, EventSource, SearchParams, default_image
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
)

RAPIDAPI_HOST = "real-time-events-search.p.rapidapi.com"
RAPIDAPI_BASE = f"https://{RAPIDAPI_HOST}/search-events"
MAX_PAGE_SIZE = 200

# Venue subtypes that mark a nightlife venue
PARTY_VENUE_SUBTYPES = ["club", "bar", "lounge", "nightlife", "dancing", "live-music"]


def format_display_date(dt: datetime) -> str:
    """Thursday, May 15, 2025"""
    return f"{dt:%A, %B} {dt.day}, {dt.year}"


def format_display_time(dt: datetime) -> str:
    """9:00 PM"""
    return f"{dt.hour % 12 or 12}:{dt:%M %p}"


def venue_subtypes(venue: dict[str, Any]) -> list[str]:
    subtypes = venue.get("subtypes") if isinstance(venue.get("subtypes"), list) else []
    values = [text(s).lower().replace("_", "-") for s in [venue.get("subtype"), *subtypes] if text(s)]
    return list(dict.fromkeys(values))


def is_party_venue(subtypes: list[str]) -> bool:
    return any(marker in subtype for subtype in subtypes for marker in PARTY_VENUE_SUBTYPES)


class RapidAPIAdapter(ProviderAdapter):
    """Adapter for the RapidAPI real-time events search."""

    source = EventSource.RAPIDAPI
    api_key_env = "RAPIDAPI_KEY"
    base_url = RAPIDAPI_BASE
    default_timeout = 15.0

    def build_query(self, params: SearchParams) -> str:
        terms: list[str] = []
        if params.keyword:
            terms.append(params.keyword)
        if params.is_party_search:
            terms.extend(PARTY_QUERY_TERMS)
        terms.extend(c for c in params.categories if c not in ("party", "other"))
        subject = " ".join(terms + ["events"])

        if params.has_coordinates:
            return f"{subject} near {params.latitude},{params.longitude}"
        if params.location:
            return f"{subject} in {params.location}"
        return subject

    def build_request(self, params: SearchParams) -> RequestSpec:
        query = {
            "query": self.build_query(params),
            "date": "month",
            "is_virtual": "false",
            "start": params.offset,
            "limit": min(params.limit, MAX_PAGE_SIZE),
        }
        headers = {
            "x-rapidapi-key": self.api_key or "",
            "x-rapidapi-host": RAPIDAPI_HOST,
        }
        return self.base_url, query, headers

    def extract_records(self, data: Any) -> list[dict[str, Any]]:
        records = dig(data, "data")
        return [r for r in records if isinstance(r, dict)] if isinstance(records, list) else []

    def _parse_default(self) -> datetime:
        """Missing date parts are taken from the adapter clock, not the wall clock."""
        return self.clock().replace(hour=0, minute=0, second=0, microsecond=0)

    def _parse_start(self, value: str) -> dict[str, Any]:
        if not value:
            return estimated_start(self.clock)
        try:
            dt = parser.parse(value, default=self._parse_default())
        except (ValueError, OverflowError):
            timing = estimated_start(self.clock)
            timing["date"] = value
            return timing
        return {
            "date": format_display_date(dt),
            "time": format_display_time(dt),
            "raw_start": dt.isoformat(),
        }

    def _normalize(self, raw: dict[str, Any]) -> Event:
        venue = raw.get("venue") if isinstance(raw.get("venue"), dict) else {}

        title = first_text(raw.get("name")) or "Untitled Event"
        description = first_text(raw.get("description"))
        start_time = text(raw.get("start_time"))
        timing = self._parse_start(start_time)

        end: Optional[str] = None
        end_raw = text(raw.get("end_time"))
        if end_raw:
            try:
                end = parser.parse(end_raw, default=self._parse_default()).isoformat()
            except (ValueError, OverflowError):
                end = None

        # Location
        venue_name = text(venue.get("name")) or None
        location = first_text(
            venue.get("full_address"),
            join_parts([venue.get("city"), venue.get("state")]),
            venue_name,
        ) or LOCATION_TBA
        coordinates = parse_coordinates(venue.get("longitude"), venue.get("latitude"))

        # Classification
        subtypes = venue_subtypes(venue)
        if is_party_event(title, description, venue_name) or is_party_venue(subtypes):
            category = "party"
            party_subcategory = detect_party_subcategory(
                title, description, timing["time"]
            )
        else:
            category = "other"
            party_subcategory = None

        ticket_link = dig(raw, "ticket_links", 0, "link")

        return Event(
            id=source_id(self.source, raw.get("event_id"), title, start_time, location),
            source=self.source,
            title=title,
            description=description,
            end=end,
            location=location,
            venue=venue_name,
            coordinates=coordinates,
            category=category,
            party_subcategory=party_subcategory,
            subcategories=subtypes,
            image=first_text(raw.get("thumbnail")) or default_image(category),
            url=first_text(raw.get("link"), ticket_link) or None,
            **timing,
        )
