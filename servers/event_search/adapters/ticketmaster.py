"""
Ticketmaster Discovery API v2 adapter.

Docs: https://developer.ticketmaster.com/products-and-docs/apis/discovery-api/v2/

Ticketmaster's own segment classification is trusted for the category;
only an explicit party signal in the name or description turns an event
into a party.
"""

from typing import Any, Optional

from dateutil import parser

from ..classifier import detect_party_subcategory, has_party_signal
from ..models import Event, EventSource, SearchParams, default_image
from .base import ProviderAdapter, RequestSpec
from .common import (
    LOCATION_TBA,
    TIME_TBA,
    dig,
    estimated_start,
    first_text,
    join_parts,
    parse_coordinates,
    source_id,
    text,
    to_float,
)

TICKETMASTER_BASE = "https://app.ticketmaster.com/discovery/v2/events.json"
MAX_PAGE_SIZE = 200

# Segment name (lower-cased) -> category
SEGMENT_CATEGORIES = {
    "music": "music",
    "concert": "music",
    "concerts": "music",
    "festival": "music",
    "festivals": "music",
    "sports": "sports",
    "sport": "sports",
    "arts & theatre": "arts",
    "arts & theater": "arts",
    "arts": "arts",
    "theatre": "arts",
    "theater": "arts",
    "performing arts": "arts",
    "family": "family",
    "attraction": "family",
    "attractions": "family",
    "food & drink": "food",
    "food": "food",
    "miscellaneous": "other",
    "undefined": "other",
}

# Category -> segmentName query value
CATEGORY_SEGMENTS = {
    "music": "Music",
    "sports": "Sports",
    "arts": "Arts & Theatre",
    "family": "Family",
}


def map_segment(segment_name: Any) -> str:
    return SEGMENT_CATEGORIES.get(text(segment_name).lower(), "other")


def pick_image(images: Any, category: str) -> str:
    """Prefer a 16:9 image wider than 500px, then any image, then the default."""
    if isinstance(images, list):
        candidates = [img for img in images if isinstance(img, dict) and text(img.get("url"))]
        for img in candidates:
            width = to_float(img.get("width")) or 0
            if img.get("ratio") == "16_9" and width > 500:
                return text(img["url"])
        if candidates:
            return text(candidates[0]["url"])
    return default_image(category)


def format_price(price_range: Any) -> tuple[Optional[str], Optional[float], Optional[float], Optional[str]]:
    """Return (display price, min, max, currency) from a priceRanges entry."""
    if not isinstance(price_range, dict):
        return None, None, None, None
    low = to_float(price_range.get("min"))
    high = to_float(price_range.get("max"))
    currency = text(price_range.get("currency")) or "USD"
    if low is None and high is None:
        return None, None, None, None
    if low is not None and high is not None and low != high:
        display = f"{low} - {high} {currency}"
    else:
        display = f"{low if low is not None else high} {currency}"
    return display, low, high, currency


class TicketmasterAdapter(ProviderAdapter):
    """Adapter for the Ticketmaster Discovery API."""

    source = EventSource.TICKETMASTER
    api_key_env = "TICKETMASTER_KEY"
    base_url = TICKETMASTER_BASE
    default_timeout = 10.0

    def build_request(self, params: SearchParams) -> RequestSpec:
        query: dict[str, Any] = {
            "apikey": self.api_key or "",
            "size": min(params.limit, MAX_PAGE_SIZE),
            "page": params.page - 1,
            "sort": "date,asc",
        }

        if params.has_coordinates:
            query["latlong"] = f"{params.latitude},{params.longitude}"
            query["radius"] = str(int(round(params.radius)) or 1)
            query["unit"] = "miles"
        elif params.location:
            query["city"] = params.location.split(",")[0].strip()

        start = params.start_date or self.clock().date()
        query["startDateTime"] = f"{start.isoformat()}T00:00:00Z"
        if params.end_date:
            query["endDateTime"] = f"{params.end_date.isoformat()}T23:59:59Z"

        if params.is_party_search:
            query["keyword"] = params.keyword or "party"
        elif params.keyword:
            query["keyword"] = params.keyword

        segments = [CATEGORY_SEGMENTS[c] for c in params.categories if c in CATEGORY_SEGMENTS]
        if segments and not params.is_party_search:
            query["segmentName"] = ",".join(segments)

        return self.base_url, query, {"Accept": "application/json"}

    def extract_records(self, data: Any) -> list[dict[str, Any]]:
        events = dig(data, "_embedded", "events")
        return [e for e in events if isinstance(e, dict)] if isinstance(events, list) else []

    def _parse_start(self, local_date: str, local_time: str) -> dict[str, Any]:
        if not local_date:
            return estimated_start(self.clock)
        try:
            start = parser.isoparse(f"{local_date}T{local_time or '00:00:00'}")
        except (ValueError, OverflowError):
            timing = estimated_start(self.clock)
            timing["date"] = local_date
            return timing
        return {
            "date": local_date,
            "time": local_time or TIME_TBA,
            "raw_start": start.isoformat(),
        }

    def _normalize(self, raw: dict[str, Any]) -> Event:
        venue = dig(raw, "_embedded", "venues", 0) or {}
        classification = dig(raw, "classifications", 0) or {}

        title = first_text(raw.get("name")) or "Untitled Event"
        description = first_text(
            raw.get("description"), raw.get("info"), raw.get("pleaseNote")
        ) or f"{title} (details available on Ticketmaster)"

        # Timing
        start = dig(raw, "dates", "start") or {}
        local_date = text(start.get("localDate"))
        local_time = text(start.get("localTime"))
        timing = self._parse_start(local_date, local_time)
        end_date = text(dig(raw, "dates", "end", "localDate"))
        end_time = text(dig(raw, "dates", "end", "localTime"))
        end = f"{end_date}T{end_time or '23:59:59'}" if end_date else None

        # Location
        venue_name = text(venue.get("name")) or None
        country = text(dig(venue, "country", "countryCode"))
        location = join_parts([
            venue_name,
            dig(venue, "city", "name"),
            dig(venue, "state", "stateCode") or dig(venue, "state", "name"),
            country if country.upper() != "US" else None,
        ]) or LOCATION_TBA
        coordinates = parse_coordinates(
            dig(venue, "location", "longitude"), dig(venue, "location", "latitude")
        )

        # Classification
        category = map_segment(dig(classification, "segment", "name"))
        party_subcategory = None
        if has_party_signal(title, description, raw.get("info")):
            category = "party"
            party_subcategory = detect_party_subcategory(title, description, timing["time"])
        subcategories = [
            name
            for name in (
                text(dig(classification, "genre", "name")),
                text(dig(classification, "subGenre", "name")),
            )
            if name and name != "Undefined"
        ]

        price, price_min, price_max, currency = format_price(dig(raw, "priceRanges", 0))

        return Event(
            id=source_id(self.source, raw.get("id"), title, local_date, local_time, venue_name),
            source=self.source,
            title=title,
            description=description,
            end=end,
            location=location,
            venue=venue_name,
            coordinates=coordinates,
            category=category,
            party_subcategory=party_subcategory,
            subcategories=subcategories,
            image=pick_image(raw.get("images"), category),
            url=text(raw.get("url")) or None,
            price=price,
            price_min=price_min,
            price_max=price_max,
            currency=currency,
            **timing,
        )
