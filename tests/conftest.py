"""Shared pytest fixtures for event search tests."""

import random
from datetime import datetime

import pytest

from servers.event_search.adapters import PredictHQAdapter, RapidAPIAdapter, TicketmasterAdapter
from servers.event_search.models import Event, EventSource, PartySubcategory

FIXED_NOW = datetime(2025, 5, 1, 12, 0, 0)


@pytest.fixture
def fixed_clock():
    """Clock pinned to 2025-05-01 12:00."""
    return lambda: FIXED_NOW


@pytest.fixture
def ticketmaster(fixed_clock) -> TicketmasterAdapter:
    return TicketmasterAdapter(api_key="tm-test-key", clock=fixed_clock, rng=random.Random(7))


@pytest.fixture
def predicthq(fixed_clock) -> PredictHQAdapter:
    return PredictHQAdapter(api_key="phq-test-key", clock=fixed_clock, rng=random.Random(7))


@pytest.fixture
def rapidapi(fixed_clock) -> RapidAPIAdapter:
    return RapidAPIAdapter(api_key="rapid-test-key", clock=fixed_clock, rng=random.Random(7))


@pytest.fixture
def ticketmaster_record() -> dict:
    """A Ticketmaster Discovery API event."""
    return {
        "id": "G5vYZ9",
        "name": "Test Concert",
        "url": "https://www.ticketmaster.com/event/G5vYZ9",
        "classifications": [
            {
                "segment": {"name": "Music"},
                "genre": {"name": "Rock"},
                "subGenre": {"name": "Undefined"},
            }
        ],
        "dates": {"start": {"localDate": "2025-05-15", "localTime": "19:30:00"}},
        "images": [
            {"ratio": "4_3", "url": "https://img.tm/small.jpg", "width": 305},
            {"ratio": "16_9", "url": "https://img.tm/wide.jpg", "width": 1024},
        ],
        "priceRanges": [{"min": 25.0, "max": 95.0, "currency": "USD"}],
        "_embedded": {
            "venues": [
                {
                    "name": "Test Venue",
                    "city": {"name": "New York"},
                    "state": {"stateCode": "NY"},
                    "country": {"countryCode": "US"},
                    "location": {"longitude": "-73.986", "latitude": "40.755"},
                }
            ]
        },
    }


@pytest.fixture
def predicthq_record() -> dict:
    """A PredictHQ event with party labels."""
    return {
        "id": "phq123",
        "title": "Warehouse Rave",
        "description": "All night techno. Sourced from PredictHQ.",
        "category": "concerts",
        "labels": ["concert", "nightlife", "music"],
        "start": "2025-05-16T22:00:00Z",
        "end": "2025-05-17T04:00:00Z",
        "location": [-73.99, 40.73],
        "entities": [
            {"type": "venue", "name": "Brooklyn Mirage", "formatted_address": "140 Stewart Ave"}
        ],
        "state": "NY",
        "country": "US",
        "rank": 72,
        "local_rank": 80,
        "phq_attendance": 3000,
    }


@pytest.fixture
def rapidapi_record() -> dict:
    """A RapidAPI real-time events search result."""
    return {
        "event_id": "L2F1dGhvcml0eS9ob3Jpem9u",
        "name": "Rooftop Sunset Session",
        "description": "Sunset views with a live DJ",
        "start_time": "2025-05-15 21:00:00",
        "link": "https://example.com/rooftop",
        "ticket_links": [{"source": "Eventbrite", "link": "https://eventbrite.com/e/1"}],
        "thumbnail": "https://example.com/rooftop.jpg",
        "venue": {
            "name": "Sky Deck",
            "full_address": "230 5th Ave, New York, NY",
            "city": "New York",
            "state": "NY",
            "latitude": 40.744,
            "longitude": -73.988,
            "subtype": "bar",
            "subtypes": ["bar", "night_club"],
        },
    }


def make_event(
    event_id: str,
    source: EventSource = EventSource.TICKETMASTER,
    category: str = "other",
    subcategory: PartySubcategory | None = None,
    **fields,
) -> Event:
    """Build a valid Event with sensible defaults."""
    if category == "party" and subcategory is None:
        subcategory = PartySubcategory.GENERAL
    data = {
        "id": event_id,
        "source": source,
        "title": f"Event {event_id}",
        "description": "",
        "date": "2025-05-15",
        "time": "14:00",
        "raw_start": "2025-05-15T14:00:00",
        "location": "New York, NY",
        "category": category,
        "party_subcategory": subcategory,
        "image": "https://placehold.co/600x400?text=No+Image",
    }
    data.update(fields)
    return Event(**data)


@pytest.fixture
def event_factory():
    """Provide the make_event helper to tests."""
    return make_event
