"""
Pydantic models for event data structures.

These models define the core data types used throughout the search core:
- Event: Canonical, source-agnostic event record
- SearchParams: Validated search request
- FetchStats: Per-provider fetch outcome (the "source stats")
- SearchResult: Final result set handed back to callers
"""

import math
from datetime import date
from enum import Enum
from typing import Any, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    computed_field,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel


class EventSource(str, Enum):
    """Upstream providers an event can come from."""

    TICKETMASTER = "ticketmaster"
    PREDICTHQ = "predicthq"
    RAPIDAPI = "rapidapi"
    UNKNOWN = "unknown"


class PartySubcategory(str, Enum):
    """Finer-grained classification applied only to party events."""

    CLUB = "club"
    DAY_PARTY = "day-party"
    BRUNCH = "brunch"
    SOCIAL = "social"
    CELEBRATION = "celebration"
    NETWORKING = "networking"
    FESTIVAL = "festival"
    GENERAL = "general"


# Fixed category taxonomy
CATEGORIES = ("music", "sports", "arts", "family", "food", "party", "other")

# Placeholder images keyed by category
DEFAULT_IMAGES = {
    "music": "https://images.unsplash.com/photo-1501386761578-eac5c94b800a?w=800&auto=format&fit=crop",
    "sports": "https://images.unsplash.com/photo-1471295253337-3ceaaedca402?w=800&auto=format&fit=crop",
    "arts": "https://images.unsplash.com/photo-1507676184212-d03ab07a01bf?w=800&auto=format&fit=crop",
    "family": "https://images.unsplash.com/photo-1511632765486-a01980e01a18?w=800&auto=format&fit=crop",
    "food": "https://images.unsplash.com/photo-1414235077428-338989a2e8c0?w=800&auto=format&fit=crop",
    "party": "https://images.unsplash.com/photo-1514525253161-7a46d19cd819?w=800&auto=format&fit=crop",
    "other": "https://images.unsplash.com/photo-1523580494863-6f3031224c94?w=800&auto=format&fit=crop",
}

MAX_RADIUS_MILES = 100.0
DEFAULT_RADIUS_MILES = 25.0
DEFAULT_LIMIT = 100
MAX_LIMIT = 200


def default_image(category: Optional[str]) -> str:
    """Return the placeholder image for a category."""
    return DEFAULT_IMAGES.get(category or "other", DEFAULT_IMAGES["other"])


class SearchValidationError(ValueError):
    """Raised when search parameters are rejected at the pipeline entry."""

    def __init__(self, errors: list[str]):
        super().__init__("Invalid search parameters: " + "; ".join(errors))
        self.errors = errors


class CamelModel(BaseModel):
    """Base model serialised with camelCase keys on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Attendance(CamelModel):
    """Provider-supplied attendance signals."""

    forecast: Optional[int] = None
    actual: Optional[int] = None


class Event(CamelModel):
    """Represents a single canonical event."""

    # Identity
    id: str = Field(min_length=1)  # "<source>-<raw id>"
    source: EventSource = EventSource.UNKNOWN

    # Core event info
    title: str = Field(min_length=1)
    description: str = ""

    # Timing
    date: str = Field(min_length=1)  # display formatted
    time: str = Field(min_length=1)  # display formatted
    raw_start: str = Field(min_length=1)  # ISO-8601, sortable
    end: Optional[str] = None
    start_is_estimated: bool = False

    # Location
    location: str = Field(min_length=1)
    venue: Optional[str] = None
    coordinates: Optional[tuple[float, float]] = None  # [lng, lat]
    approximate_location: bool = False

    # Classification
    category: str = "other"
    party_subcategory: Optional[PartySubcategory] = None
    subcategories: list[str] = Field(default_factory=list)

    # Details
    image: str = Field(min_length=1)
    url: Optional[str] = None
    price: Optional[str] = None  # "25.0 - 95.0 USD"
    price_min: Optional[float] = None
    price_max: Optional[float] = None
    currency: Optional[str] = None

    # Popularity signals (provider supplied)
    rank: Optional[float] = None
    local_relevance: Optional[float] = None
    attendance: Optional[Attendance] = None

    @field_validator("category")
    @classmethod
    def _check_category(cls, value: str) -> str:
        if value not in CATEGORIES:
            raise ValueError(f"Unknown category '{value}'")
        return value

    @field_validator("coordinates")
    @classmethod
    def _check_coordinates(
        cls, value: Optional[tuple[float, float]]
    ) -> Optional[tuple[float, float]]:
        if value is None:
            return value
        lng, lat = value
        if not (math.isfinite(lng) and math.isfinite(lat)):
            raise ValueError("Coordinates must be finite")
        if not (-180 <= lng <= 180 and -90 <= lat <= 90):
            raise ValueError(f"Coordinates out of range: {value}")
        return value

    @model_validator(mode="after")
    def _check_party_coupling(self) -> "Event":
        is_party = self.category == "party"
        if is_party and self.party_subcategory is None:
            raise ValueError("Party events require a party sub-category")
        if not is_party and self.party_subcategory is not None:
            raise ValueError("Only party events may carry a party sub-category")
        return self

    @property
    def longitude(self) -> Optional[float]:
        return self.coordinates[0] if self.coordinates else None

    @property
    def latitude(self) -> Optional[float]:
        return self.coordinates[1] if self.coordinates else None

    def to_payload(self) -> dict[str, Any]:
        """Serialise for callers: camelCase keys, unset optionals dropped."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class SearchParams(BaseModel):
    """Validated search request."""

    location: Optional[str] = None
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)
    radius: float = DEFAULT_RADIUS_MILES  # miles
    categories: list[str] = Field(default_factory=list)
    keyword: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=DEFAULT_LIMIT, ge=1)
    exclude_ids: list[str] = Field(default_factory=list)
    jitter_missing_coordinates: Optional[bool] = None

    @field_validator("location", "keyword")
    @classmethod
    def _strip_text(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        value = value.strip()
        return value or None

    @field_validator("radius")
    @classmethod
    def _check_radius(cls, value: float) -> float:
        if not math.isfinite(value) or value <= 0:
            raise ValueError("Radius must be a positive number of miles")
        return min(value, MAX_RADIUS_MILES)

    @field_validator("categories", mode="before")
    @classmethod
    def _split_categories(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, str):
            value = value.split(",")
        if isinstance(value, (list, tuple)):
            return [str(c).strip().lower() for c in value if str(c).strip()]
        return value

    @field_validator("categories")
    @classmethod
    def _check_categories(cls, value: list[str]) -> list[str]:
        invalid = [c for c in value if c not in CATEGORIES]
        if invalid:
            raise ValueError(
                f"Invalid categories: {', '.join(invalid)}. "
                f"Valid categories are: {', '.join(CATEGORIES)}"
            )
        return value

    @field_validator("limit")
    @classmethod
    def _cap_limit(cls, value: int) -> int:
        return min(value, MAX_LIMIT)

    @model_validator(mode="after")
    def _check_consistency(self) -> "SearchParams":
        if (self.latitude is None) != (self.longitude is None):
            raise ValueError("Latitude and longitude must be provided together")
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValueError("Start date must be before or equal to end date")
        return self

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    @property
    def is_party_search(self) -> bool:
        return "party" in self.categories

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    @classmethod
    def parse(cls, raw: "SearchParams | dict[str, Any] | None") -> "SearchParams":
        """Validate raw parameters, raising SearchValidationError on failure."""
        if isinstance(raw, SearchParams):
            return raw
        try:
            return cls.model_validate(raw or {})
        except ValidationError as e:
            errors = []
            for err in e.errors():
                field = ".".join(str(p) for p in err["loc"])
                message = err["msg"].removeprefix("Value error, ")
                errors.append(f"{field}: {message}" if field else message)
            raise SearchValidationError(errors) from e

    def cache_key(self) -> str:
        """Deterministic key for result caching."""
        return self.model_dump_json()


class FetchStats(BaseModel):
    """Statistics from a single provider fetch."""

    source: str
    count: int
    status: str  # success, error, skipped
    duration_ms: Optional[int] = None
    error: Optional[str] = None


class DuplicateMatch(BaseModel):
    """Records a likely cross-source duplicate (reported, never merged)."""

    event_id: str
    other_event_id: str
    similarity_score: float
    reason: str


class MergeResult(BaseModel):
    """Result of merging per-source event lists."""

    events: list[Event]
    source_stats: dict[str, FetchStats]
    duplicates_removed: int = 0
    cross_source_matches: list[DuplicateMatch] = Field(default_factory=list)


class SearchMeta(CamelModel):
    """Metadata describing a search result page."""

    total_events: int
    events_with_coordinates: int
    returned: int
    page: int
    limit: int
    has_more: bool
    jittered: int = 0
    cross_source_matches: int = 0
    cached: bool = False
    execution_time_ms: int = 0
    timestamp: str


class SearchResult(BaseModel):
    """Result of a full search across all providers."""

    events: list[Event]
    source_stats: dict[str, FetchStats]
    meta: SearchMeta

    @computed_field
    @property
    def failed_sources(self) -> list[str]:
        """Providers whose fetch ended in error."""
        return [name for name, s in self.source_stats.items() if s.status == "error"]

    def to_payload(self) -> dict[str, Any]:
        """Serialise as the {events, sourceStats, meta} response body."""
        return {
            "events": [e.to_payload() for e in self.events],
            "sourceStats": {
                name: {"count": s.count, "error": s.error, "status": s.status}
                for name, s in self.source_stats.items()
            },
            "meta": self.meta.model_dump(mode="json", by_alias=True),
        }
