"""
Merging of per-source event lists.

Events are deduplicated on their id only. Ids carry a source prefix, so the
same physical event listed by two providers survives as two records. Those
cross-source look-alikes are detected with weighted fuzzy matching and
reported as an audit trail, never merged:
- Title: 50% weight
- Venue: 35% weight
- Time: 15% weight

Threshold: 0.75 (75% similarity = likely the same event)
"""

import re
from collections import defaultdict
from datetime import datetime
from typing import Optional

import structlog
from dateutil import parser
from rapidfuzz import fuzz

from .models import DuplicateMatch, Event, FetchStats, MergeResult

logger = structlog.get_logger()

# Merge precedence; unknown sources follow in the order given
SOURCE_ORDER = ["ticketmaster", "predicthq", "rapidapi"]

WEIGHTS = {
    "title": 0.50,
    "venue": 0.35,
    "time": 0.15
}

THRESHOLD = 0.75


def normalize_text(text: Optional[str]) -> str:
    """Normalize text for comparison."""
    if not text:
        return ""

    text = text.lower().strip()

    prefixes = ["live:", "live -", "tonight:", "this week:", "event:"]
    for prefix in prefixes:
        if text.startswith(prefix):
            text = text[len(prefix):].strip()

    text = re.sub(r"[^\w\s&'-]", " ", text)
    return re.sub(r"\s+", " ", text).strip()


def normalize_venue_name(name: Optional[str]) -> str:
    """Normalize venue name for comparison."""
    if not name:
        return ""

    name = name.lower().strip()

    suffixes = [
        " bar", " pub", " club", " lounge", " theater", " theatre",
        " hall", " venue", " room", " stage", " arena", " center",
    ]
    for suffix in suffixes:
        if name.endswith(suffix):
            name = name[:-len(suffix)].strip()

    if name.startswith("the "):
        name = name[4:]

    return name


def _start_of(event: Event) -> Optional[datetime]:
    if event.start_is_estimated:
        return None
    try:
        return parser.isoparse(event.raw_start).replace(tzinfo=None)
    except ValueError:
        return None


def calculate_title_similarity(e1: Event, e2: Event) -> float:
    """Calculate title similarity (0-1)."""
    t1 = normalize_text(e1.title)
    t2 = normalize_text(e2.title)

    if not t1 or not t2:
        return 0.0

    # Word order independent
    return fuzz.token_sort_ratio(t1, t2) / 100


def calculate_venue_similarity(e1: Event, e2: Event) -> float:
    """Calculate venue similarity (0-1)."""
    v1 = normalize_venue_name(e1.venue)
    v2 = normalize_venue_name(e2.venue)

    if not v1 or not v2:
        return 0.0

    return fuzz.ratio(v1, v2) / 100


def calculate_time_similarity(e1: Event, e2: Event) -> float:
    """Calculate time similarity (0-1)."""
    s1, s2 = _start_of(e1), _start_of(e2)
    if s1 is None or s2 is None or s1.date() != s2.date():
        return 0.0

    time_diff = abs((s1 - s2).total_seconds())
    # Full score within 30 minutes, linear decay up to 4 hours
    if time_diff <= 1800:
        return 1.0
    if time_diff <= 14400:
        return 1.0 - (time_diff - 1800) / 12600
    return 0.5


def calculate_similarity(e1: Event, e2: Event) -> tuple[float, float, float, float]:
    """
    Calculate weighted similarity between two events.

    Returns: (total_similarity, title_sim, venue_sim, time_sim)
    """
    title_sim = calculate_title_similarity(e1, e2)
    venue_sim = calculate_venue_similarity(e1, e2)
    time_sim = calculate_time_similarity(e1, e2)

    total = (
        WEIGHTS["title"] * title_sim +
        WEIGHTS["venue"] * venue_sim +
        WEIGHTS["time"] * time_sim
    )

    return (total, title_sim, venue_sim, time_sim)


def find_cross_source_matches(
    events: list[Event],
    threshold: float = THRESHOLD,
) -> list[DuplicateMatch]:
    """
    Report likely duplicates listed by different providers.

    Only events starting on the same calendar day are compared.
    """
    by_day: dict[str, list[Event]] = defaultdict(list)
    for event in events:
        if not event.start_is_estimated:
            by_day[event.raw_start[:10]].append(event)

    matches: list[DuplicateMatch] = []
    for day_events in by_day.values():
        for i, event in enumerate(day_events):
            for other in day_events[i + 1:]:
                if other.source == event.source:
                    continue
                total_sim, title_sim, venue_sim, time_sim = calculate_similarity(event, other)
                if total_sim < threshold:
                    continue
                matches.append(DuplicateMatch(
                    event_id=event.id,
                    other_event_id=other.id,
                    similarity_score=round(total_sim, 3),
                    reason=(
                        f"'{event.title}' ({event.source.value}) resembles "
                        f"'{other.title}' ({other.source.value}): "
                        f"title {title_sim:.0%}, venue {venue_sim:.0%}, time {time_sim:.0%}"
                    ),
                ))
    return matches


def _ordered_sources(sources: dict[str, list[Event]]) -> list[str]:
    known = [s for s in SOURCE_ORDER if s in sources]
    return known + [s for s in sources if s not in SOURCE_ORDER]


def merge(
    sources: dict[str, list[Event]],
    stats: Optional[dict[str, FetchStats]] = None,
    audit: bool = True,
) -> MergeResult:
    """
    Merge per-source event lists into one list keyed on event id.

    Args:
        sources: Events per provider name
        stats: Fetch outcome per provider; counts are recomputed from sources
        audit: Whether to look for cross-source look-alikes

    Returns:
        MergeResult with the first occurrence of every id, in source order
    """
    stats = stats or {}
    seen: set[str] = set()
    merged: list[Event] = []
    source_stats: dict[str, FetchStats] = {}
    total = 0

    for name in _ordered_sources(sources):
        events = sources[name]
        total += len(events)
        for event in events:
            if event.id in seen:
                continue
            seen.add(event.id)
            merged.append(event)

        previous = stats.get(name)
        source_stats[name] = FetchStats(
            source=name,
            count=len(events),
            status=previous.status if previous else "success",
            duration_ms=previous.duration_ms if previous else None,
            error=previous.error if previous else None,
        )

    # Providers that failed before producing a list still get reported
    for name, previous in stats.items():
        if name not in source_stats:
            source_stats[name] = previous.model_copy(update={"count": 0})

    cross_source_matches = find_cross_source_matches(merged) if audit else []
    duplicates_removed = total - len(merged)

    logger.debug(
        "sources_merged",
        sources=list(source_stats),
        events=len(merged),
        duplicates_removed=duplicates_removed,
        cross_source_matches=len(cross_source_matches),
    )

    return MergeResult(
        events=merged,
        source_stats=source_stats,
        duplicates_removed=duplicates_removed,
        cross_source_matches=cross_source_matches,
    )
