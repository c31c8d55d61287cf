"""
Party event scoring and ranking.

Score components:
- Sub-category base: club 15, day-party 12, celebration 10, brunch 8,
  social 7, networking 6, anything else 5
- Description length: 1 point per 100 characters, at most 5
- Keywords: 3/2/1 per high/medium/low tier match (cumulative)
- Image (non-placeholder) +4, venue +3, price +2
- Start hour: +4 for 20:00-03:59, +2 for 16:00-19:59

Scores are computed on the side and never stored on the event.
"""

import re
from typing import Optional

from dateutil import parser

from .classifier import keyword_score
from .models import DEFAULT_IMAGES, Event, PartySubcategory

SUBCATEGORY_SCORES = {
    PartySubcategory.CLUB: 15,
    PartySubcategory.DAY_PARTY: 12,
    PartySubcategory.CELEBRATION: 10,
    PartySubcategory.BRUNCH: 8,
    PartySubcategory.SOCIAL: 7,
    PartySubcategory.NETWORKING: 6,
}
DEFAULT_SUBCATEGORY_SCORE = 5

MAX_DESCRIPTION_BONUS = 5
IMAGE_BONUS = 4
VENUE_BONUS = 3
PRICE_BONUS = 2
NIGHT_BONUS = 4
EVENING_BONUS = 2

PLACEHOLDER_MARKERS = ("placeholder", "placehold.co")
_DEFAULT_IMAGE_URLS = set(DEFAULT_IMAGES.values())

_CLOCK_TIME = re.compile(r"^\s*(\d{1,2}):(\d{2})(?::\d{2})?\s*([AaPp][Mm])?\s*$")


def is_placeholder_image(url: Optional[str]) -> bool:
    if not url:
        return True
    lowered = url.lower()
    return url in _DEFAULT_IMAGE_URLS or any(m in lowered for m in PLACEHOLDER_MARKERS)


def start_hour(event: Event) -> Optional[int]:
    """Hour of day (0-23) from the display time, else from raw_start."""
    if event.start_is_estimated:
        return None

    match = _CLOCK_TIME.match(event.time or "")
    if match:
        hour = int(match.group(1))
        meridiem = (match.group(3) or "").lower()
        if meridiem == "pm" and hour != 12:
            hour += 12
        elif meridiem == "am" and hour == 12:
            hour = 0
        return hour if 0 <= hour <= 23 else None

    if "T" not in event.raw_start:
        return None
    try:
        return parser.isoparse(event.raw_start).hour
    except ValueError:
        return None


def time_of_day_bonus(hour: Optional[int]) -> int:
    if hour is None:
        return 0
    if hour >= 20 or hour < 4:
        return NIGHT_BONUS
    if 16 <= hour < 20:
        return EVENING_BONUS
    return 0


def score_party_event(event: Event) -> int:
    """Compute the ranking score for one party event."""
    score = SUBCATEGORY_SCORES.get(event.party_subcategory, DEFAULT_SUBCATEGORY_SCORE)
    score += min(MAX_DESCRIPTION_BONUS, len(event.description or "") // 100)
    score += keyword_score(f"{event.title} {event.description or ''}".lower())

    if not is_placeholder_image(event.image):
        score += IMAGE_BONUS
    if event.venue:
        score += VENUE_BONUS
    if event.price:
        score += PRICE_BONUS

    score += time_of_day_bonus(start_hour(event))
    return score


def score_and_sort(events: list[Event]) -> list[Event]:
    """Keep party events only, ordered by descending score.

    Ties keep their input order.
    """
    scored = [(score_party_event(e), e) for e in events if e.category == "party"]
    # sorted() is stable; key avoids comparing Event objects
    scored = sorted(scored, key=lambda pair: pair[0], reverse=True)
    return [event for _, event in scored]


def sort_by_start(events: list[Event]) -> list[Event]:
    """Order events by ascending start; estimated starts go last."""
    return sorted(events, key=lambda e: (e.start_is_estimated, e.raw_start))
