"""
Party event classification.

Decides whether an event is a party and which party sub-category it belongs
to, using weighted keyword tiers over the title and description. Matching is
a case-insensitive substring test, so "DJs" counts as "dj" and "Saturday"
counts as "day".
"""

from typing import Optional

from .models import PartySubcategory


# Keyword tiers used for detection and scoring
HIGH_VALUE_KEYWORDS = [
    "vip", "exclusive", "sold out", "tickets", "open bar", "bottle service",
    "dance floor", "headliner", "dj set", "rave", "underground", "warehouse",
]
MEDIUM_VALUE_KEYWORDS = [
    "dj", "music", "dance", "drinks", "featured", "popular", "nightlife",
    "entertainment", "live music", "concert", "performance", "party", "club",
    "nightclub",
]
LOW_VALUE_KEYWORDS = [
    "social", "gathering", "mixer", "event", "venue", "bar", "lounge", "night",
    "weekend",
]

KEYWORD_TIERS = {
    "high": (HIGH_VALUE_KEYWORDS, 3),
    "medium": (MEDIUM_VALUE_KEYWORDS, 2),
    "low": (LOW_VALUE_KEYWORDS, 1),
}

VENUE_KEYWORDS = [
    "club", "lounge", "bar", "nightclub", "disco", "hall", "arena", "venue",
    "rooftop", "terrace", "garden", "pool",
]

# Narrow signal for providers whose own category is otherwise trusted
PARTY_SIGNAL_KEYWORDS = [
    "party", "nightclub", "dance party", "dj", "disco", "rave", "nightlife",
    "mixer", "celebration", "gala",
]

# Appended to provider queries when searching for parties
PARTY_QUERY_TERMS = ["party", "nightlife"]

# Sub-category cascade, checked in order; first match wins
FESTIVAL_KEYWORDS = ["festival", "fest", "music festival", "block party"]
BRUNCH_KEYWORDS = ["brunch", "mimosa", "mimosas", "bottomless", "breakfast"]
DAY_PARTY_KEYWORDS = ["pool party", "rooftop", "afternoon"]
CLUB_KEYWORDS = ["dj", "dance", "nightlife", "club", "nightclub", "rave", "dj set"]
SOCIAL_KEYWORDS = ["social", "mixer", "networking"]
CELEBRATION_KEYWORDS = ["celebration", "gala"]


def _contains(text: str, keyword: str) -> bool:
    return keyword in text.lower()


def _contains_any(text: str, keywords: list[str]) -> bool:
    return any(_contains(text, kw) for kw in keywords)


def _blob(*parts: Optional[str]) -> str:
    return " ".join(p for p in parts if p).lower()


def keyword_matches(text: str) -> dict[str, list[str]]:
    """Return the keywords of each tier found in the text."""
    return {
        tier: [kw for kw in keywords if _contains(text, kw)]
        for tier, (keywords, _) in KEYWORD_TIERS.items()
    }


def keyword_score(text: str) -> int:
    """Cumulative tier weight of every keyword found in the text."""
    matches = keyword_matches(text)
    return sum(len(matches[tier]) * weight for tier, (_, weight) in KEYWORD_TIERS.items())


def has_party_signal(*parts: Optional[str]) -> bool:
    """Check the narrow party signal list."""
    return _contains_any(_blob(*parts), PARTY_SIGNAL_KEYWORDS)


def is_party_event(
    title: Optional[str],
    description: Optional[str],
    venue: Optional[str] = None,
) -> bool:
    """Decide whether an event is a party event.

    True when the title/description contain any keyword of any tier, or when
    the venue name matches a venue keyword.
    """
    text = _blob(title, description)
    for keywords, _ in KEYWORD_TIERS.values():
        if _contains_any(text, keywords):
            return True
    return bool(venue) and _contains_any(venue.lower(), VENUE_KEYWORDS)


def detect_party_subcategory(
    title: Optional[str],
    description: Optional[str],
    time: Optional[str] = "",
) -> PartySubcategory:
    """Assign a party sub-category with a first-match cascade.

    Order: festival, brunch, day-party, club, social, celebration, general.
    An earlier match always wins even when a later one fits better.
    The start time is part of the call signature but does not influence
    the cascade; only the text does.
    """
    text = _blob(title, description)

    if _contains_any(text, FESTIVAL_KEYWORDS):
        return PartySubcategory.FESTIVAL
    if _contains_any(text, BRUNCH_KEYWORDS):
        return PartySubcategory.BRUNCH
    if (_contains(text, "day") and _contains(text, "party")) or _contains_any(
        text, DAY_PARTY_KEYWORDS
    ):
        return PartySubcategory.DAY_PARTY
    if _contains_any(text, CLUB_KEYWORDS):
        return PartySubcategory.CLUB
    if _contains_any(text, SOCIAL_KEYWORDS):
        return PartySubcategory.SOCIAL
    if _contains_any(text, CELEBRATION_KEYWORDS):
        return PartySubcategory.CELEBRATION
    return PartySubcategory.GENERAL


def classify(
    title: Optional[str],
    description: Optional[str],
    venue: Optional[str] = None,
    time: Optional[str] = "",
    fallback_category: str = "other",
) -> tuple[str, Optional[PartySubcategory]]:
    """Return (category, party_subcategory) for an event.

    Non-party events keep the fallback category and never carry a
    sub-category.
    """
    if is_party_event(title, description, venue):
        return "party", detect_party_subcategory(title, description, time)
    return fallback_category, None
