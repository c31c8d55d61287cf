"""Tests for party scoring and ranking."""

import pytest

from servers.event_search.models import DEFAULT_IMAGES, PartySubcategory
from servers.event_search.scoring import (
    is_placeholder_image,
    score_and_sort,
    score_party_event,
    sort_by_start,
    start_hour,
    time_of_day_bonus,
)


class TestScorePartyEvent:
    """Tests for individual event scores."""

    def test_club_outranks_general(self, event_factory):
        """A complete club night beats a bare afternoon general party."""
        club = event_factory(
            "club",
            category="party",
            subcategory=PartySubcategory.CLUB,
            image="https://cdn.example.com/club.jpg",
            venue="Elsewhere",
            price="$20",
            time="21:00",
            raw_start="2025-05-15T21:00:00",
        )
        general = event_factory("general", category="party", subcategory=PartySubcategory.GENERAL)

        assert score_party_event(club) > score_party_event(general)
        assert [e.id for e in score_and_sort([general, club])] == ["club", "general"]

    def test_component_totals(self, event_factory):
        """Base, keyword, image, venue, price and night bonuses add up."""
        club = event_factory(
            "club",
            category="party",
            subcategory=PartySubcategory.CLUB,
            image="https://cdn.example.com/club.jpg",
            venue="Elsewhere",
            price="$20",
            time="21:00",
        )
        # 15 base + 3 ("club", "event" in title) + 4 image + 3 venue + 2 price + 4 night
        assert score_party_event(club) == 31

    def test_description_bonus_capped(self, event_factory):
        """Long descriptions add at most 5 points."""
        short = event_factory("a", category="party", description="x" * 250)
        long = event_factory("b", category="party", description="x" * 5000)

        assert score_party_event(short) - score_party_event(event_factory("c", category="party")) == 2
        assert score_party_event(long) - score_party_event(event_factory("d", category="party")) == 5

    def test_networking_base_score(self, event_factory):
        networking = event_factory("n", category="party", subcategory=PartySubcategory.NETWORKING)
        general = event_factory("g", category="party")
        assert score_party_event(networking) - score_party_event(general) == 1


class TestScoreAndSort:
    """Tests for ranking."""

    def test_non_party_filtered_out(self, event_factory):
        events = [event_factory("music", category="music"), event_factory("party", category="party")]
        assert [e.id for e in score_and_sort(events)] == ["party"]

    def test_ties_keep_input_order(self, event_factory):
        """Equal scores keep the order they came in."""
        events = [event_factory(eid, category="party") for eid in ("a", "b", "c")]
        assert [e.id for e in score_and_sort(events)] == ["a", "b", "c"]

    def test_events_not_modified(self, event_factory):
        event = event_factory("a", category="party")
        before = event.model_dump()
        score_and_sort([event])
        assert event.model_dump() == before


class TestHelpers:
    """Tests for scoring helpers."""

    @pytest.mark.parametrize(
        "url,expected",
        [
            (None, True),
            ("https://placehold.co/600x400", True),
            ("https://via.placeholder.com/300", True),
            (DEFAULT_IMAGES["party"], True),
            ("https://cdn.example.com/party.jpg", False),
        ],
    )
    def test_is_placeholder_image(self, url, expected):
        assert is_placeholder_image(url) is expected

    @pytest.mark.parametrize(
        "time,raw_start,expected",
        [
            ("9:00 PM", "2025-05-15T21:00:00", 21),
            ("12:15 AM", "2025-05-16T00:15:00", 0),
            ("12:30 PM", "2025-05-15T12:30:00", 12),
            ("19:30:00", "2025-05-15T19:30:00", 19),
            ("Time TBA", "2025-05-15T22:00:00", 22),
            ("Time TBA", "2025-05-15", None),
        ],
    )
    def test_start_hour(self, event_factory, time, raw_start, expected):
        event = event_factory("x", time=time, raw_start=raw_start)
        assert start_hour(event) == expected

    def test_estimated_start_has_no_hour(self, event_factory):
        event = event_factory("x", time="Time TBA", start_is_estimated=True)
        assert start_hour(event) is None

    @pytest.mark.parametrize(
        "hour,bonus",
        [(None, 0), (3, 4), (4, 0), (15, 0), (16, 2), (19, 2), (20, 4), (23, 4)],
    )
    def test_time_of_day_bonus(self, hour, bonus):
        assert time_of_day_bonus(hour) == bonus


class TestSortByStart:
    """Tests for chronological ordering."""

    def test_estimated_last(self, event_factory):
        events = [
            event_factory("tba", raw_start="2025-05-01T12:00:00", start_is_estimated=True),
            event_factory("late", raw_start="2025-05-20T20:00:00"),
            event_factory("early", raw_start="2025-05-10T09:00:00"),
        ]
        assert [e.id for e in sort_by_start(events)] == ["early", "late", "tba"]
