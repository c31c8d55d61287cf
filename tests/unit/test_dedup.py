"""Tests for merging and cross-source duplicate detection."""

import pytest

from servers.event_search.dedup import (
    THRESHOLD,
    WEIGHTS,
    calculate_similarity,
    calculate_time_similarity,
    find_cross_source_matches,
    merge,
    normalize_text,
    normalize_venue_name,
)
from servers.event_search.models import EventSource, FetchStats


class TestNormalization:
    """Tests for text normalization."""

    def test_removes_live_prefix(self):
        """Test removal of 'Live:' prefix."""
        assert normalize_text("Live: Concert Tonight") == "concert tonight"

    def test_removes_tonight_prefix(self):
        """Test removal of 'TONIGHT:' prefix."""
        assert normalize_text("TONIGHT: Jazz Show") == "jazz show"

    def test_collapses_whitespace(self):
        """Test whitespace collapse."""
        assert normalize_text("  Multiple   Spaces  ") == "multiple spaces"

    def test_none_handling(self):
        """Test None input handling."""
        assert normalize_text(None) == ""

    @pytest.mark.parametrize(
        "name,expected",
        [("The Bowery Ballroom", "bowery ballroom"), ("Elsewhere Hall", "elsewhere"), (None, "")],
    )
    def test_venue_name(self, name, expected):
        """Test venue suffix and article stripping."""
        assert normalize_venue_name(name) == expected


class TestWeights:
    """Tests for similarity weights configuration."""

    def test_weights_sum_to_one(self):
        """Weights should sum to 1.0 for proper scoring."""
        assert abs(sum(WEIGHTS.values()) - 1.0) < 0.001

    def test_threshold(self):
        assert THRESHOLD == 0.75


class TestSimilarity:
    """Tests for pairwise similarity."""

    def test_identical_listing(self, event_factory):
        """Same title, venue and start is a perfect match."""
        a = event_factory("ticketmaster-1", title="Neon Nights", venue="Elsewhere")
        b = event_factory(
            "predicthq-1", source=EventSource.PREDICTHQ, title="NEON NIGHTS", venue="Elsewhere Hall"
        )
        total, title_sim, venue_sim, time_sim = calculate_similarity(a, b)

        assert title_sim == 1.0
        assert venue_sim == 1.0
        assert time_sim == 1.0
        assert total == pytest.approx(1.0)

    def test_time_decay(self, event_factory):
        """An hour apart on the same day scores between 0.5 and 1."""
        a = event_factory("a", raw_start="2025-05-15T21:00:00")
        b = event_factory("b", raw_start="2025-05-15T22:00:00")
        assert calculate_time_similarity(a, b) == pytest.approx(1 - 1800 / 12600)

    def test_estimated_start_has_no_time_similarity(self, event_factory):
        a = event_factory("a", start_is_estimated=True)
        b = event_factory("b")
        assert calculate_time_similarity(a, b) == 0.0

    def test_missing_venue(self, event_factory):
        a = event_factory("a", title="Neon Nights")
        b = event_factory("b", title="Neon Nights")
        _, _, venue_sim, _ = calculate_similarity(a, b)
        assert venue_sim == 0.0


class TestCrossSourceMatches:
    """Tests for the cross-source audit."""

    def test_reports_cross_source_lookalike(self, event_factory):
        a = event_factory("ticketmaster-1", title="Neon Nights", venue="Elsewhere")
        b = event_factory("predicthq-9", source=EventSource.PREDICTHQ, title="Neon Nights", venue="Elsewhere")
        matches = find_cross_source_matches([a, b])

        assert len(matches) == 1
        assert matches[0].event_id == "ticketmaster-1"
        assert matches[0].other_event_id == "predicthq-9"
        assert matches[0].similarity_score == 1.0
        assert "ticketmaster" in matches[0].reason

    def test_same_source_ignored(self, event_factory):
        a = event_factory("ticketmaster-1", title="Neon Nights", venue="Elsewhere")
        b = event_factory("ticketmaster-2", title="Neon Nights", venue="Elsewhere")
        assert find_cross_source_matches([a, b]) == []

    def test_different_days_ignored(self, event_factory):
        a = event_factory("ticketmaster-1", title="Neon Nights", venue="Elsewhere")
        b = event_factory(
            "predicthq-9",
            source=EventSource.PREDICTHQ,
            title="Neon Nights",
            venue="Elsewhere",
            raw_start="2025-05-16T14:00:00",
        )
        assert find_cross_source_matches([a, b]) == []

    def test_unrelated_events_below_threshold(self, event_factory):
        a = event_factory("ticketmaster-1", title="Neon Nights", venue="Elsewhere")
        b = event_factory(
            "predicthq-9", source=EventSource.PREDICTHQ, title="Farmers Market", venue="Union Square"
        )
        assert find_cross_source_matches([a, b]) == []


class TestMerge:
    """Tests for merging source lists."""

    def test_first_id_wins(self, event_factory):
        """Repeated ids keep only their first occurrence."""
        first = event_factory("rapidapi-1", source=EventSource.RAPIDAPI, title="First")
        repeat = event_factory("rapidapi-1", source=EventSource.RAPIDAPI, title="Repeat")
        result = merge({"rapidapi": [first, repeat]})

        assert [e.title for e in result.events] == ["First"]
        assert result.duplicates_removed == 1

    def test_ids_unique(self, event_factory):
        sources = {
            "ticketmaster": [event_factory("ticketmaster-1"), event_factory("ticketmaster-2")],
            "rapidapi": [event_factory("rapidapi-1", source=EventSource.RAPIDAPI)],
        }
        ids = [e.id for e in merge(sources).events]
        assert len(ids) == len(set(ids))

    def test_source_order(self, event_factory):
        """Ticketmaster, PredictHQ, RapidAPI in that order."""
        sources = {
            "rapidapi": [event_factory("rapidapi-1", source=EventSource.RAPIDAPI)],
            "ticketmaster": [event_factory("ticketmaster-1")],
            "predicthq": [event_factory("predicthq-1", source=EventSource.PREDICTHQ)],
        }
        ids = [e.id for e in merge(sources).events]
        assert ids == ["ticketmaster-1", "predicthq-1", "rapidapi-1"]

    def test_cross_source_lookalikes_kept(self, event_factory):
        """Look-alikes from different providers are reported, not merged."""
        sources = {
            "ticketmaster": [event_factory("ticketmaster-1", title="Neon Nights", venue="Elsewhere")],
            "predicthq": [
                event_factory("predicthq-9", source=EventSource.PREDICTHQ, title="Neon Nights", venue="Elsewhere")
            ],
        }
        result = merge(sources)

        assert len(result.events) == 2
        assert len(result.cross_source_matches) == 1

    def test_audit_can_be_disabled(self, event_factory):
        sources = {
            "ticketmaster": [event_factory("ticketmaster-1", title="Neon Nights", venue="Elsewhere")],
            "predicthq": [
                event_factory("predicthq-9", source=EventSource.PREDICTHQ, title="Neon Nights", venue="Elsewhere")
            ],
        }
        assert merge(sources, audit=False).cross_source_matches == []

    def test_stats_counts_and_failures(self, event_factory):
        """Counts follow the lists; failed providers are still reported."""
        stats = {
            "ticketmaster": FetchStats(source="ticketmaster", count=5, status="success", duration_ms=12),
            "predicthq": FetchStats(source="predicthq", count=0, status="error", error="HTTP 500: boom"),
        }
        sources = {"ticketmaster": [event_factory("ticketmaster-1"), event_factory("ticketmaster-2")]}
        result = merge(sources, stats)

        assert result.source_stats["ticketmaster"].count == 2
        assert result.source_stats["ticketmaster"].duration_ms == 12
        assert result.source_stats["predicthq"].status == "error"
        assert result.source_stats["predicthq"].error == "HTTP 500: boom"
        assert result.source_stats["predicthq"].count == 0

    def test_empty(self):
        result = merge({})
        assert result.events == []
        assert result.source_stats == {}
