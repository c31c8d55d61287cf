"""Tests for radius filtering."""

import random

import pytest

from servers.event_search.geo import (
    GeoPoint,
    distance_to,
    filter_by_radius,
    haversine_miles,
    jitter_coordinates,
    valid_coordinates,
)

CENTER = GeoPoint(latitude=40.8, longitude=-74.0)


class TestHaversine:
    """Tests for distance calculation."""

    def test_tenth_of_a_degree_latitude(self):
        """0.1 degrees of latitude is roughly 6.9 miles."""
        distance = haversine_miles(CENTER, GeoPoint(40.7, -74.0))
        assert distance == pytest.approx(6.91, abs=0.01)

    def test_same_point(self):
        assert haversine_miles(CENTER, CENTER) == 0

    def test_symmetry(self):
        a, b = GeoPoint(40.7, -74.0), GeoPoint(34.05, -118.24)
        assert haversine_miles(a, b) == pytest.approx(haversine_miles(b, a))

    def test_distance_to_without_coordinates(self, event_factory):
        assert distance_to(CENTER, event_factory("x")) is None

    @pytest.mark.parametrize(
        "coordinates,expected",
        [((-74.0, 40.7), True), (None, False), ((200.0, 40.0), False), ((-74.0, float("nan")), False)],
    )
    def test_valid_coordinates(self, coordinates, expected):
        assert valid_coordinates(coordinates) is expected


class TestFilterByRadius:
    """Tests for filter_by_radius."""

    def test_radius_boundary(self, event_factory):
        """An event ~6.9 miles out is excluded at 5 miles and included at 10."""
        event = event_factory("ticketmaster-1", coordinates=(-74.0, 40.7))

        assert filter_by_radius([event], CENTER, 5).events == []
        assert filter_by_radius([event], CENTER, 10).events == [event]

    def test_missing_coordinates_dropped(self, event_factory):
        """Events without coordinates are dropped when jitter is off."""
        result = filter_by_radius([event_factory("x")], CENTER, 10)

        assert result.events == []
        assert result.jittered == 0

    def test_jitter_places_event_near_center(self, event_factory):
        """Jittered events land within 0.05 degrees and are flagged."""
        original = event_factory("x")
        result = filter_by_radius([original], CENTER, 10, jitter_missing=True, rng=random.Random(1))

        assert result.jittered == 1
        jittered = result.events[0]
        lng, lat = jittered.coordinates
        assert abs(lng - CENTER.longitude) <= 0.05
        assert abs(lat - CENTER.latitude) <= 0.05
        assert jittered.approximate_location is True

    def test_input_not_mutated(self, event_factory):
        """The caller's events keep their missing coordinates."""
        original = event_factory("x")
        filter_by_radius([original], CENTER, 10, jitter_missing=True, rng=random.Random(1))

        assert original.coordinates is None
        assert original.approximate_location is False

    def test_jitter_is_deterministic_with_seeded_rng(self):
        a = jitter_coordinates(CENTER, random.Random(42))
        b = jitter_coordinates(CENTER, random.Random(42))
        assert a == b

    def test_order_preserved(self, event_factory):
        events = [
            event_factory("a", coordinates=(-74.0, 40.79)),
            event_factory("b", coordinates=(-120.0, 40.0)),
            event_factory("c", coordinates=(-74.01, 40.8)),
        ]
        kept = filter_by_radius(events, CENTER, 5).events
        assert [e.id for e in kept] == ["a", "c"]
