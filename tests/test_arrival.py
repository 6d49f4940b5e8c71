import pytest

from audioguide.arrival import ArrivalTracker
from audioguide.catalog import Catalog
from audioguide.errors import InvalidInput
from audioguide.models import Location
from audioguide.proximity import ProximityEngine

from conftest import make_point

AT_P1 = Location(32.0, 35.0, timestamp=100.0)
FAR_SOUTH = Location(31.982, 35.0, timestamp=200.0)  # ~2000 m south of P1


def ids(events):
    return [e.point_id for e in events]


class TestArrivalScenario:
    def test_reentry_fires_twice(self, two_point_catalog):
        tracker = ArrivalTracker(two_point_catalog, arrival_radius=1000)
        events = []
        for location in (AT_P1, FAR_SOUTH, Location(32.0, 35.0, timestamp=300.0)):
            events.extend(tracker.on_location_update(location))
        p1_events = [e for e in events if e.point_id == "P1"]
        assert len(p1_events) == 2
        assert [e.timestamp for e in p1_events] == [100.0, 300.0]

    def test_event_carries_point(self, two_point_catalog, p1):
        tracker = ArrivalTracker(two_point_catalog, arrival_radius=1000)
        (event,) = tracker.on_location_update(AT_P1)
        assert event.point == p1
        assert event.point_id == "P1"

    def test_missing_timestamp_uses_clock(self, two_point_catalog, monkeypatch):
        monkeypatch.setattr("audioguide.arrival.time.time", lambda: 42.0)
        tracker = ArrivalTracker(two_point_catalog, arrival_radius=1000)
        (event,) = tracker.on_location_update(Location(32.0, 35.0))
        assert event.timestamp == 42.0


class TestOncePerStay:
    def test_monotonic_approach_fires_once(self, two_point_catalog):
        tracker = ArrivalTracker(two_point_catalog, arrival_radius=1000)
        events = []
        # Walk north from 3 km south of P1 to P1 and stay
        for step in range(0, 31):
            lat = 31.973 + step * 0.0009
            events.extend(tracker.on_location_update(Location(min(lat, 32.0), 35.0)))
        for _ in range(5):
            events.extend(tracker.on_location_update(AT_P1))
        assert ids(events).count("P1") == 1

    def test_orbit_boundary_fires_per_entry(self):
        point = make_point("X", 32.0, 35.0)
        tracker = ArrivalTracker(Catalog([point]), arrival_radius=1000)
        just_inside = Location(32.0089, 35.0)   # ~990 m
        just_outside = Location(32.0091, 35.0)  # ~1012 m
        sequence = [just_inside, just_outside, just_inside, just_outside, just_inside, just_inside]
        fired = [len(tracker.on_location_update(loc)) for loc in sequence]
        assert fired == [1, 0, 1, 0, 1, 0]

    def test_idempotent_repeats(self, two_point_catalog):
        tracker = ArrivalTracker(two_point_catalog, arrival_radius=1000)
        assert ids(tracker.on_location_update(AT_P1)) == ["P1"]
        for _ in range(3):
            assert tracker.on_location_update(AT_P1) == []
        assert tracker.inside == {"P1"}


class TestState:
    def test_inside_tracks_last_update(self, two_point_catalog):
        tracker = ArrivalTracker(two_point_catalog, arrival_radius=1000)
        tracker.on_location_update(AT_P1)
        assert tracker.is_inside("P1")
        assert not tracker.is_inside("P2")
        tracker.on_location_update(FAR_SOUTH)
        assert tracker.inside == frozenset()

    def test_multiple_arrivals_nearest_first(self, two_point_catalog):
        tracker = ArrivalTracker(two_point_catalog, arrival_radius=1000)
        # Between the two points, slightly closer to P2
        events = tracker.on_location_update(Location(32.006, 35.0))
        assert ids(events) == ["P2", "P1"]

    def test_reset_rearms(self, two_point_catalog):
        tracker = ArrivalTracker(two_point_catalog, arrival_radius=1000)
        tracker.on_location_update(AT_P1)
        tracker.reset()
        assert tracker.inside == frozenset()
        assert ids(tracker.on_location_update(AT_P1)) == ["P1"]

    def test_invalid_location_leaves_state(self, two_point_catalog):
        tracker = ArrivalTracker(two_point_catalog, arrival_radius=1000)
        tracker.on_location_update(AT_P1)
        for bad in (None, Location(120.0, 35.0), Location(32.0, None)):
            with pytest.raises(InvalidInput):
                tracker.on_location_update(bad)
        assert tracker.inside == {"P1"}
        assert tracker.on_location_update(AT_P1) == []

    def test_empty_catalog(self):
        tracker = ArrivalTracker(Catalog(), arrival_radius=1000)
        assert tracker.on_location_update(AT_P1) == []

    def test_bad_radius(self, two_point_catalog):
        with pytest.raises(InvalidInput):
            ArrivalTracker(two_point_catalog, arrival_radius=0)


class TestPrefilter:
    def test_prefiltered_matches_full_scan(self, grid_catalog):
        full = ArrivalTracker(grid_catalog, arrival_radius=600)
        fast = ArrivalTracker(grid_catalog, arrival_radius=600,
                              engine=ProximityEngine(grid_catalog), prefilter_radius=2000)
        path = [Location(31.98 + i * 0.002, 34.99 + i * 0.001) for i in range(25)]
        for location in path:
            assert ids(full.on_location_update(location)) == ids(fast.on_location_update(location))
            assert full.inside == fast.inside

    def test_prefilter_not_below_arrival_radius(self, grid_catalog):
        with pytest.raises(InvalidInput):
            ArrivalTracker(grid_catalog, arrival_radius=1000,
                           engine=ProximityEngine(grid_catalog), prefilter_radius=500)
