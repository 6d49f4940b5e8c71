"""Arrival detection: one event per continuous stay inside a point's radius."""

import time
from typing import Optional

from .catalog import Catalog
from .config import CONFIG
from .errors import InvalidInput
from .geo import haversine_distance, validate_location
from .models import ArrivalEvent
from .proximity import ProximityEngine


class ArrivalTracker:
    """Per-point OUTSIDE/INSIDE state driven by location updates.

    A point id is in `inside` iff the last accepted location was within
    `arrival_radius` of it. Not thread-safe; one owner feeds updates.
    """

    def __init__(self, catalog: Catalog, arrival_radius: Optional[float] = None,
                 engine: Optional[ProximityEngine] = None,
                 prefilter_radius: Optional[float] = None):
        self.catalog = catalog
        self.arrival_radius = CONFIG["arrival_radius"] if arrival_radius is None else arrival_radius
        if not self.arrival_radius > 0:
            raise InvalidInput(f"arrival radius must be positive, got {self.arrival_radius!r}")

        self.engine = engine
        if engine is not None:
            if prefilter_radius is None:
                prefilter_radius = max(CONFIG["arrival_prefilter_radius"], self.arrival_radius)
            if prefilter_radius < self.arrival_radius:
                raise InvalidInput("prefilter radius must not be smaller than the arrival radius")
        self.prefilter_radius = prefilter_radius

        self._inside: set[str] = set()

    @property
    def inside(self) -> frozenset:
        return frozenset(self._inside)

    def is_inside(self, point_id: str) -> bool:
        return point_id in self._inside

    def _candidates(self, location):
        if self.engine is None:
            return self.catalog.points
        # Coarse pass; no cap so nothing inside the arrival radius is dropped
        return [p for p, _ in self.engine.query_nearby_with_distance(
            location, self.prefilter_radius, max_results=max(len(self.catalog), 1))]

    def on_location_update(self, location) -> list[ArrivalEvent]:
        """Feed one location; return arrivals that fired on this update.

        Raises InvalidInput (leaving state untouched) for a missing or
        out-of-range location.
        """
        validate_location(location)

        now_inside: dict[str, float] = {}
        for point in self._candidates(location):
            dist = haversine_distance(location.lat, location.lon, point.lat, point.lon)
            if dist <= self.arrival_radius:
                now_inside[point.id] = dist

        entered = sorted(
            (pid for pid in now_inside if pid not in self._inside),
            key=lambda pid: (now_inside[pid], pid),
        )
        # Whole-state swap: points that left are re-armed
        self._inside = set(now_inside)

        timestamp = location.timestamp if getattr(location, "timestamp", None) is not None else time.time()
        return [
            ArrivalEvent(point_id=pid, timestamp=timestamp, point=self.catalog.get(pid))
            for pid in entered
        ]

    def reset(self):
        """Forget all arrivals (tracking restarted)"""
        self._inside.clear()
