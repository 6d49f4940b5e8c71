"""Nearby point queries: radius filter, nearest-first ranking, result cap."""

from numbers import Real
from typing import Optional

from .catalog import Catalog
from .config import CONFIG
from .errors import InvalidInput
from .geo import distance_meters, haversine_distance, validate_location
from .models import Point

__all__ = ["ProximityEngine", "distance_meters"]


def _validate_query(radius_meters, max_results) -> None:
    if isinstance(radius_meters, bool) or not isinstance(radius_meters, Real) or not radius_meters > 0:
        raise InvalidInput(f"radius must be a positive number, got {radius_meters!r}")
    if isinstance(max_results, bool) or not isinstance(max_results, int) or max_results <= 0:
        raise InvalidInput(f"max_results must be a positive integer, got {max_results!r}")


class ProximityEngine:
    """Answers "which points are within R of L", nearest first"""

    def __init__(self, catalog: Catalog):
        self.catalog = catalog

    def _candidates(self, category: Optional[str]):
        if category is None:
            return self.catalog.points
        return self.catalog.index.bucket(category)

    def query_nearby_with_distance(self, location, radius_meters: float,
                                   category: Optional[str] = None,
                                   max_results: Optional[int] = None) -> list[tuple[Point, float]]:
        """Like query_nearby, but keeps each point's distance in meters"""
        if max_results is None:
            max_results = CONFIG["max_results"] if category is None else CONFIG["max_results_category"]
        validate_location(location)
        _validate_query(radius_meters, max_results)

        matches = []
        for point in self._candidates(category):
            if point.lat == location.lat and point.lon == location.lon:
                dist = 0.0
            else:
                dist = haversine_distance(location.lat, location.lon, point.lat, point.lon)
            if dist <= radius_meters:
                matches.append((point, dist))

        # id breaks distance ties so output is reproducible
        matches.sort(key=lambda pair: (pair[1], pair[0].id))
        return matches[:max_results]

    def query_nearby(self, location, radius_meters: float,
                     category: Optional[str] = None,
                     max_results: Optional[int] = None) -> list[Point]:
        """Points within radius_meters of location, nearest first.

        Args:
            location: Anything with lat/lon (normally a Location)
            radius_meters: Positive search radius
            category: Restrict to this category tag; None means all
            max_results: Result cap; defaults depend on whether a category is set

        Returns:
            Ordered list of points, empty when nothing qualifies

        Raises:
            InvalidInput: location, radius or cap out of range
        """
        return [point for point, _ in self.query_nearby_with_distance(
            location, radius_meters, category, max_results)]

    @staticmethod
    def distance_meters(a, b) -> float:
        return distance_meters(a, b)
