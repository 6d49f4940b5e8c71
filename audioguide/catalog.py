"""Point catalog and category index."""

import json
from pathlib import Path
from typing import Iterable, Iterator, Optional

from .config import CONFIG
from .errors import CatalogError
from .geo import is_valid_coordinate
from .geojson import parse_geojson
from .models import Point


class CategoryIndex:
    """Category tag -> points with that tag, in catalog order"""

    def __init__(self, points: Iterable[Point]):
        buckets: dict[str, list[Point]] = {}
        for point in points:
            buckets.setdefault(point.category, []).append(point)
        self._buckets: dict[str, tuple[Point, ...]] = {
            tag: tuple(members) for tag, members in buckets.items()
        }

    def bucket(self, tag: str) -> tuple[Point, ...]:
        """Points for a tag; empty for tags with no points"""
        return self._buckets.get(tag, ())

    def categories(self) -> list[str]:
        return sorted(self._buckets)

    def counts(self) -> dict[str, int]:
        return {tag: len(members) for tag, members in sorted(self._buckets.items())}

    def __contains__(self, tag: str) -> bool:
        return tag in self._buckets


class Catalog:
    """Immutable snapshot of all points plus their category index.

    Built once by an explicit loader and handed to the engine and tracker.
    A new catalog (and index) is built whenever the data changes.
    """

    def __init__(self, points: Iterable[Point] = ()):
        self._points: tuple[Point, ...] = tuple(points)
        self._by_id: dict[str, Point] = {}
        for point in self._points:
            if point.id in self._by_id:
                raise CatalogError(f"duplicate point id: {point.id}")
            self._by_id[point.id] = point
        self.index = CategoryIndex(self._points)

    @property
    def points(self) -> tuple[Point, ...]:
        return self._points

    def get(self, point_id: str) -> Optional[Point]:
        return self._by_id.get(str(point_id))

    def is_empty(self) -> bool:
        return not self._points

    def categories(self) -> list[str]:
        return self.index.categories()

    def search(self, query: str, limit: Optional[int] = None) -> list[Point]:
        """Case-insensitive substring match on name or category"""
        limit = CONFIG["search_limit"] if limit is None else limit
        term = query.strip().lower()
        if not term:
            return []
        matches = [
            p for p in self._points
            if term in p.name.lower() or term in p.category.lower()
        ]
        return matches[:limit]

    def __len__(self) -> int:
        return len(self._points)

    def __iter__(self) -> Iterator[Point]:
        return iter(self._points)


def points_from_records(records: list[dict]) -> list[Point]:
    """Build points from plain dict records, rejecting bad coordinates"""
    points = []
    for i, record in enumerate(records):
        try:
            point = Point.from_dict(record)
        except (KeyError, TypeError, ValueError) as e:
            raise CatalogError(f"bad point record #{i}: {e}") from e
        if not is_valid_coordinate(point.lat, point.lon):
            raise CatalogError(f"point {point.id} has out-of-range coordinates")
        points.append(point)
    return points


def load_catalog(path: str) -> Catalog:
    """Load a catalog from a JSON point list or a GeoJSON FeatureCollection"""
    try:
        with open(Path(path), encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise CatalogError(f"cannot read catalog {path}: {e}") from e

    if isinstance(data, dict) and data.get("type") == "FeatureCollection":
        return Catalog(parse_geojson(data))
    if isinstance(data, dict) and "points" in data:
        data = data["points"]
    if not isinstance(data, list):
        raise CatalogError(f"unrecognized catalog format in {path}")
    return Catalog(points_from_records(data))
