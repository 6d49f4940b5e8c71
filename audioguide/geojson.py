"""Turn OSM-derived GeoJSON features into points of interest."""

from .config import category_info
from .geo import is_valid_coordinate
from .models import Point

TITLE_FIELDS = ["name:en", "name:ru", "name", "name:he", "title", "@id"]
DESCRIPTION_FIELDS = ["description", "description:ru", "description:en", "addr:city", "tourism"]
UNKNOWN_TITLE = "Unknown place"

RELIGIOUS_BUILDINGS = {"church", "synagogue", "mosque", "cathedral"}
NATURE_LEISURE = {"nature_reserve", "park"}
CHILDREN_AMENITIES = {"kindergarten", "school"}
CULTURE_AMENITIES = {"theatre", "arts_centre", "cinema", "library"}
CULTURE_TOURISM = {"museum", "gallery"}


def _first_string(properties: dict, fields: list[str]) -> str:
    for field in fields:
        value = properties.get(field)
        if value and isinstance(value, str):
            return value
    return ""


def extract_title(properties: dict) -> str:
    return _first_string(properties, TITLE_FIELDS) or UNKNOWN_TITLE


def extract_description(properties: dict) -> str:
    return _first_string(properties, DESCRIPTION_FIELDS)


def determine_category(properties: dict) -> str:
    """Pick a category tag from OSM properties.

    Rules are checked in priority order; the first match wins. Anything
    left over is an amenity.
    """
    p = properties
    if p.get("historic") or p.get("historic:civilization") or p.get("archaeological_site"):
        return "historical"

    if (p.get("religion") or p.get("amenity") == "place_of_worship"
            or p.get("building") in RELIGIOUS_BUILDINGS):
        return "religious"

    if (p.get("natural") or p.get("leisure") in NATURE_LEISURE
            or p.get("landuse") == "forest"):
        return "nature"

    if (p.get("leisure") == "playground" or p.get("amenity") in CHILDREN_AMENITIES
            or p.get("shop") == "toys"):
        return "children"

    if p.get("tourism") in CULTURE_TOURISM or p.get("amenity") in CULTURE_AMENITIES:
        return "culture"

    if (p.get("architecture")
            or (p.get("building") and (p.get("building:architecture") or p.get("architect")))
            or p.get("building") in {"castle", "tower"}):
        return "architecture"

    if p.get("tourism") or p.get("barrier") == "entrance":
        return "tourism"

    return "amenity"


def _feature_id(feature: dict, properties: dict, position: int) -> str:
    for value in (properties.get("@id"), feature.get("id"), properties.get("id")):
        if value not in (None, ""):
            return str(value)
    return f"geo-{position}"


def parse_geojson(data: dict) -> list[Point]:
    """Parse a FeatureCollection, keeping only Point features with properties"""
    points: list[Point] = []
    seen: set[str] = set()
    features = data.get("features") if isinstance(data, dict) else None
    if not features:
        return points

    for position, feature in enumerate(features):
        properties = feature.get("properties")
        geometry = feature.get("geometry")
        if not properties or not geometry or geometry.get("type") != "Point":
            continue
        coords = geometry.get("coordinates")
        if not coords or len(coords) < 2:
            continue

        lon, lat = coords[0], coords[1]
        if not is_valid_coordinate(lat, lon):
            continue

        point_id = _feature_id(feature, properties, position)
        if point_id in seen:
            continue
        seen.add(point_id)

        category = determine_category(properties)
        points.append(Point(
            id=point_id,
            name=extract_title(properties),
            category=category,
            lat=float(lat),
            lon=float(lon),
            narration=category_info(category).narration,
            description=extract_description(properties),
        ))

    return points


def category_statistics(points: list[Point]) -> dict[str, int]:
    stats: dict[str, int] = {}
    for point in points:
        stats[point.category] = stats.get(point.category, 0) + 1
    return stats
