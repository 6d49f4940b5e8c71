"""Point-of-interest fetching via Overpass API with disk caching."""

import hashlib
import json
import os
import time

import requests

from .geo import haversine_distance

POI_TAGS = ["historic", "tourism", "religion", "natural", "leisure", "amenity"]


def elements_to_geojson(data: dict) -> dict:
    """Convert Overpass JSON nodes with tags into a GeoJSON FeatureCollection"""
    features = []
    for element in data.get("elements", []):
        if element.get("type") != "node" or "lat" not in element or "lon" not in element:
            continue
        tags = element.get("tags")
        if not tags:
            continue
        properties = dict(tags)
        properties["@id"] = f"node/{element['id']}"
        features.append({
            "type": "Feature",
            "properties": properties,
            "geometry": {"type": "Point", "coordinates": [element["lon"], element["lat"]]},
        })
    return {"type": "FeatureCollection", "features": features}


class OSMFetcher:
    """Fetch tagged points of interest from OpenStreetMap via Overpass API"""

    OVERPASS_URL = "https://overpass-api.de/api/interpreter"
    CACHE_DIR = "osm_cache"
    CACHE_MAX_AGE = 7 * 24 * 3600  # 7 days

    @classmethod
    def _cache_path(cls, lat: float, lon: float, radius: float) -> str:
        """Generate a cache file path for the given query parameters."""
        key = f"{lat:.5f},{lon:.5f},{radius:.0f}"
        h = hashlib.md5(key.encode()).hexdigest()[:12]
        return os.path.join(cls.CACHE_DIR, f"poi_{h}.json")

    @classmethod
    def _find_covering_cache(cls, lat: float, lon: float, radius: float) -> dict | None:
        """Find a cached response that covers the requested area.

        A cache entry covers the request if the requested circle fits
        inside the cached circle.
        """
        if not os.path.isdir(cls.CACHE_DIR):
            return None
        now = time.time()
        for fname in os.listdir(cls.CACHE_DIR):
            if not fname.endswith(".json"):
                continue
            fpath = os.path.join(cls.CACHE_DIR, fname)
            try:
                age = now - os.path.getmtime(fpath)
                if age > cls.CACHE_MAX_AGE:
                    continue
                with open(fpath) as f:
                    cached = json.load(f)
                meta = cached.get("_cache_meta")
                if not meta:
                    continue
                dist = haversine_distance(lat, lon, meta["lat"], meta["lon"])
                if meta["radius"] >= dist + radius:
                    print(f"Using cached OSM data ({meta['radius']:.0f}m radius from {age/3600:.1f}h ago)")
                    return cached
            except (json.JSONDecodeError, KeyError, OSError):
                continue
        return None

    @classmethod
    def build_query(cls, lat: float, lon: float, radius: float, timeout: int) -> str:
        clauses = "\n".join(
            f'  node["{tag}"]["name"](around:{radius:.0f},{lat},{lon});' for tag in POI_TAGS
        )
        return f"[out:json][timeout:{timeout}];\n(\n{clauses}\n);\nout body;\n"

    @classmethod
    def fetch_points(cls, lat: float, lon: float, radius: float) -> dict:
        """Fetch named, tagged nodes within radius as a GeoJSON FeatureCollection.

        Uses disk cache to avoid repeated Overpass API requests. Returns an
        empty collection if the request fails.
        """
        cached = cls._find_covering_cache(lat, lon, radius)
        if cached:
            return {k: v for k, v in cached.items() if k != "_cache_meta"}

        timeout = max(30, int(radius / 50))
        query = cls.build_query(lat, lon, radius, timeout)

        print(f"Fetching points of interest around ({lat:.5f}, {lon:.5f}), radius {radius:.0f}m...")

        try:
            response = requests.post(cls.OVERPASS_URL, data={"data": query}, timeout=timeout + 30)
            response.raise_for_status()
            collection = elements_to_geojson(response.json())
        except (requests.RequestException, ValueError) as e:
            print(f"OSM fetch error: {e}")
            return {"type": "FeatureCollection", "features": []}

        if collection["features"]:
            os.makedirs(cls.CACHE_DIR, exist_ok=True)
            cache_data = dict(collection)
            cache_data["_cache_meta"] = {
                "lat": lat, "lon": lon, "radius": radius,
                "fetched_at": time.time(),
            }
            cache_path = cls._cache_path(lat, lon, radius)
            with open(cache_path, "w") as f:
                json.dump(cache_data, f)
            print(f"Cached OSM data to {cache_path}")

        return collection
