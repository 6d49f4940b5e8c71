"""Audio Guide - nearby points of interest with narration."""

from .config import CONFIG, CATEGORIES, category_info
from .errors import GuideError, InvalidInput, CatalogError, TraceError
from .models import Location, Point, ArrivalEvent, CategoryInfo
from .logger import Logger
from .geo import (
    haversine_distance,
    distance_meters,
    validate_location,
)
from .catalog import Catalog, CategoryIndex, load_catalog
from .geojson import parse_geojson, determine_category
from .proximity import ProximityEngine
from .arrival import ArrivalTracker
from .store import PointStore
from .gps import GPS, FixedLocation, LocationSource, TraceRecorder, TracePlayback
from .audio import Audio, ArrivalNotifier
from .narration import NarrationCache
from .navigation import waze_url, waze_search_url, google_maps_url, open_navigation
from .osm import OSMFetcher
from .app import Guide
from .__main__ import main

__all__ = [
    "CONFIG",
    "CATEGORIES",
    "category_info",
    "GuideError",
    "InvalidInput",
    "CatalogError",
    "TraceError",
    "Location",
    "Point",
    "ArrivalEvent",
    "CategoryInfo",
    "Logger",
    "haversine_distance",
    "distance_meters",
    "validate_location",
    "Catalog",
    "CategoryIndex",
    "load_catalog",
    "parse_geojson",
    "determine_category",
    "ProximityEngine",
    "ArrivalTracker",
    "PointStore",
    "GPS",
    "FixedLocation",
    "LocationSource",
    "TraceRecorder",
    "TracePlayback",
    "Audio",
    "ArrivalNotifier",
    "NarrationCache",
    "waze_url",
    "waze_search_url",
    "google_maps_url",
    "open_navigation",
    "OSMFetcher",
    "Guide",
    "main",
]
