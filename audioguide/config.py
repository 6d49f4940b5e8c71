"""Configuration settings for the audio guide."""

from .models import CategoryInfo

CONFIG = {
    "gps_poll_interval": 5,  # seconds
    "max_fix_accuracy": 100,  # meters - coarser GPS fixes are dropped
    "min_update_distance": 10,  # meters moved before a new GPS fix is reported
    "playback_max_interval": 5.0,  # seconds - cap on waits between replayed snapshots
    # Radii used at different call sites; none of them is canonical
    "search_radius": 1000,  # meters - home screen list
    "nearby_radius": 10000,  # meters - default nearby query
    "arrival_radius": 1000,  # meters - "you are near X" trigger
    "arrival_prefilter_radius": 15000,  # meters - coarse query before arrival checks
    "max_results": 50,  # cap for unfiltered nearby queries
    "max_results_category": 30,  # cap when a category filter is set
    "min_requery_distance": 50,  # meters moved before the nearby list is refreshed
    "search_limit": 20,  # max results for text search
    "osm_fetch_radius": 5000,  # meters - area to fetch from Overpass
    "store_batch_size": 500,  # rows per executemany batch
    "narration_base_url": None,  # cloud folder holding narration files; None = local only
    "narration_local_dir": "audio",  # bundled narration files
    "narration_cache_max_bytes": 100 * 1024 * 1024,  # downloaded narration kept on disk
    "narration_timeout": 30,  # seconds per download
}

# Single source for category display name, marker color and default narration
CATEGORIES: dict[str, CategoryInfo] = {
    info.tag: info
    for info in (
        CategoryInfo("historical", "Historical", "#4ECDC4", "historical_center.mp3"),
        CategoryInfo("religious", "Religious", "#45B7D1", "cathedral.mp3"),
        CategoryInfo("children", "Children", "#96CEB4", "children_park.mp3"),
        CategoryInfo("nature", "Nature", "#FFEAA7", "nature_reserve.mp3"),
        CategoryInfo("culture", "Culture", "#C39BD3", "culture.mp3"),
        CategoryInfo("tourism", "Tourism", "#F7DC6F", "tourism.mp3"),
        CategoryInfo("architecture", "Architecture", "#E59866", "architecture.mp3"),
        CategoryInfo("amenity", "Amenity", "#AEB6BF", "amenity.mp3"),
        CategoryInfo("leisure", "Leisure", "#82E0AA", "leisure.mp3"),
        CategoryInfo("unknown", "Unknown", "#DDA0DD", "default.mp3"),
    )
}


def category_info(tag: str) -> CategoryInfo:
    """Look up a category row, falling back to 'unknown'"""
    return CATEGORIES.get(tag, CATEGORIES["unknown"])
