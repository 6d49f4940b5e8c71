"""Deep links into external navigation apps."""

import webbrowser
from urllib.parse import quote

WAZE_STORE_URL = "https://waze.com/get"


def waze_url(lat: float, lon: float, navigate: bool = True) -> str:
    return f"waze://?ll={lat},{lon}&navigate={'yes' if navigate else 'no'}"


def waze_search_url(query: str) -> str:
    return f"waze://?q={quote(query, safe='')}"


def google_maps_url(lat: float, lon: float) -> str:
    return f"https://maps.google.com/?q={lat},{lon}"


def open_navigation(point, prefer: str = "waze", navigate: bool = True) -> bool:
    """Open navigation to a point, falling back to Google Maps.

    Returns True if some handler accepted a URL.
    """
    urls = []
    if prefer == "waze":
        urls.append(waze_url(point.lat, point.lon, navigate))
    urls.append(google_maps_url(point.lat, point.lon))

    for url in urls:
        try:
            if webbrowser.open(url):
                return True
        except webbrowser.Error as e:
            print(f"Could not open {url}: {e}")
    return False
