import json

import pytest

from audioguide.catalog import Catalog
from audioguide.logger import Logger
from audioguide.models import Point


def make_point(point_id, lat, lon, category="historical", name=None):
    return Point(
        id=point_id,
        name=name or f"Point {point_id}",
        category=category,
        lat=lat,
        lon=lon,
        narration=f"{category}.mp3",
    )


class FakeAudio:
    """Records what would have been spoken or played"""

    def __init__(self):
        self.spoken = []
        self.played = []

    def speak(self, text):
        self.spoken.append(text)

    def play(self, asset):
        self.played.append(asset)
        return True


@pytest.fixture
def p1():
    return make_point("P1", 32.0, 35.0, "historical", "Old Gate")


@pytest.fixture
def p2():
    return make_point("P2", 32.01, 35.0, "nature", "Spring Park")


@pytest.fixture
def two_point_catalog(p1, p2):
    return Catalog([p1, p2])


@pytest.fixture
def grid_catalog():
    """Points on a small lat/lon grid around (32, 35), mixed categories"""
    categories = ["historical", "religious", "nature", "culture"]
    points = []
    n = 0
    for i in range(-4, 5):
        for j in range(-4, 5):
            points.append(make_point(
                f"G{n:03d}", 32.0 + i * 0.004, 35.0 + j * 0.004, categories[n % len(categories)]
            ))
            n += 1
    return Catalog(points)


@pytest.fixture
def fake_audio():
    return FakeAudio()


@pytest.fixture
def quiet_logger():
    return Logger(echo=False)


@pytest.fixture
def write_trace(tmp_path):
    """Write a location trace from (lat, lon) pairs, one second apart, and return its path"""
    def _write(coords, name="trace.json"):
        snapshots = [
            {
                "t": float(i),
                "location": None if c is None else {
                    "lat": c[0], "lon": c[1], "accuracy": 5.0, "timestamp": 1000.0 + i
                },
            }
            for i, c in enumerate(coords)
        ]
        path = tmp_path / name
        path.write_text(json.dumps({"recorded_at": "2024-01-01T00:00:00", "snapshots": snapshots}))
        return str(path)
    return _write
