"""Location sources for the tracking loop.

Every source answers ``get_location()`` with a Location snapshot, or None
when it has nothing new to report. The Guide also asks each source for its
status line, the delay before the next poll, whether it has run out, and
closes it when the session ends, so it never needs to know which kind of
source it is driving.
"""

import json
import subprocess
import time
from datetime import datetime
from typing import Iterable, Optional

from .config import CONFIG
from .errors import InvalidInput, TraceError
from .geo import distance_meters
from .models import Location


class LocationSource:
    """Base class; subclasses provide get_location"""

    def get_location(self) -> Optional[Location]:
        raise NotImplementedError

    def get_status(self) -> str:
        return "unknown"

    def poll_interval(self) -> float:
        return CONFIG["gps_poll_interval"]

    def is_finished(self) -> bool:
        return False

    def close(self):
        pass


def location_from_termux(data: dict) -> Location:
    """Build a Location from termux-location JSON output"""
    accuracy = data.get("accuracy")
    return Location(
        lat=float(data["latitude"]),
        lon=float(data["longitude"]),
        accuracy=None if accuracy is None else float(accuracy),
        timestamp=time.time(),
    )


class GPS(LocationSource):
    """Live fixes from termux-location.

    Fixes less accurate than ``max_fix_accuracy`` are dropped, and a fix
    closer than ``min_update_distance`` to the last reported one is not
    reported again.
    """

    COMMAND = ["termux-location", "-p", "gps", "-r", "once"]

    def __init__(self, timeout: int = 30):
        self.timeout = timeout
        self.last_location: Optional[Location] = None
        self.failures = 0
        self.weak_fixes = 0

    def _read_fix(self) -> Optional[Location]:
        try:
            result = subprocess.run(self.COMMAND, capture_output=True, text=True,
                                    timeout=self.timeout)
        except (subprocess.TimeoutExpired, FileNotFoundError):
            return None
        if result.returncode != 0 or not (result.stdout or "").strip():
            return None
        try:
            return location_from_termux(json.loads(result.stdout))
        except (json.JSONDecodeError, KeyError, TypeError, ValueError):
            return None

    def get_location(self) -> Optional[Location]:
        location = self._read_fix()
        if location is None:
            self.failures += 1
            return None
        self.failures = 0

        if location.accuracy is not None and location.accuracy > CONFIG["max_fix_accuracy"]:
            self.weak_fixes += 1
            return None
        self.weak_fixes = 0

        if (self.last_location is not None and
                distance_meters(self.last_location, location) < CONFIG["min_update_distance"]):
            return None
        self.last_location = location
        return location

    def get_status(self) -> str:
        if self.failures:
            return f"GPS: no fix ({self.failures} attempts)"
        if self.weak_fixes:
            return f"GPS: weak fix ({self.weak_fixes} in a row)"
        if self.last_location is None:
            return "GPS: waiting for fix"
        if self.last_location.accuracy is None:
            return "GPS fix"
        return f"GPS fix ±{self.last_location.accuracy:.0f} m"


class FixedLocation(LocationSource):
    """Always reports the same position (--lat/--lon without GPS)"""

    def __init__(self, lat: float, lon: float):
        self.lat = lat
        self.lon = lon

    def get_location(self) -> Optional[Location]:
        return Location(lat=self.lat, lon=self.lon, timestamp=time.time())

    def get_status(self) -> str:
        return f"Fixed location ({self.lat:.5f}, {self.lon:.5f})"


class TraceRecorder(LocationSource):
    """Wraps another source and writes what it reports to a trace file on close.

    Trace format::

        {"recorded_at": "...", "snapshots": [{"t": 0.0, "location": {...}}, ...]}

    ``t`` is seconds since recording started; ``location`` is null for a
    poll that produced nothing.
    """

    def __init__(self, source: LocationSource, path: str):
        self.source = source
        self.path = path
        self.snapshots: list[dict] = []
        self.start_time = time.time()

    def get_location(self) -> Optional[Location]:
        location = self.source.get_location()
        self.snapshots.append({
            "t": round(time.time() - self.start_time, 3),
            "location": location.to_dict() if location else None,
        })
        return location

    def get_status(self) -> str:
        return self.source.get_status()

    def poll_interval(self) -> float:
        return self.source.poll_interval()

    def is_finished(self) -> bool:
        return self.source.is_finished()

    def close(self):
        self.source.close()
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump({
                "recorded_at": datetime.now().isoformat(timespec="seconds"),
                "snapshots": self.snapshots,
            }, f, indent=2)
        print(f"Trace saved to {self.path} ({len(self.snapshots)} snapshots)")


class TracePlayback(LocationSource):
    """Replays Location snapshots with their original spacing.

    The wait before the next snapshot is the recorded gap divided by
    ``speed``, capped at ``playback_max_interval`` so long pauses in a
    recording do not stall a replay.
    """

    def __init__(self, snapshots: list[tuple[float, Optional[Location]]], speed: float = 1.0):
        if not speed > 0:
            raise InvalidInput(f"playback speed must be positive, got {speed!r}")
        self.snapshots = snapshots
        self.speed = speed
        self.index = 0
        self.missed = 0

    @classmethod
    def load(cls, path: str, speed: float = 1.0) -> "TracePlayback":
        """Read a trace written by TraceRecorder"""
        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
            snapshots = [
                (float(s["t"]), Location.from_dict(s["location"]) if s.get("location") else None)
                for s in data["snapshots"]
            ]
        except (OSError, json.JSONDecodeError) as e:
            raise TraceError(f"cannot read trace {path}: {e}") from e
        except (KeyError, TypeError, ValueError) as e:
            raise TraceError(f"malformed trace {path}: {e}") from e
        print(f"Loaded trace {path} ({len(snapshots)} snapshots)")
        return cls(snapshots, speed)

    @classmethod
    def from_locations(cls, locations: Iterable[Location], speed: float = 1.0) -> "TracePlayback":
        """Replay locations spaced by their own timestamps.

        A location without a timestamp follows the previous one after
        one regular poll interval.
        """
        snapshots = []
        first_ts = None
        t = 0.0
        for location in locations:
            if location.timestamp is not None and first_ts is None:
                first_ts = location.timestamp - t
            if location.timestamp is not None:
                t = location.timestamp - first_ts
            elif snapshots:
                t += CONFIG["gps_poll_interval"]
            snapshots.append((t, location))
        return cls(snapshots, speed)

    def get_location(self) -> Optional[Location]:
        if self.is_finished():
            return None
        _, location = self.snapshots[self.index]
        self.index += 1
        if location is None:
            self.missed += 1
        return location

    def poll_interval(self) -> float:
        if self.index <= 0 or self.is_finished():
            return 0.0
        gap = self.snapshots[self.index][0] - self.snapshots[self.index - 1][0]
        return max(0.0, min(gap / self.speed, CONFIG["playback_max_interval"]))

    def is_finished(self) -> bool:
        return self.index >= len(self.snapshots)

    def get_status(self) -> str:
        status = f"Playback {self.index}/{len(self.snapshots)} at {self.speed:g}x"
        if self.missed:
            status += f", {self.missed} empty"
        return status
