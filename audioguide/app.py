"""Main audio guide session."""

import time
from typing import Optional

from .arrival import ArrivalTracker
from .audio import Audio, ArrivalNotifier
from .catalog import Catalog
from .config import CONFIG
from .errors import InvalidInput
from .geo import distance_meters
from .gps import GPS, LocationSource, TracePlayback
from .logger import Logger
from .models import ArrivalEvent, Location, Point
from .narration import NarrationCache
from .proximity import ProximityEngine


class Guide:
    """Tracking session: location updates -> nearby list and arrivals"""

    def __init__(self, catalog: Catalog, gps_source: Optional[LocationSource] = None,
                 logger: Optional[Logger] = None, audio: Optional[Audio] = None,
                 store=None, category: Optional[str] = None,
                 radius: Optional[float] = None,
                 arrival_radius: Optional[float] = None,
                 narration: Optional[NarrationCache] = None):
        self.catalog = catalog
        self.gps_source = gps_source or GPS()
        self.logger = logger or Logger()
        self.audio = audio or Audio()
        self.store = store
        self.category = category
        self.radius = radius or CONFIG["search_radius"]

        self.engine = ProximityEngine(catalog)
        self.tracker = ArrivalTracker(catalog, arrival_radius=arrival_radius, engine=self.engine)
        self.notifier = ArrivalNotifier(self.audio, self.logger, store, narration=narration)

        self.current_location: Optional[Location] = None
        self.query_origin: Optional[Location] = None
        self.nearby: list[Point] = []
        self.arrivals: list[ArrivalEvent] = []
        self.start_time = 0.0

    def get_state(self) -> dict:
        """Get current state as dict for logging"""
        state = {
            "points": len(self.catalog),
            "nearby": len(self.nearby),
            "inside": sorted(self.tracker.inside),
            "arrivals": len(self.arrivals),
            "gps_status": self.gps_source.get_status(),
        }
        if self.current_location:
            state["location"] = {
                "lat": self.current_location.lat,
                "lon": self.current_location.lon,
                "accuracy": self.current_location.accuracy
            }
        return state

    def set_category(self, category: Optional[str]):
        """Change the list filter and refresh immediately"""
        self.category = category
        if self.current_location:
            self.refresh_nearby(self.current_location)

    def refresh_nearby(self, location: Location) -> list[Point]:
        self.nearby = self.engine.query_nearby(location, self.radius, self.category)
        self.query_origin = location
        self.logger.log("Nearby points updated", {
            "count": len(self.nearby),
            "radius": self.radius,
            "category": self.category,
        })
        return self.nearby

    def _needs_requery(self, location: Location) -> bool:
        if self.query_origin is None:
            return True
        return distance_meters(self.query_origin, location) > CONFIG["min_requery_distance"]

    def handle_location(self, location: Location) -> list[ArrivalEvent]:
        """Process one location snapshot; returns new arrivals"""
        events = self.tracker.on_location_update(location)
        self.current_location = location

        if self._needs_requery(location):
            self.refresh_nearby(location)

        for event in events:
            dist = distance_meters(location, event.point) if event.point else None
            self.notifier.notify(event, dist)
        self.arrivals.extend(events)
        return events

    def update(self) -> bool:
        """Poll the location source once. Returns False to stop."""
        location = self.gps_source.get_location()
        if location is None:
            return True

        try:
            self.handle_location(location)
        except InvalidInput as e:
            self.logger.log("Location rejected", {"error": str(e)})
        return True

    def stop(self):
        """End tracking; arrivals re-fire on the next session"""
        self.tracker.reset()
        self.query_origin = None

    def run(self, max_updates: Optional[int] = None):
        """Run the tracking loop until interrupted or playback ends"""
        print("\n=== Audio Guide ===")
        print(f"{len(self.catalog)} points loaded, arrival radius {self.tracker.arrival_radius:.0f}m")
        if isinstance(self.gps_source, TracePlayback):
            print(f"Playback mode: {self.gps_source.speed}x speed")
        print("Press Ctrl+C to stop\n")

        self.start_time = time.time()
        self.logger.log("Tracking started", {"points": len(self.catalog)})
        updates = 0
        try:
            while self.update():
                updates += 1
                if self.gps_source.is_finished():
                    print("\nPlayback finished")
                    self.logger.log("Playback finished")
                    break
                if max_updates is not None and updates >= max_updates:
                    break
                time.sleep(self.gps_source.poll_interval())
        except KeyboardInterrupt:
            print("\nTracking interrupted")
            self.logger.log("Tracking interrupted by user")
        finally:
            self.gps_source.close()

            summary = {
                "arrivals": len(self.arrivals),
                "points_visited": len({e.point_id for e in self.arrivals}),
                "duration": time.time() - self.start_time,
            }
            self.logger.log("Session summary", summary)
            self.stop()
