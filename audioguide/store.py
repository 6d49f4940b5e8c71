"""Local SQLite store for points of interest and arrival history."""

import sqlite3
from datetime import datetime, timezone
from typing import Iterable, Optional

from .catalog import Catalog
from .config import CONFIG
from .models import ArrivalEvent, Point


class PointStore:
    """SQLite database holding the point catalog and arrivals"""

    def __init__(self, db_path: str = "audioguide.db"):
        self.conn = sqlite3.connect(db_path, check_same_thread=False)
        self._init_schema()

    def _init_schema(self):
        """Create database tables"""
        self.conn.execute("""
            CREATE TABLE IF NOT EXISTS points_of_interest (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL,
                description TEXT NOT NULL DEFAULT '',
                lat REAL NOT NULL,
                lon REAL NOT NULL,
                category TEXT NOT NULL,
                narration TEXT NOT NULL
            )
        """)
        self.conn.execute(
            "CREATE INDEX IF NOT EXISTS idx_category ON points_of_interest(category)"
        )
        self.conn.execute(
            "CREATE INDEX IF NOT EXISTS idx_location ON points_of_interest(lat, lon)"
        )
        self.conn.execute("""
            CREATE TABLE IF NOT EXISTS arrivals (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                point_id TEXT NOT NULL,
                arrived_at TEXT NOT NULL
            )
        """)
        self.conn.commit()

    def replace_points(self, points: Iterable[Point], batch_size: Optional[int] = None) -> int:
        """Replace the whole catalog in one transaction, inserting in batches.

        If any insert fails the previous catalog is kept. Returns the number
        of points written.
        """
        batch_size = batch_size or CONFIG["store_batch_size"]
        points = list(points)
        with self.conn:
            self.conn.execute("DELETE FROM points_of_interest")
            for start in range(0, len(points), batch_size):
                batch = points[start:start + batch_size]
                self.conn.executemany(
                    "INSERT INTO points_of_interest (id, name, description, lat, lon, category, narration) "
                    "VALUES (?, ?, ?, ?, ?, ?, ?)",
                    [(p.id, p.name, p.description, p.lat, p.lon, p.category, p.narration) for p in batch]
                )
        return len(points)

    def count(self) -> int:
        cursor = self.conn.execute("SELECT COUNT(*) FROM points_of_interest")
        return cursor.fetchone()[0]

    def load_catalog(self) -> Catalog:
        """Read every point and build a catalog snapshot"""
        cursor = self.conn.execute(
            "SELECT id, name, description, lat, lon, category, narration "
            "FROM points_of_interest ORDER BY id"
        )
        points = [
            Point(id=row[0], name=row[1], description=row[2], lat=row[3], lon=row[4],
                  category=row[5], narration=row[6])
            for row in cursor.fetchall()
        ]
        return Catalog(points)

    def record_arrival(self, event: ArrivalEvent):
        """Record that the user arrived at a point"""
        arrived_at = datetime.fromtimestamp(event.timestamp, tz=timezone.utc).isoformat()
        self.conn.execute(
            "INSERT INTO arrivals (point_id, arrived_at) VALUES (?, ?)",
            (event.point_id, arrived_at)
        )
        self.conn.commit()

    def get_arrivals(self, point_id: Optional[str] = None) -> list[dict]:
        """Arrival history, oldest first, optionally for one point"""
        if point_id is None:
            cursor = self.conn.execute(
                "SELECT point_id, arrived_at FROM arrivals ORDER BY id"
            )
        else:
            cursor = self.conn.execute(
                "SELECT point_id, arrived_at FROM arrivals WHERE point_id = ? ORDER BY id",
                (point_id,)
            )
        return [{"point_id": row[0], "arrived_at": row[1]} for row in cursor.fetchall()]

    def close(self):
        self.conn.close()
