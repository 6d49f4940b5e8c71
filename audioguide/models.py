"""Data classes for the audio guide."""

from dataclasses import dataclass, asdict
from typing import Optional


@dataclass
class Location:
    lat: float
    lon: float
    accuracy: Optional[float] = None
    timestamp: Optional[float] = None

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: dict) -> "Location":
        return cls(**d)


@dataclass(frozen=True)
class Point:
    """A point of interest with narration"""
    id: str
    name: str
    category: str
    lat: float
    lon: float
    narration: str  # asset reference, opaque to the engine
    description: str = ""

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: dict) -> "Point":
        return cls(
            id=str(d["id"]),
            name=d["name"],
            category=d["category"],
            lat=float(d["lat"]),
            lon=float(d["lon"]),
            narration=d.get("narration", ""),
            description=d.get("description", ""),
        )


@dataclass(frozen=True)
class ArrivalEvent:
    """User newly entered a point's arrival radius"""
    point_id: str
    timestamp: float
    point: Optional[Point] = None


@dataclass(frozen=True)
class CategoryInfo:
    tag: str
    display_name: str
    color: str
    narration: str  # default narration asset
