"""Coordinate and captured position values for the CabDispatch application."""

import json
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Dict, Any

from cabdispatch.models.timestamps import as_utc, parse_timestamp, utcnow


@dataclass(frozen=True)
class Coordinate:
    """
    A point on the globe.

    Attributes:
        latitude: Latitude in degrees
        longitude: Longitude in degrees
    """
    latitude: float
    longitude: float

    def to_dict(self) -> Dict[str, float]:
        return {"lat": self.latitude, "lng": self.longitude}

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional["Coordinate"]:
        """Build a coordinate from a ``{"lat", "lng"}`` mapping, or None if incomplete."""
        if not data:
            return None
        lat = data.get("lat", data.get("latitude"))
        lng = data.get("lng", data.get("longitude"))
        if lat is None or lng is None:
            return None
        return cls(float(lat), float(lng))


@dataclass(frozen=True)
class Position:
    """
    A coordinate captured by a device at a given moment.

    Attributes:
        coordinate: Where the device was
        captured_at: When the fix was taken
    """
    coordinate: Coordinate
    captured_at: datetime

    def __post_init__(self):
        object.__setattr__(self, "captured_at", as_utc(self.captured_at))

    @classmethod
    def at(cls, latitude: float, longitude: float, captured_at: Optional[datetime] = None) -> "Position":
        return cls(Coordinate(latitude, longitude), captured_at or utcnow())

    def to_dict(self) -> Dict[str, Any]:
        data = self.coordinate.to_dict()
        data["timestamp"] = self.captured_at.isoformat()
        return data

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional["Position"]:
        coordinate = Coordinate.from_dict(data)
        if coordinate is None:
            return None
        captured_at = parse_timestamp(data.get("timestamp")) or utcnow()
        return cls(coordinate, captured_at)


def parse_location(location_str: Optional[str]) -> Optional[Coordinate]:
    """
    Parse a GPS fix stored as a JSON string.

    Args:
        location_str: JSON text such as ``{"lat": 40.7, "lng": -74.0, "timestamp": "..."}``

    Returns:
        Coordinate or None if the string is empty or malformed
    """
    if not location_str:
        return None

    try:
        parsed = json.loads(location_str)
    except (json.JSONDecodeError, TypeError):
        return None

    if not isinstance(parsed, dict):
        return None

    try:
        return Coordinate.from_dict(parsed)
    except (TypeError, ValueError):
        return None


def parse_address_coordinates(address: Optional[str]) -> Optional[Coordinate]:
    """
    Extract coordinates appended to an address as ``"<text>|<lat>,<lng>"``.

    Geocoded addresses arrive in this form from the booking forms.
    """
    if not address or "|" not in address:
        return None

    coords = address.split("|", 1)[1].split(",")
    if len(coords) != 2:
        return None

    try:
        return Coordinate(float(coords[0]), float(coords[1]))
    except ValueError:
        return None


def strip_address_coordinates(address: Optional[str]) -> Optional[str]:
    """Return the human-readable part of an address, without appended coordinates."""
    if address is None:
        return None
    return address.split("|", 1)[0].strip()
