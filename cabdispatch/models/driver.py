"""Driver entity for the CabDispatch application."""

from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any

from cabdispatch.models.booking import Booking
from cabdispatch.models.location import Coordinate, parse_location


@dataclass
class Driver:
    """
    Represents a fleet member who can be assigned bookings.

    Attributes:
        id: Unique identifier for the driver
        first_name: Driver's first name
        last_name: Driver's last name
        is_active: Whether the driver is employed and enabled
        is_available: Whether the driver is free (not currently on a trip)
        location: Last known coordinates
        capacity: Passenger seats in the driver's vehicle, None when unknown
        vehicle_type: Vehicle class, e.g. "sedan" or "suv"
        rating: Average rating (0-5), if the driver has been rated
        total_rides: Completed ride count
        active_bookings: Bookings this driver currently holds
        version: Optimistic concurrency counter for the driver record
    """
    id: str
    first_name: str = ""
    last_name: str = ""
    is_active: bool = True
    is_available: bool = False
    location: Optional[Coordinate] = None
    capacity: Optional[int] = None
    vehicle_type: Optional[str] = None
    rating: Optional[float] = None
    total_rides: int = 0
    active_bookings: List[Booking] = field(default_factory=list)
    version: int = 0

    @property
    def full_name(self) -> str:
        """Get the driver's full name."""
        return f"{self.first_name} {self.last_name}".strip()

    @classmethod
    def from_dict(cls, data: Dict[str, Any], bookings: Optional[List[Booking]] = None) -> "Driver":
        """
        Build a driver from a directory document.

        ``current_location`` may be a mapping or the JSON string written by
        the driver app; unparseable values leave the location unknown.
        """
        raw_location = data.get("current_location")
        if isinstance(raw_location, str):
            location = parse_location(raw_location)
        else:
            location = Coordinate.from_dict(raw_location)

        rating = data.get("rating")
        return cls(
            id=data["id"],
            first_name=data.get("first_name", ""),
            last_name=data.get("last_name", ""),
            is_active=data.get("is_active", True),
            is_available=data.get("is_available", False),
            location=location,
            capacity=data.get("capacity"),
            vehicle_type=data.get("vehicle_type"),
            rating=float(rating) if rating is not None else None,
            total_rides=data.get("total_rides") or 0,
            active_bookings=[b for b in (bookings or []) if b.is_active],
            version=data.get("version") or 0,
        )
