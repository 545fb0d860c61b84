"""Booking entity for the CabDispatch application."""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Optional, Dict, Any, Tuple
from uuid import uuid4

from cabdispatch.models.location import Coordinate, Position
from cabdispatch.models.timestamps import as_utc, parse_timestamp


class BookingStatus(Enum):
    """Operational states of a booking, in lifecycle order."""
    PENDING = "pending"
    ASSIGNED = "assigned"
    ACCEPTED = "accepted"
    STARTED = "started"
    DRIVER_ON_DESTINATION = "driver_on_destination"
    PASSENGER_ON_BOARD = "passenger_on_board"
    ENDED = "ended"
    CANCELLED = "cancelled"


class ServiceType(Enum):
    """Kinds of engagement a passenger can book."""
    TRANSFER = "transfer"
    HOURLY = "hourly"


# Forward order; CANCELLED sits outside it.
LIFECYCLE_ORDER = (
    BookingStatus.PENDING,
    BookingStatus.ASSIGNED,
    BookingStatus.ACCEPTED,
    BookingStatus.STARTED,
    BookingStatus.DRIVER_ON_DESTINATION,
    BookingStatus.PASSENGER_ON_BOARD,
    BookingStatus.ENDED,
)

ACTIVE_STATUSES = frozenset({
    BookingStatus.ASSIGNED,
    BookingStatus.ACCEPTED,
    BookingStatus.STARTED,
    BookingStatus.DRIVER_ON_DESTINATION,
    BookingStatus.PASSENGER_ON_BOARD,
})

TERMINAL_STATUSES = frozenset({BookingStatus.ENDED, BookingStatus.CANCELLED})

# Status -> name of the stamp field written when the status is reached.
STAMP_FIELDS = {
    BookingStatus.ACCEPTED: "accepted",
    BookingStatus.STARTED: "started",
    BookingStatus.DRIVER_ON_DESTINATION: "driver_on_destination",
    BookingStatus.PASSENGER_ON_BOARD: "passenger_on_board",
    BookingStatus.ENDED: "ended",
}

# Storage keys follow the journey tracking columns (accepted_at/accepted_location, dod_at, ...).
_STAMP_KEYS = {
    "accepted": "accepted",
    "started": "started",
    "driver_on_destination": "dod",
    "passenger_on_board": "pob",
    "ended": "ended",
}


@dataclass(frozen=True)
class LifecycleStamp:
    """When a lifecycle step was reached and where the driver was."""
    at: datetime
    position: Position

    def __post_init__(self):
        object.__setattr__(self, "at", as_utc(self.at))


@dataclass
class Booking:
    """
    Represents a requested transfer or hourly engagement.

    Attributes:
        scheduled_at: Requested start of the trip (UTC)
        pickup_address: Pickup as text
        pickup: Pickup coordinates, if geocoded
        service_type: Transfer or hourly engagement
        destination_address: Destination as text (absent for hourly service)
        destination: Destination coordinates, if geocoded
        estimated_duration_minutes: Itinerary duration estimate for transfers
        requested_hours: Hour count for hourly service
        passenger_count: Seats required
        passenger_name: Name shown to dispatchers and in conflict warnings
        id: Unique identifier for the booking
        driver_id: Currently assigned driver
        status: Lifecycle status
        assigned_at: When the current driver was assigned
        accepted, started, driver_on_destination, passenger_on_board, ended:
            Lifecycle stamps, each set once the step is reached
        cancelled_at: When the booking was cancelled
        cancel_reason: Optional reason given on cancellation
        version: Optimistic concurrency counter, bumped on every write
    """
    scheduled_at: datetime
    pickup_address: str
    pickup: Optional[Coordinate] = None
    service_type: ServiceType = ServiceType.TRANSFER
    destination_address: Optional[str] = None
    destination: Optional[Coordinate] = None
    estimated_duration_minutes: Optional[int] = None
    requested_hours: Optional[int] = None
    passenger_count: int = 1
    passenger_name: Optional[str] = None
    id: str = field(default_factory=lambda: str(uuid4()))
    driver_id: Optional[str] = None
    status: BookingStatus = BookingStatus.PENDING
    assigned_at: Optional[datetime] = None
    accepted: Optional[LifecycleStamp] = None
    started: Optional[LifecycleStamp] = None
    driver_on_destination: Optional[LifecycleStamp] = None
    passenger_on_board: Optional[LifecycleStamp] = None
    ended: Optional[LifecycleStamp] = None
    cancelled_at: Optional[datetime] = None
    cancel_reason: Optional[str] = None
    version: int = 0

    def __post_init__(self):
        self.scheduled_at = as_utc(self.scheduled_at)
        self.assigned_at = as_utc(self.assigned_at)
        self.cancelled_at = as_utc(self.cancelled_at)

    @property
    def is_active(self) -> bool:
        """Whether the booking holds its driver (assigned but not ended or cancelled)."""
        return self.status in ACTIVE_STATUSES

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def stamp_for(self, status: BookingStatus) -> Optional[LifecycleStamp]:
        """Get the lifecycle stamp recorded for a status, if any."""
        name = STAMP_FIELDS.get(status)
        return getattr(self, name) if name else None

    def duration(self, default_buffer: timedelta, minimum: timedelta = timedelta(0)) -> timedelta:
        """
        How long the booking occupies its driver.

        Hourly bookings use the requested hours. Transfers use the estimated
        duration, or ``default_buffer`` when no estimate is known, never less
        than ``minimum``.
        """
        if self.service_type == ServiceType.HOURLY and self.requested_hours:
            return timedelta(hours=self.requested_hours)

        if self.estimated_duration_minutes and self.estimated_duration_minutes > 0:
            estimate = timedelta(minutes=self.estimated_duration_minutes)
        else:
            estimate = default_buffer
        return max(estimate, minimum)

    def time_window(self, default_buffer: timedelta,
                    minimum: timedelta = timedelta(0)) -> Tuple[datetime, datetime]:
        """Get the half-open ``[start, end)`` window the booking occupies."""
        return self.scheduled_at, self.scheduled_at + self.duration(default_buffer, minimum)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the booking to the document shape kept by the store."""
        data = {
            "id": self.id,
            "service_type": self.service_type.value,
            "status": self.status.value,
            "pickup_address": self.pickup_address,
            "pickup": self.pickup.to_dict() if self.pickup else None,
            "destination_address": self.destination_address,
            "destination": self.destination.to_dict() if self.destination else None,
            "scheduled_at": self.scheduled_at.isoformat(),
            "estimated_duration_minutes": self.estimated_duration_minutes,
            "requested_hours": self.requested_hours,
            "passenger_count": self.passenger_count,
            "passenger_name": self.passenger_name,
            "driver_id": self.driver_id,
            "assigned_at": self.assigned_at.isoformat() if self.assigned_at else None,
            "cancelled_at": self.cancelled_at.isoformat() if self.cancelled_at else None,
            "cancel_reason": self.cancel_reason,
            "version": self.version,
        }
        for name, key in _STAMP_KEYS.items():
            stamp = getattr(self, name)
            data[f"{key}_at"] = stamp.at.isoformat() if stamp else None
            data[f"{key}_location"] = stamp.position.to_dict() if stamp else None
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Booking":
        """Build a booking from a store document."""
        stamps = {}
        for name, key in _STAMP_KEYS.items():
            at = data.get(f"{key}_at")
            position = Position.from_dict(data.get(f"{key}_location"))
            stamps[name] = LifecycleStamp(parse_timestamp(at), position) if at and position else None

        return cls(
            id=data["id"],
            service_type=ServiceType(data.get("service_type", ServiceType.TRANSFER.value)),
            status=BookingStatus(data.get("status", BookingStatus.PENDING.value)),
            pickup_address=data.get("pickup_address", ""),
            pickup=Coordinate.from_dict(data.get("pickup")),
            destination_address=data.get("destination_address"),
            destination=Coordinate.from_dict(data.get("destination")),
            scheduled_at=parse_timestamp(data["scheduled_at"]),
            estimated_duration_minutes=data.get("estimated_duration_minutes"),
            requested_hours=data.get("requested_hours"),
            passenger_count=data.get("passenger_count") or 1,
            passenger_name=data.get("passenger_name"),
            driver_id=data.get("driver_id"),
            assigned_at=parse_timestamp(data.get("assigned_at")),
            cancelled_at=parse_timestamp(data.get("cancelled_at")),
            cancel_reason=data.get("cancel_reason"),
            version=data.get("version") or 0,
            **stamps,
        )

