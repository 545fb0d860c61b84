"""Shared fixtures for CabDispatch tests."""

from datetime import datetime, timezone

import pytest

from cabdispatch.models.booking import Booking, BookingStatus, ServiceType
from cabdispatch.models.driver import Driver
from cabdispatch.models.location import Coordinate

# Pickup used by most tests (Manhattan)
PICKUP = Coordinate(40.7128, -74.0060)
BASE_TIME = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)

# Degrees of latitude per mile
LAT_PER_MILE = 1 / 69.09


def north_of(origin: Coordinate, miles: float) -> Coordinate:
    """Coordinate roughly ``miles`` due north of ``origin``."""
    return Coordinate(origin.latitude + miles * LAT_PER_MILE, origin.longitude)


@pytest.fixture
def make_booking():
    """Factory for bookings with sensible defaults."""
    counter = {"n": 0}

    def _make(**overrides):
        counter["n"] += 1
        data = {
            "id": f"booking-{counter['n']}",
            "scheduled_at": BASE_TIME,
            "pickup_address": "123 Main St",
            "pickup": PICKUP,
            "destination_address": "JFK Terminal 4",
            "destination": Coordinate(40.6413, -73.7781),
            "service_type": ServiceType.TRANSFER,
            "estimated_duration_minutes": 60,
            "passenger_count": 1,
            "passenger_name": "Alex Rider",
        }
        data.update(overrides)
        return Booking(**data)

    return _make


@pytest.fixture
def make_driver():
    """Factory for drivers with sensible defaults."""

    def _make(driver_id="driver-1", **overrides):
        data = {
            "id": driver_id,
            "first_name": "Test",
            "last_name": "Driver",
            "is_active": True,
            "is_available": True,
            "location": PICKUP,
            "capacity": 4,
            "rating": None,
            "total_rides": 0,
            "active_bookings": [],
        }
        data.update(overrides)
        return Driver(**data)

    return _make


@pytest.fixture
def assigned_booking(make_booking):
    """A booking assigned to driver-1, ready to be accepted."""
    return make_booking(driver_id="driver-1", status=BookingStatus.ASSIGNED)


@pytest.fixture
def pickup():
    return PICKUP


@pytest.fixture
def base_time():
    return BASE_TIME


@pytest.fixture
def offset():
    """Function placing a coordinate a number of miles north of the pickup."""
    return lambda miles: north_of(PICKUP, miles)
