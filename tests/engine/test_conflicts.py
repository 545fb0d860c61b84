"""Tests for schedule conflict detection in CabDispatch."""

from datetime import datetime, timedelta

from cabdispatch.engine.conflicts import find_conflict, windows_overlap
from cabdispatch.models.booking import Booking, BookingStatus, ServiceType


def _held(make_booking, start, **overrides):
    """A booking the driver already holds."""
    data = {"scheduled_at": start, "driver_id": "driver-1", "status": BookingStatus.ACCEPTED}
    data.update(overrides)
    return make_booking(**data)


class TestWindowsOverlap:
    """Test class for half-open interval overlap."""

    def test_overlapping(self, base_time):
        hour = timedelta(hours=1)
        assert windows_overlap(base_time, base_time + hour, base_time + hour / 2, base_time + 2 * hour)

    def test_touching_windows_do_not_overlap(self, base_time):
        hour = timedelta(hours=1)
        assert not windows_overlap(base_time, base_time + hour, base_time + hour, base_time + 2 * hour)

    def test_contained_window(self, base_time):
        hour = timedelta(hours=1)
        assert windows_overlap(base_time, base_time + 3 * hour, base_time + hour, base_time + 2 * hour)


class TestFindConflict:
    """Test class for detecting double-booked drivers."""

    def test_no_active_bookings(self, make_driver, make_booking):
        """A driver with nothing booked has no conflict."""
        has_conflict, conflicting = find_conflict(make_driver(), make_booking())
        assert has_conflict is False
        assert conflicting is None

    def test_overlapping_transfer(self, make_driver, make_booking, base_time):
        """A transfer starting inside another transfer's window conflicts."""
        held = _held(make_booking, base_time)
        driver = make_driver(active_bookings=[held])
        candidate = make_booking(scheduled_at=base_time + timedelta(minutes=30))

        has_conflict, conflicting = find_conflict(driver, candidate)

        assert has_conflict is True
        assert conflicting is held

    def test_back_to_back_bookings_do_not_conflict(self, make_driver, make_booking, base_time):
        """A booking starting exactly when the previous one ends is fine."""
        driver = make_driver(active_bookings=[_held(make_booking, base_time)])
        candidate = make_booking(scheduled_at=base_time + timedelta(minutes=60))

        assert find_conflict(driver, candidate) == (False, None)

    def test_candidate_before_held_booking(self, make_driver, make_booking, base_time):
        """The candidate's own window counts too, not just its start."""
        driver = make_driver(active_bookings=[_held(make_booking, base_time)])
        candidate = make_booking(scheduled_at=base_time - timedelta(minutes=45))

        assert find_conflict(driver, candidate)[0] is True

    def test_transfer_without_estimate_uses_default_buffer(self, make_driver, make_booking, base_time):
        """No duration estimate falls back to the 60 minute buffer, not a zero window."""
        held = _held(make_booking, base_time, estimated_duration_minutes=None)
        driver = make_driver(active_bookings=[held])

        assert find_conflict(driver, make_booking(scheduled_at=base_time + timedelta(minutes=45)))[0] is True
        assert find_conflict(driver, make_booking(scheduled_at=base_time + timedelta(minutes=60)))[0] is False

    def test_short_transfer_gets_minimum_window(self, make_driver, make_booking, base_time):
        """Very short estimates are widened to 30 minutes."""
        held = _held(make_booking, base_time, estimated_duration_minutes=10)
        driver = make_driver(active_bookings=[held])

        assert find_conflict(driver, make_booking(scheduled_at=base_time + timedelta(minutes=20)))[0] is True
        assert find_conflict(driver, make_booking(scheduled_at=base_time + timedelta(minutes=30)))[0] is False

    def test_custom_buffer(self, make_driver, make_booking, base_time):
        held = _held(make_booking, base_time, estimated_duration_minutes=None)
        driver = make_driver(active_bookings=[held])
        candidate = make_booking(scheduled_at=base_time + timedelta(minutes=100))

        assert find_conflict(driver, candidate)[0] is False
        assert find_conflict(driver, candidate, default_buffer=timedelta(hours=2))[0] is True

    def test_hourly_booking_uses_requested_hours(self, make_driver, make_booking, base_time):
        """Hourly engagements occupy the driver for the requested hours."""
        held = _held(
            make_booking, base_time,
            service_type=ServiceType.HOURLY, requested_hours=3,
            destination_address=None, destination=None, estimated_duration_minutes=None,
        )
        driver = make_driver(active_bookings=[held])

        assert find_conflict(driver, make_booking(scheduled_at=base_time + timedelta(hours=2, minutes=30)))[0] is True
        assert find_conflict(driver, make_booking(scheduled_at=base_time + timedelta(hours=3)))[0] is False

    def test_closed_bookings_are_ignored(self, make_driver, make_booking, base_time):
        """Ended and cancelled bookings no longer hold the driver."""
        driver = make_driver(active_bookings=[
            _held(make_booking, base_time, status=BookingStatus.ENDED),
            _held(make_booking, base_time, status=BookingStatus.CANCELLED),
        ])

        assert find_conflict(driver, make_booking(scheduled_at=base_time))[0] is False

    def test_candidate_is_not_checked_against_itself(self, make_driver, make_booking, base_time):
        """A driver already holding the candidate does not conflict with it."""
        candidate = _held(make_booking, base_time, status=BookingStatus.ASSIGNED)
        driver = make_driver(active_bookings=[candidate])

        assert find_conflict(driver, candidate) == (False, None)

    def test_first_conflict_is_reported(self, make_driver, make_booking, base_time):
        first = _held(make_booking, base_time)
        second = _held(make_booking, base_time + timedelta(minutes=15))
        driver = make_driver(active_bookings=[first, second])

        has_conflict, conflicting = find_conflict(driver, make_booking(scheduled_at=base_time + timedelta(minutes=30)))

        assert has_conflict is True
        assert conflicting is first


class TestTimestampConventions:
    """Test class for bookings whose times arrive in different notations."""

    def test_zulu_store_time_against_naive_candidate(self, make_driver, make_booking):
        """A held booking stored with a ``Z`` suffix still conflicts with a naive 09:30 candidate."""
        held = Booking.from_dict({
            "id": "held", "driver_id": "driver-1", "status": "accepted",
            "scheduled_at": "2026-03-02T09:00:00Z", "estimated_duration_minutes": 60,
        })
        candidate = make_booking(scheduled_at=datetime(2026, 3, 2, 9, 30))

        has_conflict, conflicting = find_conflict(make_driver(active_bookings=[held]), candidate)

        assert has_conflict is True
        assert conflicting is held

    def test_offset_time_is_compared_in_utc(self, make_driver, make_booking, base_time):
        """11:00+02:00 is 09:00 UTC."""
        held = Booking.from_dict({
            "id": "held", "driver_id": "driver-1", "status": "assigned",
            "scheduled_at": "2026-03-02T11:00:00+02:00", "estimated_duration_minutes": 60,
        })

        has_conflict, _ = find_conflict(make_driver(active_bookings=[held]), make_booking(scheduled_at=base_time))

        assert has_conflict is True
        assert held.scheduled_at == base_time
