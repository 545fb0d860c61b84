"""Detect whether a booking would double-book a driver."""

from datetime import datetime, timedelta
from typing import Optional, Tuple

from cabdispatch import config
from cabdispatch.models.booking import Booking
from cabdispatch.models.driver import Driver


def windows_overlap(start_a: datetime, end_a: datetime, start_b: datetime, end_b: datetime) -> bool:
    """Half-open interval overlap; windows that only touch do not overlap."""
    return start_a < end_b and start_b < end_a


def find_conflict(driver: Driver, candidate: Booking,
                  default_buffer: timedelta = None,
                  minimum_window: timedelta = None) -> Tuple[bool, Optional[Booking]]:
    """
    Check the candidate booking against the driver's active bookings.

    Args:
        driver: Driver whose active bookings are checked
        candidate: Booking being considered for the driver
        default_buffer: Window length for transfers with no duration estimate
        minimum_window: Shortest window any transfer occupies

    Returns:
        Tuple[bool, Optional[Booking]]: whether a conflict exists, and the first
        overlapping booking found
    """
    default_buffer = default_buffer if default_buffer is not None else config.DEFAULT_TRANSFER_BUFFER
    minimum_window = minimum_window if minimum_window is not None else config.MINIMUM_TRANSFER_WINDOW

    start, end = candidate.time_window(default_buffer, minimum_window)

    for booking in driver.active_bookings:
        if booking.id == candidate.id or not booking.is_active:
            continue

        other_start, other_end = booking.time_window(default_buffer, minimum_window)
        if windows_overlap(start, end, other_start, other_end):
            return True, booking

    return False, None
