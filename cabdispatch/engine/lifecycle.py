"""
Ride lifecycle state machine.

A booking moves strictly forward through

    pending -> assigned -> accepted -> started -> driver_on_destination
            -> passenger_on_board -> ended

with ``cancelled`` reachable only from pending, assigned and accepted. Every
driver step stores the timestamp together with the captured position; a step
that fails validation changes nothing.
"""

import logging
from dataclasses import replace
from datetime import datetime
from typing import Callable, Optional

from cabdispatch.engine.errors import (
    OutOfOrderTransition, CancellationNotAllowed, ActorNotPermitted, LocationUnavailable
)
from cabdispatch.models.booking import (
    Booking, BookingStatus, LifecycleStamp, LIFECYCLE_ORDER, STAMP_FIELDS, TERMINAL_STATUSES
)
from cabdispatch.models.location import Position
from cabdispatch.models.timestamps import as_utc, utcnow

logger = logging.getLogger(__name__)

CANCELLABLE_STATUSES = frozenset({BookingStatus.PENDING, BookingStatus.ASSIGNED, BookingStatus.ACCEPTED})


def next_status(booking: Booking) -> Optional[BookingStatus]:
    """Get the next forward state of a booking, or None once it is terminal."""
    if booking.status in TERMINAL_STATUSES:
        return None
    index = LIFECYCLE_ORDER.index(booking.status)
    return LIFECYCLE_ORDER[index + 1]


def previous_status(status: BookingStatus) -> Optional[BookingStatus]:
    """Get the state that must be reached before ``status``."""
    if status not in LIFECYCLE_ORDER:
        return None
    index = LIFECYCLE_ORDER.index(status)
    return LIFECYCLE_ORDER[index - 1] if index > 0 else None


def capture_position(locator: Callable[[], Optional[Position]]) -> Position:
    """
    Read the current device position.

    Args:
        locator: Device position provider

    Returns:
        Position: The captured fix

    Raises:
        LocationUnavailable: If the locator fails or returns nothing
    """
    try:
        position = locator()
    except LocationUnavailable:
        raise
    except Exception as e:
        raise LocationUnavailable(str(e) or type(e).__name__) from e

    if position is None:
        raise LocationUnavailable()
    return position


def advance(booking: Booking, target: BookingStatus, actor_id: Optional[str],
            position: Optional[Position], now: Optional[datetime] = None) -> Booking:
    """
    Move a booking one step forward on behalf of its driver.

    Args:
        booking: Booking to advance
        target: Requested next state
        actor_id: User performing the step, must be the assigned driver
        position: Position captured for this step
        now: Transition time, defaults to the current time

    Returns:
        Booking: Updated copy carrying the new status and stamp

    Raises:
        OutOfOrderTransition: If the booking is terminal or ``target`` is not its next state
        ActorNotPermitted: If ``actor_id`` is not the assigned driver
        LocationUnavailable: If no position was captured
    """
    if booking.status in TERMINAL_STATUSES:
        raise OutOfOrderTransition(booking.id, booking.status, target, detail="booking is closed")

    if target == BookingStatus.ASSIGNED or target not in STAMP_FIELDS:
        raise OutOfOrderTransition(
            booking.id, booking.status, target, detail="not a driver lifecycle step"
        )

    if next_status(booking) != target:
        raise OutOfOrderTransition(booking.id, booking.status, target, previous_status(target))

    if booking.driver_id is None or actor_id != booking.driver_id:
        raise ActorNotPermitted(booking.id, actor_id, booking.driver_id)

    if position is None:
        raise LocationUnavailable()

    now = as_utc(now) or utcnow()
    last = _latest_stamp(booking)
    if last is not None and now < last.at:
        raise OutOfOrderTransition(
            booking.id, booking.status, target,
            detail=f"timestamp {now.isoformat()} precedes {last.at.isoformat()}",
        )

    updated = replace(booking, status=target, **{STAMP_FIELDS[target]: LifecycleStamp(now, position)})
    logger.info("Booking %s moved %s -> %s by driver %s", booking.id, booking.status.value, target.value, actor_id)
    return updated


def cancel(booking: Booking, reason: Optional[str] = None, now: Optional[datetime] = None) -> Booking:
    """
    Cancel a booking that has not physically started.

    Raises:
        CancellationNotAllowed: If the booking is started, further along, or already closed
    """
    if booking.status not in CANCELLABLE_STATUSES:
        raise CancellationNotAllowed(booking.id, booking.status)

    logger.info("Booking %s cancelled from %s", booking.id, booking.status.value)
    return replace(
        booking,
        status=BookingStatus.CANCELLED,
        cancelled_at=as_utc(now) or utcnow(),
        cancel_reason=reason,
    )


def _latest_stamp(booking: Booking) -> Optional[LifecycleStamp]:
    latest = None
    for status in LIFECYCLE_ORDER:
        stamp = booking.stamp_for(status)
        if stamp is not None:
            latest = stamp
    return latest
