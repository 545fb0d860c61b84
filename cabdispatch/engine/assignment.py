"""Decide and apply driver assignments."""

import logging
from dataclasses import replace
from datetime import datetime
from typing import Optional, Sequence, Tuple

from cabdispatch import config
from cabdispatch.engine.conflicts import find_conflict
from cabdispatch.engine.errors import (
    NoEligibleDriver, LowConfidenceMatch, ScheduleConflict, DriverNotEligible, OutOfOrderTransition
)
from cabdispatch.engine.ranking import best_driver
from cabdispatch.models.booking import Booking, BookingStatus
from cabdispatch.models.driver import Driver
from cabdispatch.models.match import AssignmentMode, AssignmentRecord, RankedDriver
from cabdispatch.models.timestamps import as_utc, utcnow

logger = logging.getLogger(__name__)

# A booking can change hands until the trip physically starts
ASSIGNABLE_STATUSES = frozenset({BookingStatus.PENDING, BookingStatus.ASSIGNED, BookingStatus.ACCEPTED})


def auto_assign(drivers: Sequence[Driver], booking: Booking, min_score: Optional[int] = None) -> RankedDriver:
    """
    Pick the driver for automatic assignment.

    Nothing is committed; the caller applies the choice with ``assign_driver``.

    Args:
        drivers: Snapshot of candidate drivers
        booking: Booking to be assigned
        min_score: Lowest acceptable score, defaults to the configured policy

    Returns:
        RankedDriver: The chosen driver and its match result

    Raises:
        NoEligibleDriver: If no active driver exists
        LowConfidenceMatch: If the best score is under ``min_score``
    """
    min_score = config.MIN_AUTO_ASSIGN_SCORE if min_score is None else min_score

    best = best_driver(drivers, booking)
    if best is None:
        logger.info("Auto-assign for booking %s rejected: no drivers available", booking.id)
        raise NoEligibleDriver(booking.id)

    if best.score < min_score:
        logger.info(
            "Auto-assign for booking %s rejected: low match score %d < %d (driver %s)",
            booking.id, best.score, min_score, best.driver.id,
        )
        raise LowConfidenceMatch(booking.id, best.driver.id, best.score, min_score)

    return best


def assign_driver(booking: Booking, driver: Driver, mode: AssignmentMode = AssignmentMode.MANUAL,
                  force: bool = False, score: Optional[int] = None,
                  now: Optional[datetime] = None) -> Tuple[Booking, AssignmentRecord]:
    """
    Assign a driver to a booking, replacing any previous driver.

    Manual assignment bypasses the score policy; only an inactive driver or a
    schedule conflict blocks it, and a conflict can be overridden with
    ``force``. Reassigning an accepted booking returns it to ``assigned`` so
    the new driver must accept.

    Returns:
        Tuple[Booking, AssignmentRecord]: Updated copy of the booking and what was done

    Raises:
        OutOfOrderTransition: If the trip has started, ended or been cancelled
        DriverNotEligible: If the driver is not active
        ScheduleConflict: If the driver is double-booked and ``force`` is not set
    """
    if booking.status not in ASSIGNABLE_STATUSES:
        raise OutOfOrderTransition(
            booking.id, booking.status, BookingStatus.ASSIGNED,
            detail="assignment is only possible before the trip starts",
        )

    if not driver.is_active:
        raise DriverNotEligible(driver.id, "driver is not active")

    previous_driver_id = booking.driver_id
    if previous_driver_id == driver.id and booking.status != BookingStatus.PENDING:
        record = AssignmentRecord(booking.id, driver.id, mode, score=score)
        return booking, record

    has_conflict, conflicting = find_conflict(driver, booking)
    if has_conflict:
        if not force:
            raise ScheduleConflict(driver.id, booking.id, conflicting.id)
        logger.warning(
            "Schedule conflict overridden: driver %s assigned to booking %s despite booking %s",
            driver.id, booking.id, conflicting.id,
        )

    is_reassignment = previous_driver_id is not None and previous_driver_id != driver.id
    updated = replace(
        booking,
        driver_id=driver.id,
        status=BookingStatus.ASSIGNED,
        assigned_at=as_utc(now) or utcnow(),
        accepted=None,
    )
    record = AssignmentRecord(
        booking_id=booking.id,
        driver_id=driver.id,
        mode=mode,
        is_reassignment=is_reassignment,
        previous_driver_id=previous_driver_id if is_reassignment else None,
        forced=has_conflict,
        score=score,
    )

    logger.info(
        "Booking %s %s to driver %s (%s)",
        booking.id, "reassigned" if is_reassignment else "assigned", driver.id, mode.value,
    )
    return updated, record
