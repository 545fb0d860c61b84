"""
Explainable fitness score of a driver for a booking.

Every contribution maps to a reason or a warning string so dispatchers can see
why a driver ranks where it does. Factors are evaluated, and their strings
emitted, in a fixed order: conflict, distance, availability, capacity, rating,
workload.
"""

import math
from typing import List

from cabdispatch.engine.conflicts import find_conflict
from cabdispatch.engine.geo import distance_miles
from cabdispatch.models.booking import Booking
from cabdispatch.models.driver import Driver
from cabdispatch.models.match import MatchResult

MAX_SCORE = 100
MIN_SCORE = 0

# Large enough that a conflicting driver can never reach the auto-assign threshold
CONFLICT_PENALTY = 75

DISTANCE_POINTS = 25.0
DISTANCE_RANGE_MILES = 30.0
DISTANCE_NEUTRAL = DISTANCE_POINTS / 2
VERY_CLOSE_MILES = 5.0
NEARBY_MILES = 10.0
WITHIN_RANGE_MILES = 20.0

AVAILABLE_POINTS = 25.0
UNAVAILABLE_PENALTY = 10.0

CAPACITY_FIT_POINTS = 10.0
CAPACITY_PENALTY = 50.0
CAPACITY_NEUTRAL = CAPACITY_FIT_POINTS / 2

RATING_POINTS = 15.0
RATING_NEUTRAL = RATING_POINTS / 2
HIGH_RATING = 4.5

EXPERIENCE_POINTS = 5.0
EXPERIENCE_SCALE = 1.25
EXPERIENCED_RIDES = 50

WORKLOAD_POINTS = 20.0
WORKLOAD_STEP = 5.0
WORKLOAD_WARNING_THRESHOLD = 2


def score_driver(driver: Driver, booking: Booking) -> MatchResult:
    """
    Score one driver against one booking.

    Pure: no I/O, no mutation. Missing data (distance, capacity, rating) falls back to a
    neutral contribution and never raises.

    Args:
        driver: Candidate driver, with its active bookings loaded
        booking: Booking to be assigned

    Returns:
        MatchResult: Score clipped to 0-100 with reasons and warnings
    """
    points = 0.0
    reasons: List[str] = []
    warnings: List[str] = []

    # Conflict
    has_conflict, conflicting = find_conflict(driver, booking)
    if has_conflict:
        points -= CONFLICT_PENALTY
        who = conflicting.passenger_name or f"booking {conflicting.id}"
        warnings.append(
            f"Schedule conflict with {who} at {conflicting.scheduled_at.strftime('%Y-%m-%d %H:%M')}"
        )

    # Distance
    miles = distance_miles(driver.location, booking.pickup)
    if miles is None:
        points += DISTANCE_NEUTRAL
    else:
        points += DISTANCE_POINTS * max(0.0, 1 - miles / DISTANCE_RANGE_MILES)
        if miles < VERY_CLOSE_MILES:
            reasons.append(f"Very close ({miles:.1f} mi)")
        elif miles < NEARBY_MILES:
            reasons.append(f"Nearby ({miles:.1f} mi)")
        elif miles < WITHIN_RANGE_MILES:
            reasons.append(f"Within range ({miles:.1f} mi)")
        elif miles >= DISTANCE_RANGE_MILES:
            warnings.append(f"Far away ({miles:.1f} mi)")

    # Availability
    if driver.is_available:
        points += AVAILABLE_POINTS
        reasons.append("Currently available")
    else:
        points -= UNAVAILABLE_PENALTY
        warnings.append("Driver marked as busy")

    # Capacity
    if driver.capacity is None:
        points += CAPACITY_NEUTRAL
    elif booking.passenger_count > driver.capacity:
        points -= CAPACITY_PENALTY
        warnings.append(
            f"Vehicle seats {driver.capacity}, booking needs {booking.passenger_count}"
        )
    else:
        points += CAPACITY_FIT_POINTS
        reasons.append(f"Fits {booking.passenger_count} passenger{'s' if booking.passenger_count != 1 else ''}")

    # Rating and track record
    if driver.rating is None:
        points += RATING_NEUTRAL
    else:
        rating = min(5.0, max(0.0, driver.rating))
        points += RATING_POINTS * rating / 5
        if rating >= HIGH_RATING:
            reasons.append(f"Excellent rating ({rating:g}/5)")

    total_rides = max(0, driver.total_rides)
    points += min(EXPERIENCE_POINTS, math.log1p(total_rides) * EXPERIENCE_SCALE)
    if total_rides >= EXPERIENCED_RIDES:
        reasons.append(f"Experienced ({total_rides} rides)")

    # Workload
    workload = sum(1 for b in driver.active_bookings if b.is_active and b.id != booking.id)
    points += max(0.0, WORKLOAD_POINTS - WORKLOAD_STEP * workload)
    if workload == 0:
        reasons.append("No pending rides")
    elif workload >= WORKLOAD_WARNING_THRESHOLD:
        warnings.append(f"{workload} active bookings")

    score = int(round(min(MAX_SCORE, max(MIN_SCORE, points))))

    return MatchResult(
        score=score,
        match_reasons=reasons,
        warnings=warnings,
        has_conflict=has_conflict,
        conflicting_booking=conflicting,
        distance_miles=miles,
    )
