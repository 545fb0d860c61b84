"""Typed errors raised by assignment and lifecycle operations."""

from typing import Optional


class DispatchError(Exception):
    """Base class for dispatch errors. No state is committed when one is raised."""
    pass


class NoEligibleDriver(DispatchError):
    """Ranking found no active driver."""

    def __init__(self, booking_id: str):
        self.booking_id = booking_id
        super().__init__(f"No drivers available for booking {booking_id}")


class LowConfidenceMatch(DispatchError):
    """The best driver scored under the auto-assign threshold. A dispatcher may still assign manually."""

    def __init__(self, booking_id: str, driver_id: str, score: int, min_score: int):
        self.booking_id = booking_id
        self.driver_id = driver_id
        self.score = score
        self.min_score = min_score
        super().__init__(
            f"Low match score for booking {booking_id}: best driver {driver_id} "
            f"scored {score}, auto-assign needs {min_score}"
        )


class ScheduleConflict(DispatchError):
    """Assigning the driver would double-book them."""

    def __init__(self, driver_id: str, booking_id: str, conflicting_booking_id: str):
        self.driver_id = driver_id
        self.booking_id = booking_id
        self.conflicting_booking_id = conflicting_booking_id
        super().__init__(
            f"Driver {driver_id} is already booked for {conflicting_booking_id}, "
            f"which overlaps booking {booking_id}"
        )


class DriverNotEligible(DispatchError):
    """The driver cannot take bookings (inactive or unknown)."""

    def __init__(self, driver_id: str, reason: str):
        self.driver_id = driver_id
        self.reason = reason
        super().__init__(f"Driver {driver_id} cannot be assigned: {reason}")


class TransitionError(DispatchError):
    """A lifecycle change was refused."""
    pass


class OutOfOrderTransition(TransitionError):
    """A lifecycle step was attempted before its prerequisite, or after the booking ended."""

    def __init__(self, booking_id: str, current, target, required=None, detail: Optional[str] = None):
        self.booking_id = booking_id
        self.current = current
        self.target = target
        self.required = required
        message = f"Booking {booking_id} cannot move from {current.value} to {target.value}"
        if required is not None:
            message += f"; it must be {required.value} first"
        if detail:
            message += f" ({detail})"
        super().__init__(message)


class CancellationNotAllowed(TransitionError):
    """The trip has physically started, so it can no longer be cancelled."""

    def __init__(self, booking_id: str, current):
        self.booking_id = booking_id
        self.current = current
        super().__init__(f"Booking {booking_id} is {current.value} and can no longer be cancelled")


class ActorNotPermitted(TransitionError):
    """Only the assigned driver may advance a booking."""

    def __init__(self, booking_id: str, actor_id: Optional[str], driver_id: Optional[str]):
        self.booking_id = booking_id
        self.actor_id = actor_id
        self.driver_id = driver_id
        super().__init__(f"User {actor_id} is not the driver assigned to booking {booking_id}")


class LocationUnavailable(TransitionError):
    """The device position could not be captured."""

    def __init__(self, detail: str = "no position captured"):
        self.detail = detail
        super().__init__(f"Location unavailable: {detail}")


class ConcurrentModification(DispatchError):
    """Another mutation changed the record first."""

    def __init__(self, key: str, expected_version: Optional[int] = None):
        self.key = key
        self.expected_version = expected_version
        message = f"{key} was modified concurrently"
        if expected_version is not None:
            message += f" (expected version {expected_version})"
        super().__init__(message)


class BookingNotFound(DispatchError):
    def __init__(self, booking_id: str):
        self.booking_id = booking_id
        super().__init__(f"Booking with ID {booking_id} not found")


class DeletionNotAllowed(DispatchError):
    """Only bookings that are still pending can be deleted."""

    def __init__(self, booking_id: str, current):
        self.booking_id = booking_id
        self.current = current
        super().__init__(f"Booking {booking_id} is {current.value}; only pending bookings can be deleted")
