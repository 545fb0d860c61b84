"""Dispatch service for CabDispatch: ranking, assignment and ride lifecycle."""

import logging
from datetime import datetime
from typing import Dict, Any, Optional, List

import requests

from cabdispatch import config
from cabdispatch.engine import assignment, lifecycle
from cabdispatch.engine.errors import BookingNotFound, ConcurrentModification, DeletionNotAllowed
from cabdispatch.engine.locks import KeyedLocks, booking_key, driver_key
from cabdispatch.engine.ranking import rank_drivers
from cabdispatch.models.booking import Booking, BookingStatus, ServiceType
from cabdispatch.models.driver import Driver
from cabdispatch.models.location import Coordinate, Position
from cabdispatch.models.match import AssignmentMode
from cabdispatch.services.fleet_service import FleetService, FleetServiceError

logger = logging.getLogger(__name__)

# Serialises mutations made through this process
_locks = KeyedLocks()


class DispatchServiceError(Exception):
    """Custom exception for dispatch service errors."""
    pass


class DispatchService:
    """Service for dispatcher and driver facing booking operations."""

    @staticmethod
    def create_booking(pickup_address: str, scheduled_at: datetime,
                       pickup: Optional[Coordinate] = None,
                       destination_address: Optional[str] = None,
                       destination: Optional[Coordinate] = None,
                       service_type: ServiceType = ServiceType.TRANSFER,
                       estimated_duration_minutes: Optional[int] = None,
                       requested_hours: Optional[int] = None,
                       passenger_count: int = 1,
                       passenger_name: Optional[str] = None) -> Booking:
        """
        Create a new pending, unassigned booking.

        Coordinates must already be resolved; addresses are stored as text only.

        Returns:
            Booking: The stored booking

        Raises:
            DispatchServiceError: If the booking is invalid or cannot be stored
        """
        if passenger_count < 1:
            raise DispatchServiceError("A booking needs at least one passenger.")
        if service_type == ServiceType.HOURLY and not requested_hours:
            raise DispatchServiceError("Hourly bookings need a requested hour count.")
        if service_type == ServiceType.TRANSFER and not destination_address:
            raise DispatchServiceError("Transfer bookings need a destination.")

        booking = Booking(
            scheduled_at=scheduled_at,
            pickup_address=pickup_address,
            pickup=pickup,
            service_type=service_type,
            destination_address=destination_address if service_type == ServiceType.TRANSFER else None,
            destination=destination if service_type == ServiceType.TRANSFER else None,
            estimated_duration_minutes=estimated_duration_minutes,
            requested_hours=requested_hours if service_type == ServiceType.HOURLY else None,
            passenger_count=passenger_count,
            passenger_name=passenger_name,
        )

        try:
            response = requests.post(f"{config.BASE_URL}/bookings", json=booking.to_dict())
            response.raise_for_status()
            logger.info("Created booking %s for %s", booking.id, scheduled_at.isoformat())
            return Booking.from_dict(response.json())

        except requests.RequestException as e:
            raise DispatchServiceError(f"Booking creation failed: {str(e)}")

    @staticmethod
    def get_booking(booking_id: str) -> Booking:
        """
        Get a booking by its ID.

        Raises:
            BookingNotFound: If no such booking exists
            DispatchServiceError: If the store cannot be read
        """
        try:
            response = requests.get(f"{config.BASE_URL}/bookings/{booking_id}")

            if response.status_code == 404:
                raise BookingNotFound(booking_id)

            response.raise_for_status()
            return Booking.from_dict(response.json())

        except requests.RequestException as e:
            raise DispatchServiceError(f"Failed to retrieve booking: {str(e)}")

    @staticmethod
    def get_driver_bookings(driver_id: str, active_only: bool = True) -> List[Booking]:
        """Get the bookings assigned to a driver, soonest first."""
        try:
            response = requests.get(f"{config.BASE_URL}/bookings/query?driver_id={driver_id}")

            if response.status_code == 404:
                return []

            response.raise_for_status()
            bookings = [Booking.from_dict(b) for b in response.json()]
            if active_only:
                bookings = [b for b in bookings if b.is_active]
            bookings.sort(key=lambda b: b.scheduled_at)
            return bookings

        except requests.RequestException as e:
            raise DispatchServiceError(f"Failed to retrieve bookings: {str(e)}")

    @staticmethod
    def delete_booking(booking_id: str) -> None:
        """
        Delete a booking that is still pending.

        Raises:
            DeletionNotAllowed: If the booking has left the pending state
            ConcurrentModification: If the booking changed while deleting
        """
        with _locks.hold(booking_key(booking_id)):
            booking = DispatchService.get_booking(booking_id)
            if booking.status != BookingStatus.PENDING:
                raise DeletionNotAllowed(booking_id, booking.status)

            try:
                response = requests.delete(
                    f"{config.BASE_URL}/bookings/{booking_id}",
                    headers={"If-Match": str(booking.version)},
                )
                if response.status_code == 409:
                    raise ConcurrentModification(f"booking {booking_id}", booking.version)
                response.raise_for_status()
                logger.info("Deleted booking %s", booking_id)

            except requests.RequestException as e:
                raise DispatchServiceError(f"Failed to delete booking: {str(e)}")

    @staticmethod
    def ranked_drivers(booking_id: str, max_workers: Optional[int] = None) -> List[Dict[str, Any]]:
        """
        Rank the fleet for a booking.

        Returns:
            List[Dict]: ``{driver_id, score, badge, reasons, warnings,
            distance_miles, has_conflict, conflicting_booking_id}``, best first
        """
        booking = DispatchService.get_booking(booking_id)
        drivers = FleetService.get_drivers()
        return [ranked.to_dict() for ranked in rank_drivers(drivers, booking, max_workers=max_workers)]

    @staticmethod
    def assign(booking_id: str, driver_id: str, mode: str = AssignmentMode.MANUAL.value,
               force: bool = False) -> Dict[str, Any]:
        """
        Assign (or reassign) a driver to a booking.

        Args:
            booking_id: Booking to assign
            driver_id: Driver to assign
            mode: "manual" or "auto", recorded with the assignment
            force: Override a schedule conflict; the override is logged

        Returns:
            Dict: ``{booking_id, driver_id, is_reassignment, mode, forced, ...}``

        Raises:
            ScheduleConflict: If the driver is double-booked and ``force`` is not set
            DriverNotEligible: If the driver is unknown or inactive
            ConcurrentModification: If the booking or driver changed meanwhile;
                the booking is left as it was
        """
        mode = AssignmentMode(mode)
        with _locks.hold(booking_key(booking_id), driver_key(driver_id)):
            booking = DispatchService.get_booking(booking_id)
            driver = FleetService.get_driver(driver_id)

            updated, record = assignment.assign_driver(booking, driver, mode=mode, force=force)
            if updated is not booking:
                DispatchService._commit_assignment(booking, updated, driver)

            return record.to_dict()

    @staticmethod
    def auto_assign(booking_id: str, min_score: Optional[int] = None) -> Dict[str, Any]:
        """
        Assign the best ranked driver if its score clears the policy threshold.

        Raises:
            NoEligibleDriver: If no active driver exists
            LowConfidenceMatch: If the best score is below ``min_score``
            ConcurrentModification: If the booking changed after ranking, or the
                driver was assigned elsewhere meanwhile
        """
        booking = DispatchService.get_booking(booking_id)
        chosen = assignment.auto_assign(FleetService.get_drivers(), booking, min_score)

        with _locks.hold(booking_key(booking_id), driver_key(chosen.driver.id)):
            current = DispatchService.get_booking(booking_id)
            if current.version != booking.version:
                raise ConcurrentModification(f"booking {booking_id}", booking.version)

            driver = FleetService.get_driver(chosen.driver.id)
            updated, record = assignment.assign_driver(
                current, driver, mode=AssignmentMode.AUTO, score=chosen.score
            )
            if updated is not current:
                DispatchService._commit_assignment(current, updated, driver)

            return record.to_dict()

    @staticmethod
    def advance(booking_id: str, target: str, actor_id: str, position: Optional[Position]) -> Booking:
        """
        Advance a booking one lifecycle step on behalf of its driver.

        Args:
            booking_id: Booking to advance
            target: Next state, e.g. "accepted" or "passenger_on_board"
            actor_id: Verified user performing the step
            position: Position captured by the driver's device

        Returns:
            Booking: Updated booking

        Raises:
            OutOfOrderTransition: If ``target`` is not the next state
            ActorNotPermitted: If the actor is not the assigned driver
            LocationUnavailable: If no position was supplied
            ConcurrentModification: If the booking changed meanwhile
        """
        target_status = BookingStatus(target)
        with _locks.hold(booking_key(booking_id)):
            booking = DispatchService.get_booking(booking_id)
            updated = lifecycle.advance(booking, target_status, actor_id, position)
            return DispatchService._save_booking(updated)

    @staticmethod
    def cancel(booking_id: str, reason: Optional[str] = None) -> Booking:
        """
        Cancel a booking that has not started yet.

        Raises:
            CancellationNotAllowed: If the booking is started or further along
            ConcurrentModification: If the booking changed meanwhile
        """
        with _locks.hold(booking_key(booking_id)):
            booking = DispatchService.get_booking(booking_id)
            updated = lifecycle.cancel(booking, reason)
            return DispatchService._save_booking(updated)

    @staticmethod
    def _commit_assignment(original: Booking, updated: Booking, driver: Driver) -> Booking:
        """
        Write an assignment, then claim the driver.

        The claim uses the driver version read together with its bookings, so
        an assignment committed by another process since then fails it. The
        booking write is then undone and ``ConcurrentModification`` raised.
        """
        saved = DispatchService._save_booking(updated)
        try:
            FleetService.claim_driver(driver)
        except (ConcurrentModification, FleetServiceError):
            logger.warning("Claiming driver %s failed, rolling back booking %s", driver.id, original.id)
            DispatchService._restore_booking(original, saved)
            raise
        logger.debug("Committed booking %s version %d for driver %s", saved.id, saved.version, driver.id)
        return saved

    @staticmethod
    def _restore_booking(original: Booking, saved: Booking) -> None:
        """Put back a booking's previous assignment over the version we just wrote."""
        data = original.to_dict()
        data["version"] = saved.version + 1

        try:
            response = requests.put(
                f"{config.BASE_URL}/bookings/{original.id}",
                json=data,
                headers={"If-Match": str(saved.version)},
            )
            response.raise_for_status()
        except requests.RequestException as e:
            logger.error("Could not roll back booking %s to version %d: %s", original.id, original.version, e)

    @staticmethod
    def _save_booking(booking: Booking) -> Booking:
        """Write a booking, refusing if the stored version moved on."""
        data = booking.to_dict()
        data["version"] = booking.version + 1

        try:
            response = requests.put(
                f"{config.BASE_URL}/bookings/{booking.id}",
                json=data,
                headers={"If-Match": str(booking.version)},
            )
            if response.status_code == 409:
                logger.warning("Booking %s changed since version %d", booking.id, booking.version)
                raise ConcurrentModification(f"booking {booking.id}", booking.version)
            if response.status_code == 404:
                raise BookingNotFound(booking.id)
            response.raise_for_status()
            return Booking.from_dict(response.json())

        except requests.RequestException as e:
            raise DispatchServiceError(f"Failed to save booking: {str(e)}")
