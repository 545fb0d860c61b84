"""Fleet directory client for CabDispatch."""

import logging
from collections import defaultdict
from typing import Dict, List

import requests

from cabdispatch import config
from cabdispatch.engine.errors import ConcurrentModification, DriverNotEligible
from cabdispatch.models.booking import Booking
from cabdispatch.models.driver import Driver

logger = logging.getLogger(__name__)


class FleetServiceError(Exception):
    """Custom exception for fleet directory errors."""
    pass


class FleetService:
    """Service for reading driver state from the fleet directory."""

    @staticmethod
    def get_drivers() -> List[Driver]:
        """
        Get every driver with its active bookings loaded.

        The whole snapshot is fetched before any scoring starts.

        Returns:
            List[Driver]: Drivers in directory order

        Raises:
            FleetServiceError: If the directory cannot be read
        """
        try:
            response = requests.get(f"{config.BASE_URL}/drivers")
            response.raise_for_status()
            drivers = response.json()

            response = requests.get(f"{config.BASE_URL}/bookings")
            response.raise_for_status()
            bookings_by_driver: Dict[str, List[Booking]] = defaultdict(list)
            for data in response.json():
                if data.get("driver_id"):
                    bookings_by_driver[data["driver_id"]].append(Booking.from_dict(data))

            return [Driver.from_dict(d, bookings_by_driver.get(d["id"], [])) for d in drivers]

        except requests.RequestException as e:
            raise FleetServiceError(f"Failed to retrieve drivers: {str(e)}")

    @staticmethod
    def get_driver(driver_id: str) -> Driver:
        """
        Get one driver with its active bookings loaded.

        The driver record, and so its version, is read before the bookings.
        A claim made with that version fails if another assignment of the
        driver was committed after the read.

        Raises:
            DriverNotEligible: If the driver does not exist
            FleetServiceError: If the directory cannot be read
        """
        try:
            response = requests.get(f"{config.BASE_URL}/drivers/{driver_id}")
            if response.status_code == 404:
                raise DriverNotEligible(driver_id, "driver not found")
            response.raise_for_status()
            driver = response.json()

            response = requests.get(f"{config.BASE_URL}/bookings/query?driver_id={driver_id}")
            if response.status_code == 404:
                bookings = []
            else:
                response.raise_for_status()
                bookings = [Booking.from_dict(b) for b in response.json()]

            return Driver.from_dict(driver, bookings)

        except requests.RequestException as e:
            raise FleetServiceError(f"Failed to retrieve driver: {str(e)}")

    @staticmethod
    def claim_driver(driver: Driver) -> int:
        """
        Bump the driver record's version so concurrent assignments of the
        same driver serialise. Called after the booking is written, with the
        version read alongside the driver's bookings.

        Returns:
            int: The new driver version

        Raises:
            ConcurrentModification: If the driver changed since it was read
            FleetServiceError: If the directory cannot be written
        """
        try:
            response = requests.get(f"{config.BASE_URL}/drivers/{driver.id}")
            response.raise_for_status()
            record = response.json()
            record["version"] = driver.version + 1

            response = requests.put(
                f"{config.BASE_URL}/drivers/{driver.id}",
                json=record,
                headers={"If-Match": str(driver.version)},
            )
            if response.status_code == 409:
                logger.warning("Driver %s changed since version %d", driver.id, driver.version)
                raise ConcurrentModification(f"driver {driver.id}", driver.version)
            response.raise_for_status()
            return record["version"]

        except requests.RequestException as e:
            raise FleetServiceError(f"Failed to update driver: {str(e)}")
