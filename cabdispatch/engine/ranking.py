"""Order drivers by fitness for a booking."""

import math
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Sequence

from cabdispatch.engine.scoring import score_driver
from cabdispatch.models.booking import Booking
from cabdispatch.models.driver import Driver
from cabdispatch.models.match import RankedDriver


def _sort_key(ranked: RankedDriver):
    result = ranked.result
    distance = result.distance_miles if result.distance_miles is not None else math.inf
    rating = ranked.driver.rating if ranked.driver.rating is not None else 0.0
    return (-result.score, result.has_conflict, distance, -rating)


def rank_drivers(drivers: Sequence[Driver], booking: Booking,
                 max_workers: Optional[int] = None) -> List[RankedDriver]:
    """
    Rank active drivers for a booking, best first.

    Inactive drivers are left out entirely. Ties on score are broken by
    no-conflict first, then shorter distance (unknown last), then higher
    rating; anything still tied keeps its input order.

    Args:
        drivers: Snapshot of candidate drivers
        booking: Booking to be assigned
        max_workers: Score drivers on a thread pool of this size. Scoring is
            pure, so the ranking is identical either way.

    Returns:
        List[RankedDriver]: Ranked drivers with their match results
    """
    eligible = [driver for driver in drivers if driver.is_active]

    if max_workers and max_workers > 1 and len(eligible) > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            results = list(pool.map(lambda d: score_driver(d, booking), eligible))
    else:
        results = [score_driver(driver, booking) for driver in eligible]

    ranked = [RankedDriver(driver, result) for driver, result in zip(eligible, results)]
    # sorted() is stable, so input order settles remaining ties
    return sorted(ranked, key=_sort_key)


def best_driver(drivers: Sequence[Driver], booking: Booking) -> Optional[RankedDriver]:
    """Get the top ranked driver, or None when no driver is active."""
    ranked = rank_drivers(drivers, booking)
    return ranked[0] if ranked else None
