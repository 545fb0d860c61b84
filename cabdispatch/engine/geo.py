"""Great-circle distance between coordinates."""

import math
from typing import Optional

from cabdispatch.models.location import Coordinate

EARTH_RADIUS_MILES = 3958.8


def distance_miles(a: Optional[Coordinate], b: Optional[Coordinate]) -> Optional[float]:
    """
    Calculate the haversine distance between two coordinates.

    Args:
        a: First coordinate (degrees)
        b: Second coordinate (degrees)

    Returns:
        float: Distance in miles, or None when either coordinate is missing.
        Unknown distance is not zero distance and callers must not treat it so.
    """
    if a is None or b is None:
        return None

    lat1, lng1 = math.radians(a.latitude), math.radians(a.longitude)
    lat2, lng2 = math.radians(b.latitude), math.radians(b.longitude)

    dlat = lat2 - lat1
    dlng = lng2 - lng1

    h = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlng / 2) ** 2
    # Rounding can push h a hair above 1 for antipodal points
    h = min(1.0, max(0.0, h))
    c = 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))

    return EARTH_RADIUS_MILES * c
