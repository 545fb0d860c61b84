"""Dispatch assignment and ride lifecycle engine."""

from cabdispatch.engine.geo import distance_miles
from cabdispatch.engine.conflicts import find_conflict
from cabdispatch.engine.scoring import score_driver
from cabdispatch.engine.ranking import rank_drivers, best_driver
from cabdispatch.engine.assignment import auto_assign, assign_driver
from cabdispatch.engine.lifecycle import advance, cancel, next_status, capture_position

__all__ = [
    "distance_miles",
    "find_conflict",
    "score_driver",
    "rank_drivers",
    "best_driver",
    "auto_assign",
    "assign_driver",
    "advance",
    "cancel",
    "next_status",
    "capture_position",
]
