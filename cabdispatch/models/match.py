"""Match and assignment results for the CabDispatch application."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, List, Dict, Any

from cabdispatch.models.booking import Booking
from cabdispatch.models.driver import Driver


class AssignmentMode(Enum):
    """How a driver came to be assigned."""
    MANUAL = "manual"
    AUTO = "auto"


@dataclass
class MatchResult:
    """
    Explainable suitability of one driver for one booking.

    Attributes:
        score: Integer score from 0 to 100
        match_reasons: Positive factors, in evaluation order
        warnings: Negative factors, in evaluation order
        has_conflict: Whether the booking would double-book the driver
        conflicting_booking: The first overlapping booking found
        distance_miles: Driver to pickup distance, None when unknown
    """
    score: int
    match_reasons: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    has_conflict: bool = False
    conflicting_booking: Optional[Booking] = None
    distance_miles: Optional[float] = None

    @property
    def badge(self) -> str:
        """Label shown next to the driver in the dispatcher console."""
        return match_badge(self.score)


@dataclass
class RankedDriver:
    """A driver paired with its match result."""
    driver: Driver
    result: MatchResult

    @property
    def score(self) -> int:
        return self.result.score

    def to_dict(self) -> Dict[str, Any]:
        result = self.result
        return {
            "driver_id": self.driver.id,
            "driver_name": self.driver.full_name,
            "score": result.score,
            "badge": result.badge,
            "reasons": list(result.match_reasons),
            "warnings": list(result.warnings),
            "distance_miles": round(result.distance_miles, 2) if result.distance_miles is not None else None,
            "has_conflict": result.has_conflict,
            "conflicting_booking_id": result.conflicting_booking.id if result.conflicting_booking else None,
        }


@dataclass(frozen=True)
class AssignmentRecord:
    """
    What an assignment did, kept for confirmation and logging.

    Attributes:
        booking_id: Booking that was assigned
        driver_id: Driver now holding the booking
        mode: Manual dispatcher choice or automatic selection
        is_reassignment: True when the booking already had a different driver
        previous_driver_id: Driver replaced by a reassignment
        forced: True when a schedule conflict was overridden
        score: Match score of the chosen driver, when known
    """
    booking_id: str
    driver_id: str
    mode: AssignmentMode
    is_reassignment: bool = False
    previous_driver_id: Optional[str] = None
    forced: bool = False
    score: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "booking_id": self.booking_id,
            "driver_id": self.driver_id,
            "mode": self.mode.value,
            "is_reassignment": self.is_reassignment,
            "previous_driver_id": self.previous_driver_id,
            "forced": self.forced,
            "score": self.score,
        }


def match_badge(score: int) -> str:
    """Map a score onto the dispatcher console badge."""
    if score >= 80:
        return "Best Match"
    if score >= 60:
        return "Good Match"
    if score >= 40:
        return "Fair Match"
    return "Low Match"
