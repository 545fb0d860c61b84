"""Entity models for the CabDispatch application."""
from cabdispatch.models.location import Coordinate, Position
from cabdispatch.models.booking import Booking, BookingStatus, ServiceType, LifecycleStamp
from cabdispatch.models.driver import Driver
from cabdispatch.models.match import MatchResult, RankedDriver, AssignmentMode, AssignmentRecord


__all__ = [
    'Coordinate',
    'Position',
    'Booking',
    'BookingStatus',
    'ServiceType',
    'LifecycleStamp',
    'Driver',
    'MatchResult',
    'RankedDriver',
    'AssignmentMode',
    'AssignmentRecord',
]
