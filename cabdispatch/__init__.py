"""CabDispatch: driver ranking, assignment and ride lifecycle for a ride-booking fleet."""

__version__ = "0.1.0"
