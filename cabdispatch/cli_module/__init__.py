"""Command line interface for CabDispatch."""
