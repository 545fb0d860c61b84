"""Services backing the CabDispatch command line and store."""
