"""Runtime configuration for the CabDispatch application."""

import os
import logging
from datetime import timedelta

from dotenv import load_dotenv

load_dotenv()

# Base URL for the booking store
BASE_URL = os.getenv("CABDISPATCH_API_URL", "http://localhost:3000").rstrip("/")

# Secret for JWT token signing - set in the environment for real deployments
JWT_SECRET = os.getenv("JWT_SECRET", "cabdispatch_secret_key")
JWT_ALGORITHM = "HS256"
JWT_EXPIRATION_HOURS = 12

# Auto-assignment refuses matches scoring below this
MIN_AUTO_ASSIGN_SCORE = int(os.getenv("CABDISPATCH_MIN_AUTO_SCORE", "40"))

# Conflict window for transfers that carry no duration estimate
DEFAULT_TRANSFER_BUFFER = timedelta(minutes=int(os.getenv("CABDISPATCH_TRANSFER_BUFFER_MINUTES", "60")))
MINIMUM_TRANSFER_WINDOW = timedelta(minutes=30)

LOG_LEVEL = os.getenv("CABDISPATCH_LOG_LEVEL", "INFO").upper()

# Config file to store the CLI auth token
CONFIG_DIR = os.path.expanduser("~/.cabdispatch")
CONFIG_FILE = os.path.join(CONFIG_DIR, "config.json")


def configure_logging(level: str = None) -> None:
    """Set up root logging once for command line entry points."""
    logging.basicConfig(
        level=getattr(logging, level or LOG_LEVEL, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
