"""
Configuration management for Stepie.

Loads user, server and logging settings from environment variables.
The database location (STEPIE_DB_PATH) is read by the storage layer.
"""

import os
from dotenv import find_dotenv, load_dotenv

# Load .env file from the working directory
load_dotenv(find_dotenv(usecwd=True))

DEFAULT_USER_ID = int(os.getenv("STEPIE_USER_ID", "1"))
HOST = os.getenv("STEPIE_HOST", "127.0.0.1")
PORT = int(os.getenv("STEPIE_PORT", "3000"))
LOG_LEVEL = os.getenv("STEPIE_LOG_LEVEL", "INFO").upper()

VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def validate_config():
    """Validate that configured values are usable."""
    invalid = []

    if DEFAULT_USER_ID < 1:
        invalid.append("STEPIE_USER_ID")

    if not 0 < PORT < 65536:
        invalid.append("STEPIE_PORT")

    if LOG_LEVEL not in VALID_LOG_LEVELS:
        invalid.append("STEPIE_LOG_LEVEL")

    if invalid:
        raise ValueError(
            f"Invalid configuration: {', '.join(invalid)}\n"
            "Check your .env file or environment variables."
        )
