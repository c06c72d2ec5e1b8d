"""
unsurf/config.py

Environment variable configuration.

Contains:
- Config: Centralized settings from environment variables
- LOG_LEVEL, CDP_URL, REPLAY_TIMEOUT, HEAL_MAX_RETRIES, etc.
"""

import logging
import os
from typing import Any

from dotenv import load_dotenv

load_dotenv()

# configure httpx logger to suppress verbose HTTP logs
logging.getLogger("httpx").setLevel(logging.WARNING)


class Config():
    """
    Centralized configuration for environment variables.
    """

    # logging configuration
    LOG_LEVEL: int = logging.getLevelNamesMapping().get(
        os.getenv("LOG_LEVEL", "INFO").upper(),
        logging.INFO
    )
    LOG_DATE_FORMAT: str = os.getenv("LOG_DATE_FORMAT", "%Y-%m-%d %H:%M:%S")
    LOG_FORMAT: str = os.getenv("LOG_FORMAT", "[%(asctime)s] %(levelname)s:%(name)s:%(message)s")

    # browser automation (Chrome DevTools Protocol)
    CDP_URL: str = os.getenv("UNSURF_CDP_URL", "http://127.0.0.1:9222")
    NAVIGATION_TIMEOUT: float = float(os.getenv("UNSURF_NAVIGATION_TIMEOUT", "30"))
    NETWORK_IDLE: float = float(os.getenv("UNSURF_NETWORK_IDLE", "2.0"))

    # replay
    REPLAY_TIMEOUT: float = float(os.getenv("UNSURF_REPLAY_TIMEOUT", "30"))

    # heal retry policy
    HEAL_MAX_RETRIES: int = int(os.getenv("UNSURF_HEAL_MAX_RETRIES", "2"))
    HEAL_BASE_DELAY: float = float(os.getenv("UNSURF_HEAL_BASE_DELAY", "0.5"))

    # file-backed persistence
    DATA_DIR: str = os.getenv("UNSURF_DATA_DIR", "./unsurf_data")

    @classmethod
    def as_dict(cls) -> dict[str, Any]:
        """
        Return a dictionary of all UPPERCASE class attributes and their values.
        Return:
            dict[str, Any]: A dictionary of all UPPERCASE class attributes and their values.
        """
        return {
            key: getattr(cls, key)
            for key in dir(cls)
            if key.isupper()
        }
