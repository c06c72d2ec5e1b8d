"""
unsurf/data_models/ids.py

Identifier and timestamp helpers shared by all persisted records.
"""

import secrets
import string
import time
from datetime import datetime, timezone

_ID_ALPHABET = string.ascii_lowercase + string.digits


def _base36(value: int) -> str:
    if value == 0:
        return "0"
    digits: list[str] = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_ID_ALPHABET[remainder])
    return "".join(reversed(digits))


def generate_id(prefix: str) -> str:
    """
    Generate a sortable, prefixed record ID.

    Args:
        prefix: Record kind, e.g. "site", "ep", "path", "run".

    Returns:
        ID like "ep_lq2x9k1a_k7x9m2ab".
    """
    timestamp = _base36(int(time.time() * 1000))
    random_part = "".join(secrets.choice(_ID_ALPHABET) for _ in range(8))
    return f"{prefix}_{timestamp}_{random_part}"


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)
