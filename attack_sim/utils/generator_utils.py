"""Generator utilities for synthetic campaign data.

Every helper that draws randomness takes an explicit ``random.Random`` so a
seeded simulation stays reproducible end to end.
"""

from __future__ import annotations

import random
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Optional


def generate_uuid(rng: Optional[random.Random] = None) -> str:
    """Generate a UUID4 string drawn from ``rng`` (or the OS source)."""
    if rng is None:
        return str(uuid.uuid4())
    return str(uuid.UUID(int=rng.getrandbits(128), version=4))


def generate_private_ip(rng: random.Random, prefix: str = "10") -> str:
    """Generate a random private IP address (10.x.x.x range)."""
    return f"{prefix}.{rng.randint(0, 255)}.{rng.randint(0, 255)}.{rng.randint(1, 254)}"


def generate_sha256(rng: random.Random) -> str:
    """Generate a random SHA256-like hash."""
    return f"{rng.getrandbits(256):064x}"


def random_timestamp_between(start_time: datetime, end_time: datetime, rng: random.Random) -> datetime:
    """Generate a random timestamp between two dates."""
    delta = end_time - start_time
    random_seconds = rng.random() * delta.total_seconds()
    return start_time + timedelta(seconds=random_seconds)


def to_iso(value: datetime) -> str:
    """Format a datetime as an ISO 8601 UTC string with millisecond precision."""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def now_utc() -> datetime:
    """Get current UTC datetime."""
    return datetime.now(timezone.utc)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse the timestamp formats alert documents carry into an aware UTC datetime.

    Handles:
    - datetime objects (naive values are taken as UTC)
    - ISO 8601: 2026-02-03T09:28:40.100Z
    - Unix seconds, milliseconds, microseconds or nanoseconds (int, float or digit string)
    """
    if value is None or value == "":
        return None

    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)

    if isinstance(value, bool):
        return None

    if isinstance(value, (int, float)) or (isinstance(value, str) and value.isdigit()):
        try:
            ts = float(value)
            if ts > 1e18:  # nanoseconds
                ts = ts / 1e9
            elif ts > 1e15:  # microseconds
                ts = ts / 1e6
            elif ts > 1e12:  # milliseconds
                ts = ts / 1e3
            return datetime.fromtimestamp(ts, tz=timezone.utc)
        except (ValueError, OverflowError, OSError):
            return None

    if isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)

    return None
