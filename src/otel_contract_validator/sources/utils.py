"""
Utility functions for telemetry providers.
"""

from typing import Any, Dict, Optional, Union
from datetime import datetime, timezone
import logging
import re

logger = logging.getLogger(__name__)

EPOCH_MIN = datetime.min.replace(tzinfo=timezone.utc)

_FRACTION_RE = re.compile(r"\.(\d+)")


def _six_digit_fraction(match: "re.Match") -> str:
    return "." + match.group(1)[:6].ljust(6, "0")


def parse_timestamp(timestamp: Union[str, datetime, None]) -> Optional[datetime]:
    """
    Parse an ISO-8601 timestamp into a timezone-aware datetime.

    Args:
        timestamp: Timestamp as string or datetime object

    Returns:
        Parsed datetime (naive values are taken as UTC), or None if it cannot be parsed
    """
    if timestamp is None:
        return None
    if isinstance(timestamp, datetime):
        parsed = timestamp
    else:
        try:
            text = timestamp.strip()
            if text.endswith(("Z", "z")):
                text = text[:-1] + "+00:00"
            text = _FRACTION_RE.sub(_six_digit_fraction, text, count=1)
            if "T" in text or "t" in text:
                parsed = datetime.fromisoformat(text)
            else:
                parsed = datetime.strptime(text, '%Y-%m-%d %H:%M:%S')
        except (ValueError, AttributeError) as e:
            logger.debug(f"Failed to parse timestamp '{timestamp}': {e}")
            return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def from_epoch_millis(value: Any) -> Optional[datetime]:
    """Convert epoch milliseconds to a UTC datetime."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    try:
        return datetime.fromtimestamp(value / 1000.0, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None


def first_string(data: Dict[str, Any], *keys: str) -> Optional[str]:
    """Return the first value among ``keys`` that is a string."""
    for key in keys:
        value = data.get(key)
        if isinstance(value, str):
            return value
    return None


def first_number(data: Dict[str, Any], *keys: str) -> Optional[float]:
    """Return the first value among ``keys`` that is a number."""
    for key in keys:
        value = data.get(key)
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return float(value)
    return None
