# etrace/utils/helpers.py - Helper functions
"""
General utility and helper functions.
"""

from datetime import datetime, timezone
from typing import Tuple, Union
import re


FIELD_WITH_WIDTH = re.compile(r"(.*)\[(\d+)\]")

# Column widths for well-known event fields
EXPECTED_FIELD_WIDTHS = {
    'EventName': 30,
    'ProviderName': 30,
    'ProcessID': 8,
    'ThreadID': 8,
    'TimeStamp': 24,
    'uri': 60,
    'id': 12,
}

DEFAULT_FIELD_WIDTH = 20


def get_expected_field_width(name: str) -> int:
    """
    Get the default column width for a field.

    Args:
        name: Field name

    Returns:
        Column width in characters
    """
    return EXPECTED_FIELD_WIDTHS.get(name, DEFAULT_FIELD_WIDTH)


def parse_field_spec(spec: str) -> Tuple[str, int]:
    """
    Parse a column specification.

    Args:
        spec: 'Name' or 'Name[width]'

    Returns:
        Tuple of (name, width)
    """
    spec = spec.strip()
    match = FIELD_WITH_WIDTH.fullmatch(spec)
    if match:
        return match.group(1), int(match.group(2))

    return spec, get_expected_field_width(spec)


def format_timestamp(timestamp_ms: float) -> str:
    """
    Format an epoch timestamp in milliseconds as UTC ISO-8601.

    Args:
        timestamp_ms: Milliseconds since the epoch

    Returns:
        Formatted string (e.g., "2020-01-01T00:00:01.250+00:00")
    """
    moment = datetime.fromtimestamp(timestamp_ms / 1000.0, tz=timezone.utc)
    return moment.isoformat(timespec='milliseconds')


def parse_timestamp(value: Union[int, float, str]) -> float:
    """
    Convert a recorded timestamp to epoch milliseconds.

    Args:
        value: Milliseconds as a number, or an ISO-8601 string
               (naive values are taken as UTC)

    Returns:
        Milliseconds since the epoch

    Raises:
        ValueError: If the value is neither a number nor an ISO-8601 string
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid timestamp: {value!r}")
    if isinstance(value, (int, float)):
        return float(value)

    text = str(value).strip()
    if text.endswith('Z'):
        text = text[:-1] + '+00:00'

    moment = datetime.fromisoformat(text)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)

    return moment.timestamp() * 1000.0


def format_value(value: Union[int, float]) -> str:
    """
    Format a report value for display.

    Args:
        value: Count or duration

    Returns:
        Integers unchanged, floats with three decimals
    """
    if isinstance(value, float):
        return f"{value:.3f}"
    return str(value)
