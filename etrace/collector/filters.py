# etrace/collector/filters.py - Process scope filtering
"""
Parses `Key=Value` filter expressions and decides whether an event's
process is in scope.
"""

from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence

from etrace.errors import ConfigurationError


PROCESS_ID_FILTER_KEY = "ProcessId"


@dataclass(frozen=True)
class ParsedFilter:
    """A single `key=value` filter taken from the configuration."""
    key: str
    value: str


def parse_filter(expression: str) -> ParsedFilter:
    """
    Parse a `Key=Value` filter expression.

    Args:
        expression: Filter expression (e.g., 'ProcessId=1234')

    Returns:
        ParsedFilter

    Raises:
        ConfigurationError: If the expression has no key or no value
    """
    key, sep, value = expression.partition('=')
    key = key.strip()
    value = value.strip()

    if not sep or not key or not value:
        raise ConfigurationError(f"Invalid filter '{expression}', expected Key=Value")

    return ParsedFilter(key=key, value=value)


def parse_filters(expressions: Optional[Iterable[str]]) -> List[ParsedFilter]:
    """
    Parse a sequence of filter expressions, keeping their order.

    Args:
        expressions: Filter expressions, or None

    Returns:
        List of ParsedFilter objects
    """
    return [parse_filter(expression) for expression in (expressions or [])]


class ProcessScopeFilter:
    """
    Matches events against the configured process filter.

    Only the first configured filter is consulted, and only when its key is
    ProcessId. Any other filter kind is handled elsewhere, so it matches
    every process here.
    """

    def __init__(self, filters: Optional[Sequence[ParsedFilter]] = None):
        """
        Initialize the filter.

        Args:
            filters: Ordered filters from the configuration (may be empty)
        """
        first = filters[0] if filters else None

        if first is not None and first.key == PROCESS_ID_FILTER_KEY:
            self.process_id: Optional[str] = str(first.value)
        else:
            self.process_id = None

    @property
    def active(self) -> bool:
        """True when events are restricted to one process"""
        return self.process_id is not None

    def matches(self, process_id) -> bool:
        """
        Check whether a process is in scope.

        Args:
            process_id: Process id of the event

        Returns:
            True if no process filter is configured or the ids match
        """
        if self.process_id is None:
            return True
        return self.process_id == str(process_id)
