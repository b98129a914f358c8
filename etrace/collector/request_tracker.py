# etrace/collector/request_tracker.py - Request correlation tracking
"""
Pairs the begin and end events of asynchronous requests by correlation id
and turns each completed pair into a latency sample.
"""

from typing import Dict, Optional, Tuple
from dataclasses import dataclass
import logging

from etrace.collector.aggregator import RankedAggregate
from etrace.collector.filters import ProcessScopeFilter


DEFAULT_MAX_KEY_LENGTH = 200

# Volatile signature query string appended to storage URIs
SIGNATURE_MARKER = "?sv"


def normalize_operation_key(uri: str,
                            max_length: int = DEFAULT_MAX_KEY_LENGTH,
                            marker: str = SIGNATURE_MARKER) -> str:
    """
    Canonicalize a request URI for grouping.

    The URI is cut at the first signature marker, then truncated to
    max_length characters.

    Args:
        uri: Raw request URI
        max_length: Maximum length of the resulting key
        marker: Substring starting the volatile suffix

    Returns:
        Normalized operation key
    """
    index = uri.find(marker)
    if index != -1:
        uri = uri[:index]

    return uri[:max_length]


@dataclass
class PendingCorrelation:
    """
    A request whose begin event has been seen but not its end event.
    """
    correlation_id: int
    process_id: int
    operation_key: str
    start_timestamp_ms: float

    @property
    def sample_key(self) -> str:
        """Key under which the completed request is reported"""
        return f"{self.operation_key}|{self.correlation_id}|{self.process_id}"


class CorrelationTracker:
    """
    Tracks pending requests and computes their latency.

    Pending requests are keyed by process id and correlation id, so any
    number of overlapping requests can be in flight. A second begin event
    with the same id in the same process replaces the pending one. End
    events without a pending request, or whose request has no URI, are
    ignored, as are samples whose end precedes their begin.
    """

    def __init__(self, process_filter: Optional[ProcessScopeFilter] = None,
                 max_key_length: int = DEFAULT_MAX_KEY_LENGTH):
        """
        Initialize the correlation tracker.

        Args:
            process_filter: Restricts tracking to one process (None tracks all)
            max_key_length: Maximum length of normalized operation keys
        """
        self.process_filter = process_filter or ProcessScopeFilter()
        self.max_key_length = max_key_length

        # Requests awaiting their end event, by (process id, correlation id)
        self.pending: Dict[Tuple[int, int], PendingCorrelation] = {}

        # Latency in milliseconds by "key|id|pid"
        self.latencies = RankedAggregate()

        self.resolved_count = 0
        self.superseded_count = 0
        self.orphaned_count = 0
        self.negative_count = 0
        self.abandoned_count = 0

        self.logger = logging.getLogger(__name__)

    def begin(self, event) -> Optional[PendingCorrelation]:
        """
        Record the start of a request.

        Args:
            event: Begin event carrying uri and correlation id

        Returns:
            New PendingCorrelation, or None if the process is out of scope
        """
        if not self.process_filter.matches(event.process_id):
            return None

        correlation_id = event.correlation_id
        pending_key = (event.process_id, correlation_id)
        entry = PendingCorrelation(
            correlation_id=correlation_id,
            process_id=event.process_id,
            operation_key=normalize_operation_key(event.uri, self.max_key_length),
            start_timestamp_ms=event.timestamp_ms
        )

        if pending_key in self.pending:
            self.superseded_count += 1
            self.logger.debug(f"Request {correlation_id} restarted before completion, replacing")

        self.pending[pending_key] = entry
        return entry

    def end(self, event) -> Optional[float]:
        """
        Complete a request and record its latency.

        Args:
            event: End event carrying the correlation id

        Returns:
            Elapsed time in milliseconds, or None if no sample was recorded
        """
        if not self.process_filter.matches(event.process_id):
            return None

        entry = self.pending.pop((event.process_id, event.correlation_id), None)
        if entry is None or not entry.operation_key:
            self.orphaned_count += 1
            return None

        elapsed_ms = event.timestamp_ms - entry.start_timestamp_ms
        if elapsed_ms < 0:
            self.negative_count += 1
            self.logger.warning(
                f"Dropping request {entry.correlation_id}: end precedes begin by {-elapsed_ms:.3f}ms"
            )
            return None

        key = entry.sample_key
        self.latencies.add(key, elapsed_ms)
        self.resolved_count += 1
        self.logger.debug(f"Completed request {key} ({elapsed_ms:.2f}ms)")

        return elapsed_ms

    def abandon(self) -> int:
        """
        Drop all pending requests (end of stream).

        Returns:
            Number of requests dropped
        """
        dropped = len(self.pending)
        if dropped:
            self.logger.info(f"Dropping {dropped} incomplete request(s)")

        self.abandoned_count += dropped
        self.pending.clear()
        return dropped

    def get_stats(self) -> Dict:
        """
        Get tracker statistics.

        Returns:
            Dictionary with tracker statistics
        """
        return {
            'pending': len(self.pending),
            'resolved': self.resolved_count,
            'superseded': self.superseded_count,
            'orphaned': self.orphaned_count,
            'negative': self.negative_count,
            'abandoned': self.abandoned_count
        }
