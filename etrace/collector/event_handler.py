# etrace/collector/event_handler.py - Trace events and fan-out dispatch
"""
Trace event record and the dispatcher that delivers each event to every
active processor.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional
import logging

from etrace.utils.helpers import format_timestamp


# Framework HTTP events carrying a request URI and a correlation id
HTTP_BEGIN_EVENT = "GetResponseStart"
HTTP_END_EVENT = "GetResponseStop"


@dataclass(frozen=True)
class TraceEvent:
    """
    Structured representation of a single trace event.

    Processors only read events; the same instance is shared by all of them.
    """
    event_name: str
    process_id: int
    timestamp_ms: float
    thread_id: int = 0
    provider: str = ""
    fields: Dict[str, Any] = field(default_factory=dict)

    @property
    def uri(self) -> str:
        """Request URI of an HTTP event ('' when absent)"""
        value = self.fields.get('uri')
        return "" if value is None else str(value)

    @property
    def correlation_id(self) -> Optional[int]:
        """Correlation id shared by the begin/end events of one request"""
        return self.fields.get('id')

    def get_field_by_name(self, name: str) -> Any:
        """
        Look up a field by its display name.

        Args:
            name: Well-known header name (EventName, ProcessID, ...) or payload field

        Returns:
            Field value, or an empty string when the event has no such field
        """
        well_known = {
            'EventName': self.event_name,
            'ProcessID': self.process_id,
            'ThreadID': self.thread_id,
            'TimeStamp': format_timestamp(self.timestamp_ms),
            'ProviderName': self.provider,
        }
        if name in well_known:
            return well_known[name]
        return self.fields.get(name, "")

    def as_raw_string(self) -> str:
        """Single-line human-readable description of the event"""
        name = f"{self.provider}/{self.event_name}" if self.provider else self.event_name
        parts = [
            format_timestamp(self.timestamp_ms),
            name,
            f"PID={self.process_id}",
            f"TID={self.thread_id}",
        ]
        parts.extend(f"{key}={value}" for key, value in self.fields.items())
        return " ".join(parts)


class EventDispatcher:
    """
    Delivers every event, synchronously and in arrival order, to all
    registered processors.

    A failure inside one processor is logged and counted; the remaining
    processors still receive the event.
    """

    def __init__(self, processors: Optional[Iterable] = None):
        """
        Initialize the dispatcher.

        Args:
            processors: EventProcessor instances to deliver events to
        """
        self.processors: List = list(processors or [])
        self.event_count = 0
        self.error_count = 0
        self.closed = False

        self.logger = logging.getLogger(__name__)

    def register_processor(self, processor):
        """
        Add a processor to the delivery list.

        Args:
            processor: EventProcessor instance
        """
        if self.closed:
            raise RuntimeError("Dispatcher already closed")
        self.processors.append(processor)

    def dispatch(self, event: TraceEvent, description: Optional[str] = None) -> int:
        """
        Deliver one event to every processor.

        Args:
            event: Event to deliver
            description: Optional precomputed rendering of the event

        Returns:
            Number of processors that failed on this event
        """
        if self.closed:
            raise RuntimeError("Cannot dispatch events after close()")

        self.event_count += 1
        failures = 0

        for processor in self.processors:
            try:
                if description is None:
                    processor.on_event(event)
                else:
                    processor.on_event(event, description)
            except Exception as e:
                self.logger.error(
                    f"{type(processor).__name__} failed on {event.event_name} "
                    f"(PID {event.process_id}): {e}"
                )
                self.error_count += 1
                failures += 1

        return failures

    def run(self, source: Iterable[TraceEvent]) -> int:
        """
        Dispatch every event of a source, then close all processors.

        Processors are closed even when the source fails or is interrupted.

        Args:
            source: Iterable of TraceEvent objects

        Returns:
            Number of events dispatched
        """
        dispatched = 0
        try:
            for event in source:
                self.dispatch(event)
                dispatched += 1
        finally:
            self.close()

        return dispatched

    def close(self):
        """
        Close every processor once. Later calls are no-ops.
        """
        if self.closed:
            return

        self.closed = True
        for processor in self.processors:
            try:
                processor.close()
            except Exception as e:
                self.logger.error(f"Failed to close {type(processor).__name__}: {e}")
                self.error_count += 1

    def get_stats(self) -> Dict:
        """
        Get dispatcher statistics.

        Returns:
            Dictionary with event delivery statistics
        """
        return {
            'total_events': self.event_count,
            'errors': self.error_count,
            'processors_registered': len(self.processors)
        }
