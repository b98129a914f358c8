# etrace/collector/source.py - Recorded event source
"""
Reads recorded trace events, one JSON object per line, and converts them
into TraceEvent objects.
"""

from typing import Any, Dict, IO, Iterator
import json
import logging

from etrace.collector.event_handler import TraceEvent
from etrace.utils.helpers import parse_timestamp


class JsonLinesEventSource:
    """
    Iterates TraceEvents from a JSON-lines stream.

    Each line holds one event, e.g.:
        {"event_name": "GetResponseStart", "process_id": 10,
         "timestamp_ms": 1000, "fields": {"uri": "/orders/42", "id": 1}}

    Unknown top-level keys are folded into the event fields. The stream may
    yield text or bytes; byte lines are decoded as UTF-8. Lines that cannot
    be decoded or parsed are logged and skipped.
    """

    # Accepted spellings of the header keys
    NAME_KEYS = ('event_name', 'EventName')
    PROCESS_KEYS = ('process_id', 'ProcessID')
    THREAD_KEYS = ('thread_id', 'ThreadID')
    PROVIDER_KEYS = ('provider', 'ProviderName')
    TIMESTAMP_KEYS = ('timestamp_ms', 'timestamp', 'TimeStamp')

    def __init__(self, stream: IO):
        """
        Initialize the source.

        Args:
            stream: Text or binary stream (file or stdin) of JSON lines
        """
        self.stream = stream
        self.event_count = 0
        self.error_count = 0

        self.logger = logging.getLogger(__name__)

    def __iter__(self) -> Iterator[TraceEvent]:
        for line_number, line in enumerate(self.stream, 1):
            if not line.strip():
                continue

            try:
                if isinstance(line, bytes):
                    line = line.decode('utf-8')
                event = self.parse_record(json.loads(line))
            except (ValueError, KeyError, TypeError) as e:
                self.logger.warning(f"Skipping malformed event on line {line_number}: {e}")
                self.error_count += 1
                continue

            self.event_count += 1
            yield event

    @classmethod
    def parse_record(cls, record: Dict[str, Any]) -> TraceEvent:
        """
        Convert one decoded JSON object into a TraceEvent.

        Args:
            record: Decoded JSON object

        Returns:
            TraceEvent

        Raises:
            KeyError: If the event name, process id or timestamp is missing
            ValueError: If a value has the wrong format
        """
        if not isinstance(record, dict):
            raise TypeError(f"expected a JSON object, got {type(record).__name__}")

        record = dict(record)
        event_name = cls._pop_first(record, cls.NAME_KEYS)
        process_id = int(cls._pop_first(record, cls.PROCESS_KEYS))
        timestamp_ms = parse_timestamp(cls._pop_first(record, cls.TIMESTAMP_KEYS))
        thread_id = int(cls._pop_first(record, cls.THREAD_KEYS, 0))
        provider = str(cls._pop_first(record, cls.PROVIDER_KEYS, ""))

        fields = dict(record.pop('fields', None) or {})
        fields.update(record)

        return TraceEvent(
            event_name=str(event_name),
            process_id=process_id,
            timestamp_ms=timestamp_ms,
            thread_id=thread_id,
            provider=provider,
            fields=fields
        )

    @staticmethod
    def _pop_first(record: Dict[str, Any], keys, *default):
        for key in keys:
            if key in record:
                return record.pop(key)
        if default:
            return default[0]
        raise KeyError(keys[0])

    def get_stats(self) -> Dict:
        return {
            'events_read': self.event_count,
            'malformed_lines': self.error_count
        }
