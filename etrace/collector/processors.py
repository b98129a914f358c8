# etrace/collector/processors.py - Event processors
"""
Consumers of the event stream.

Every processor receives each event in arrival order and is closed once at
the end of the stream, at which point aggregating processors emit their
reports.
"""

from abc import ABC, abstractmethod
from typing import List, Optional
import logging

from etrace.collector.aggregator import RankedAggregate
from etrace.collector.event_handler import HTTP_BEGIN_EVENT, HTTP_END_EVENT
from etrace.collector.filters import ProcessScopeFilter
from etrace.collector.reporter import Reporter
from etrace.collector.request_tracker import CorrelationTracker, normalize_operation_key
from etrace.errors import UnsupportedOperationError
from etrace.utils.helpers import parse_field_spec


COUNT_LABEL = "Count"
LATENCY_LABEL = "LatencyTime(ms)"


class EventProcessor(ABC):
    """
    Base class for all processors.

    Subclasses implement on_event() and, when they accumulate state,
    _flush(). close() guarantees _flush() runs at most once.
    """

    def __init__(self, sink):
        """
        Initialize the processor.

        Args:
            sink: ReportSink receiving this processor's output
        """
        self.sink = sink
        self.reporter = Reporter(sink)
        self.disposed = False
        self.logger = logging.getLogger(__name__)

    @abstractmethod
    def on_event(self, event, description: Optional[str] = None):
        """
        Handle one event.

        Args:
            event: TraceEvent to handle
            description: Optional precomputed rendering of the event
        """

    def close(self):
        """
        Flush accumulated output. Only the first call has any effect.
        """
        if self.disposed:
            return

        self.disposed = True
        self._flush()

    def _flush(self):
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


class EveryEventPrinter(EventProcessor):
    """
    Prints a one-line description of every event.
    """

    def on_event(self, event, description: Optional[str] = None):
        if description is None:
            description = event.as_raw_string()
        self.sink.emit_line(description)


class EveryEventTablePrinter(EventProcessor):
    """
    Prints selected fields of every event as a fixed-width table.

    Fields are given as `Name` or `Name[width]`.
    """

    def __init__(self, fields: List[str], sink):
        """
        Initialize the table printer and print the table header.

        Args:
            fields: Field specifications, one per column
            sink: ReportSink receiving the table
        """
        super().__init__(sink)
        self.columns = [parse_field_spec(spec) for spec in fields]
        self.sink.emit_table_header(self.columns)

    def on_event(self, event, description: Optional[str] = None):
        if description is not None:
            raise UnsupportedOperationError(
                "EveryEventTablePrinter renders fields itself and does not accept a description"
            )

        values = [event.get_field_by_name(name) for name, _ in self.columns]
        self.sink.emit_table_row(values)


class EventStatisticsAggregator(EventProcessor):
    """
    Counts events by name and by process.
    """

    def __init__(self, sink):
        super().__init__(sink)
        self.count_by_event_name = RankedAggregate()
        self.count_by_process = RankedAggregate()

    def on_event(self, event, description: Optional[str] = None):
        self.count_by_event_name.add(event.event_name)
        self.count_by_process.add(str(event.process_id))

    def _flush(self):
        self.reporter.report(self.count_by_event_name, "Events by name", "Event", COUNT_LABEL)
        self.reporter.report(self.count_by_process, "Events by process", "Process", COUNT_LABEL)


class HttpCallCountAggregator(EventProcessor):
    """
    Counts outgoing HTTP calls by normalized URI and by process.

    Every begin event in scope is counted, whether or not it completes.
    """

    def __init__(self, options, sink):
        """
        Initialize the aggregator.

        Args:
            options: ProcessorOptions (filters, URI length limit)
            sink: ReportSink receiving the reports
        """
        super().__init__(sink)
        self.process_filter = ProcessScopeFilter(options.parsed_filters)
        self.max_uri_length = options.max_uri_length

        self.count_by_http_call = RankedAggregate()
        self.count_by_process = RankedAggregate()

    def on_event(self, event, description: Optional[str] = None):
        if event.event_name != HTTP_BEGIN_EVENT:
            return
        if not self.process_filter.matches(event.process_id):
            return

        self.count_by_http_call.add(normalize_operation_key(event.uri, self.max_uri_length))
        self.count_by_process.add(str(event.process_id))

    def _flush(self):
        self.reporter.report(self.count_by_http_call, "HttpCalls", "HttpRequest", COUNT_LABEL)
        self.reporter.report(self.count_by_process, "HttpCalls by process", "Process", COUNT_LABEL)


class HttpLatencyAggregator(EventProcessor):
    """
    Measures the latency of each outgoing HTTP call.

    Begin and end events are paired by correlation id; requests still
    pending when the stream ends are not reported.
    """

    def __init__(self, options, sink):
        """
        Initialize the aggregator.

        Args:
            options: ProcessorOptions (filters, URI length limit)
            sink: ReportSink receiving the report
        """
        super().__init__(sink)
        self.tracker = CorrelationTracker(
            ProcessScopeFilter(options.parsed_filters),
            max_key_length=options.max_uri_length
        )

    def on_event(self, event, description: Optional[str] = None):
        if event.event_name == HTTP_BEGIN_EVENT:
            self.tracker.begin(event)
        elif event.event_name == HTTP_END_EVENT:
            self.tracker.end(event)

    def _flush(self):
        self.tracker.abandon()
        self.logger.info(f"HTTP latency tracking: {self.tracker.get_stats()}")
        self.reporter.report(self.tracker.latencies, "HttpCall latency", "HttpRequests", LATENCY_LABEL)


def build_processors(options, sink) -> List[EventProcessor]:
    """
    Create the processors selected by the configuration.

    Args:
        options: ProcessorOptions
        sink: ReportSink shared by all processors

    Returns:
        List of processors, in delivery order
    """
    processors: List[EventProcessor] = []

    if options.http_stats_only:
        processors.append(HttpCallCountAggregator(options, sink))
    if options.http_latency_stats_only:
        processors.append(HttpLatencyAggregator(options, sink))
    if options.stats_only:
        processors.append(EventStatisticsAggregator(sink))

    if not processors:
        if options.fields:
            processors.append(EveryEventTablePrinter(options.fields, sink))
        else:
            processors.append(EveryEventPrinter(sink))

    logging.getLogger(__name__).debug(
        f"Active processors: {', '.join(type(p).__name__ for p in processors)}"
    )
    return processors
