# etrace/collector/__init__.py - Event collection and processing module
"""
Collector module for receiving trace events and routing them to processors.

This module provides:
- event_handler.py: TraceEvent record, well-known event names and the dispatcher
- source.py: Recorded (JSON lines) event source
- aggregator.py: RankedAggregate counting/duration structure
- filters.py: Process scope filtering
- request_tracker.py: Begin/end correlation and latency computation
- processors.py: EventProcessor implementations
- reporter.py: Converts aggregates into reports for the sinks
"""
