# etrace/__init__.py - Trace event processing toolkit
"""
etrace - routes trace events to counting, correlating and printing processors.

This package provides:
- collector: event model, source, dispatcher, aggregates and processors
- exporters: report sinks (stdout, JSON, Prometheus)
- utils: configuration, logging and helpers
"""

__version__ = "0.1.0"
