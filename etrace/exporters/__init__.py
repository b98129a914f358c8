# etrace/exporters/__init__.py - Exporters module
"""
Report sinks for processor output.

This module provides:
- base.py: ReportSink interface
- stdout.py: Console output exporter
- json_exporter.py: JSON document exporter
- prometheus.py: Prometheus metrics exporter
"""
