# etrace/exporters/prometheus.py - Prometheus metrics exporter
"""
Exposes processor reports as Prometheus metrics.
"""

from prometheus_client import CollectorRegistry, Counter, Gauge, generate_latest
from pathlib import Path
from typing import List, Optional, Sequence, Tuple
import sys
import logging

from etrace.exporters.base import ReportSink


class PrometheusExporter(ReportSink):
    """
    Converts each report row into a gauge sample labelled with the report
    header and row key.

    Metrics live in a private registry, so several exporters can coexist in
    one process.
    """

    def __init__(self, output_path: Optional[str] = None,
                 registry: Optional[CollectorRegistry] = None):
        """
        Initialize the Prometheus exporter.

        Args:
            output_path: File receiving the exposition text on close (default: stdout)
            registry: Registry to register metrics in (default: a new one)
        """
        self.output_path = Path(output_path) if output_path else None
        self.registry = registry or CollectorRegistry()
        self.closed = False
        self.logger = logging.getLogger(__name__)

        self.report_value = Gauge(
            'etrace_report_value',
            'Accumulated value of a report entry (count or latency in ms)',
            ['report', 'key'],
            registry=self.registry
        )

        self.report_rows = Gauge(
            'etrace_report_rows',
            'Number of entries in a report',
            ['report'],
            registry=self.registry
        )

        self.printed_events = Counter(
            'etrace_printed_events_total',
            'Number of events printed by printing processors',
            registry=self.registry
        )

    def emit_report(self, report):
        for key, value in report.rows:
            self.report_value.labels(report=report.header, key=str(key)).set(value)
        self.report_rows.labels(report=report.header).set(len(report.rows))

    def emit_line(self, text: str):
        self.printed_events.inc()

    def emit_table_header(self, columns: List[Tuple[str, int]]):
        pass

    def emit_table_row(self, values: Sequence):
        self.printed_events.inc()

    def get_metrics_text(self) -> str:
        """
        Get current metrics in Prometheus text format.

        Returns:
            Metrics as text
        """
        return generate_latest(self.registry).decode('utf-8')

    def close(self):
        """
        Write the metrics text. Only the first call writes.
        """
        if self.closed:
            return
        self.closed = True

        text = self.get_metrics_text()
        if self.output_path is None:
            sys.stdout.write(text)
            return

        self.output_path.parent.mkdir(parents=True, exist_ok=True)
        self.output_path.write_text(text)
        self.logger.info(f"Wrote Prometheus metrics to {self.output_path}")
