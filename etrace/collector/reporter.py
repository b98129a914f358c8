# etrace/collector/reporter.py - Aggregate reporting
"""
Converts ranked aggregates into reports and hands them to a sink.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Tuple, Union
import logging

from etrace.collector.aggregator import RankedAggregate


@dataclass
class Report:
    """
    A titled, ranked two-column table produced when a processor closes.
    """
    header: str
    key_label: str
    value_label: str
    rows: List[Tuple[str, Union[int, float]]] = field(default_factory=list)

    def to_dict(self) -> Dict:
        return {
            'header': self.header,
            'key_label': self.key_label,
            'value_label': self.value_label,
            'rows': [{'key': key, 'value': value} for key, value in self.rows]
        }


class Reporter:
    """
    Renders aggregates through a report sink.
    """

    def __init__(self, sink):
        """
        Initialize the reporter.

        Args:
            sink: ReportSink receiving the finished reports
        """
        self.sink = sink
        self.logger = logging.getLogger(__name__)

    def report(self, aggregate: RankedAggregate, header: str,
               key_label: str, value_label: str) -> Report:
        """
        Build a report from an aggregate and emit it.

        Args:
            aggregate: Aggregate to report
            header: Report title
            key_label: Label of the key column
            value_label: Label of the value column

        Returns:
            The emitted Report
        """
        report = Report(
            header=header,
            key_label=key_label,
            value_label=value_label,
            rows=list(aggregate.ranked_view())
        )

        self.logger.debug(f"Reporting '{header}' ({len(report.rows)} rows)")
        self.sink.emit_report(report)
        return report
