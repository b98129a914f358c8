# etrace/exporters/json_exporter.py - JSON format exporter
"""
Collects processor output and writes it as a single JSON document.
"""

import json
import sys
from pathlib import Path
from datetime import datetime
from typing import Dict, List, Optional, Sequence, Tuple
import logging

from etrace.exporters.base import ReportSink


class JSONExporter(ReportSink):
    """
    Exports processor output to JSON format.

    Output is buffered until close(), then written to the output file or,
    without one, to stdout.
    """

    def __init__(self, output_path: Optional[str] = None):
        """
        Initialize the JSON exporter.

        Args:
            output_path: File to write (default: stdout)
        """
        self.output_path = Path(output_path) if output_path else None
        self.reports: List[Dict] = []
        self.lines: List[str] = []
        self.columns: List[Tuple[str, int]] = []
        self.rows: List[List] = []
        self.closed = False

        self.logger = logging.getLogger(__name__)

    def emit_report(self, report):
        self.reports.append(report.to_dict())

    def emit_line(self, text: str):
        self.lines.append(text)

    def emit_table_header(self, columns: List[Tuple[str, int]]):
        self.columns = list(columns)

    def emit_table_row(self, values: Sequence):
        self.rows.append([self._jsonable(value) for value in values])

    def to_dict(self) -> Dict:
        """
        Build the output document.

        Returns:
            Dictionary with the sections that received output
        """
        document = {'timestamp': datetime.now().isoformat()}

        if self.reports:
            document['reports'] = self.reports
        if self.lines:
            document['events'] = self.lines
        if self.columns:
            document['table'] = {
                'columns': [name for name, _ in self.columns],
                'rows': self.rows
            }

        return document

    def close(self):
        """
        Write the document. Only the first call writes.
        """
        if self.closed:
            return
        self.closed = True

        document = self.to_dict()

        if self.output_path is None:
            json.dump(document, sys.stdout, indent=2)
            sys.stdout.write('\n')
            return

        self.output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.output_path, 'w') as f:
            json.dump(document, f, indent=2)

        self.logger.info(f"Exported {len(self.reports)} report(s) to {self.output_path}")

    @staticmethod
    def _jsonable(value):
        if value is None or isinstance(value, (str, int, float, bool)):
            return value
        return str(value)
