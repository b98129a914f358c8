# etrace/exporters/stdout.py - Console output exporter
"""
Writes processor output to stdout in human-readable format.
"""

from typing import IO, List, Optional, Sequence, Tuple
from colorama import Fore, Style, init
import sys

from etrace.exporters.base import ReportSink
from etrace.utils.helpers import format_value

# Initialize colorama
init(autoreset=True)


class StdoutExporter(ReportSink):
    """
    Prints reports as boxed two-column tables, raw events as plain lines,
    and field tables as fixed-width columns.
    """

    def __init__(self, use_colors: bool = True, stream: Optional[IO[str]] = None):
        """
        Initialize the stdout exporter.

        Args:
            use_colors: Whether to use colored output
            stream: Output stream (default: current sys.stdout)
        """
        self.use_colors = use_colors
        self.stream = stream
        self.columns: List[Tuple[str, int]] = []

    def emit_report(self, report):
        rows = [(str(key), format_value(value)) for key, value in report.rows]

        key_width = max([len(report.key_label)] + [len(key) for key, _ in rows])
        value_width = max([len(report.value_label)] + [len(value) for _, value in rows])
        separator = f"+{'-' * (key_width + 2)}+{'-' * (value_width + 2)}+"

        self._write(self._colored(Fore.CYAN, report.header))
        self._write(separator)
        self._write(f"| {report.key_label:<{key_width}} | {report.value_label:<{value_width}} |")
        self._write(separator)
        for key, value in rows:
            self._write(f"| {key:<{key_width}} | {value:>{value_width}} |")
        self._write(separator)
        self._write(f" Count: {len(rows)}")
        self._write("")

    def emit_line(self, text: str):
        self._write(text)

    def emit_table_header(self, columns: List[Tuple[str, int]]):
        self.columns = list(columns)
        header = "".join(self._cell(name, width) for name, width in self.columns)
        self._write(self._colored(Fore.YELLOW, header.rstrip()))
        self._write("-" * sum(width for _, width in self.columns))

    def emit_table_row(self, values: Sequence):
        widths = [width for _, width in self.columns]
        self._write("".join(self._cell(value, width) for value, width in zip(values, widths)).rstrip())

    @staticmethod
    def _cell(value, width: int) -> str:
        # Keep one space between columns
        text = str(value)
        if len(text) >= width:
            text = text[:max(width - 1, 0)]
        return text.ljust(width)

    def _colored(self, color: str, text: str) -> str:
        if not self.use_colors:
            return text
        return f"{color}{text}{Style.RESET_ALL}"

    def _write(self, text: str):
        print(text, file=self.stream or sys.stdout)
