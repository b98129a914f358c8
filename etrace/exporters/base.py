# etrace/exporters/base.py - Report sink interface
"""
Interface shared by all output sinks.
"""

from abc import ABC, abstractmethod
from typing import List, Sequence, Tuple


class ReportSink(ABC):
    """
    Destination for processor output.

    Processors decide what is printed and in which order; sinks only
    decide how it looks.
    """

    @abstractmethod
    def emit_report(self, report):
        """Write a finished Report"""

    @abstractmethod
    def emit_line(self, text: str):
        """Write one free-form line (raw event descriptions)"""

    @abstractmethod
    def emit_table_header(self, columns: List[Tuple[str, int]]):
        """Start a table with (name, width) columns"""

    @abstractmethod
    def emit_table_row(self, values: Sequence):
        """Write one row of the current table"""

    def close(self):
        """Flush any buffered output"""
