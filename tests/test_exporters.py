# tests/test_exporters.py - Tests for report sinks
"""
Unit tests for the stdout, JSON and Prometheus exporters.
"""

import importlib
import io
import json
import pytest
from unittest.mock import patch
from etrace.collector.event_handler import TraceEvent, HTTP_BEGIN_EVENT
from etrace.collector.aggregator import RankedAggregate
from etrace.collector.processors import EventStatisticsAggregator, HttpCallCountAggregator
from etrace.collector.reporter import Report, Reporter
from etrace.exporters.json_exporter import JSONExporter
from etrace.exporters.prometheus import PrometheusExporter
from etrace.exporters import stdout
from etrace.exporters.stdout import StdoutExporter
from etrace.utils.config import ProcessorOptions


def latency_report():
    return Report('HttpCalls', 'HttpRequests', 'LatencyTime(ms)',
                  rows=[('/orders/42|1|10', 250.0), ('/a|2|10', 1.5)])


class TestReporter:
    """Test cases for Reporter"""

    def test_report_ranks_and_labels(self):
        """Test the reporter hands a ranked, labelled report to the sink"""
        stream = io.StringIO()
        sink = StdoutExporter(use_colors=False, stream=stream)
        aggregate = RankedAggregate()
        aggregate.add('b', 1)
        aggregate.add('a', 3)

        report = Reporter(sink).report(aggregate, 'Events by name', 'Event', 'Count')

        assert report.rows == [('a', 3), ('b', 1)]
        assert report.to_dict()['rows'] == [{'key': 'a', 'value': 3}, {'key': 'b', 'value': 1}]
        assert 'Events by name' in stream.getvalue()


class TestStdoutExporter:
    """Test cases for StdoutExporter"""

    def test_colorama_initialized_on_import(self):
        """Test colorama is initialized with autoreset when the module loads"""
        with patch('colorama.init') as init:
            importlib.reload(stdout)

        init.assert_called_once_with(autoreset=True)

    def test_print_report(self):
        """Test a report prints as a two-column table"""
        stream = io.StringIO()
        exporter = StdoutExporter(use_colors=False, stream=stream)

        exporter.emit_report(latency_report())

        lines = stream.getvalue().splitlines()
        assert lines[0] == 'HttpCalls'
        assert lines[1] == '+-----------------+-----------------+'
        assert lines[2] == '| HttpRequests    | LatencyTime(ms) |'
        assert lines[4] == '| /orders/42|1|10 |         250.000 |'
        assert lines[5] == '| /a|2|10         |           1.500 |'
        assert ' Count: 2' in lines

    def test_print_empty_report(self):
        """Test an empty report still prints its header and labels"""
        stream = io.StringIO()
        exporter = StdoutExporter(use_colors=False, stream=stream)

        exporter.emit_report(Report('Events by name', 'Event', 'Count'))

        output = stream.getvalue()
        assert '| Event | Count |' in output
        assert ' Count: 0' in output

    def test_print_table(self):
        """Test table rows are padded and truncated to column widths"""
        stream = io.StringIO()
        exporter = StdoutExporter(use_colors=False, stream=stream)

        exporter.emit_table_header([('EventName', 8), ('ProcessID', 10)])
        exporter.emit_table_row(['GetResponseStart', 42])

        lines = stream.getvalue().splitlines()
        assert lines[0] == 'EventNa ProcessID'
        assert lines[2] == 'GetResp 42'

    def test_print_line(self, capsys):
        """Test raw lines go to stdout by default"""
        StdoutExporter(use_colors=False).emit_line('raw event')
        assert capsys.readouterr().out == 'raw event\n'


class TestJSONExporter:
    """Test cases for JSONExporter"""

    def test_export_to_file(self, tmp_path):
        """Test reports are written on close"""
        path = tmp_path / 'out' / 'report.json'
        exporter = JSONExporter(str(path))

        exporter.emit_report(latency_report())
        assert not path.exists()
        exporter.close()

        data = json.loads(path.read_text())
        assert data['reports'][0]['header'] == 'HttpCalls'
        assert data['reports'][0]['rows'][0] == {'key': '/orders/42|1|10', 'value': 250.0}
        assert 'timestamp' in data

    def test_export_table_and_lines(self, tmp_path):
        """Test printed events are included"""
        path = tmp_path / 'events.json'
        exporter = JSONExporter(str(path))

        exporter.emit_line('raw')
        exporter.emit_table_header([('EventName', 10)])
        exporter.emit_table_row(['Foo'])
        exporter.close()

        data = json.loads(path.read_text())
        assert data['events'] == ['raw']
        assert data['table'] == {'columns': ['EventName'], 'rows': [['Foo']]}

    def test_close_writes_once(self, capsys):
        """Test repeated close() writes one document to stdout"""
        exporter = JSONExporter()
        exporter.emit_report(latency_report())

        exporter.close()
        exporter.close()

        data = json.loads(capsys.readouterr().out)
        assert len(data['reports']) == 1


class TestPrometheusExporter:
    """Test cases for PrometheusExporter"""

    def test_report_values(self):
        """Test report rows become gauge samples"""
        exporter = PrometheusExporter()

        exporter.emit_report(latency_report())

        value = exporter.registry.get_sample_value(
            'etrace_report_value', {'report': 'HttpCalls', 'key': '/orders/42|1|10'}
        )
        assert value == pytest.approx(250.0)
        assert exporter.registry.get_sample_value('etrace_report_rows', {'report': 'HttpCalls'}) == 2

    def test_printed_events_counted(self):
        """Test printed lines and rows are counted"""
        exporter = PrometheusExporter()

        exporter.emit_line('raw')
        exporter.emit_table_row(['Foo'])

        assert exporter.registry.get_sample_value('etrace_printed_events_total') == 2

    def test_independent_registries(self):
        """Test two exporters can coexist"""
        PrometheusExporter()
        PrometheusExporter()

    def test_close_writes_metrics(self, tmp_path):
        """Test the exposition text is written on close"""
        path = tmp_path / 'metrics.prom'
        exporter = PrometheusExporter(str(path))
        exporter.emit_report(latency_report())

        exporter.close()

        text = path.read_text()
        assert 'etrace_report_value' in text
        assert 'HttpCalls' in text

    def test_http_count_and_statistics_share_sink(self):
        """Test per-process counts of both processors are kept apart"""
        exporter = PrometheusExporter()
        counter = HttpCallCountAggregator(ProcessorOptions(http_stats_only=True), exporter)
        statistics = EventStatisticsAggregator(exporter)
        events = [
            TraceEvent(HTTP_BEGIN_EVENT, 1, 0.0, fields={'uri': '/a', 'id': 1}),
            TraceEvent('Other', 1, 1.0),
            TraceEvent('Other', 2, 2.0),
            TraceEvent('Other', 2, 3.0),
        ]

        for event in events:
            counter.on_event(event)
            statistics.on_event(event)
        counter.close()
        statistics.close()

        def sample(report, key):
            return exporter.registry.get_sample_value('etrace_report_value', {'report': report, 'key': key})

        assert sample('HttpCalls by process', '1') == 1
        assert sample('Events by process', '1') == 2
        assert sample('Events by process', '2') == 2
        assert exporter.get_metrics_text().count('etrace_report_value{') == 6
