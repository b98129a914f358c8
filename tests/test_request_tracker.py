# tests/test_request_tracker.py - Tests for request correlation
"""
Unit tests for URI normalization and the CorrelationTracker class.
"""

import logging
import pytest
from etrace.collector.event_handler import TraceEvent, HTTP_BEGIN_EVENT, HTTP_END_EVENT
from etrace.collector.filters import ParsedFilter, ProcessScopeFilter
from etrace.collector.request_tracker import CorrelationTracker, normalize_operation_key


def begin(correlation_id, pid, uri, timestamp_ms):
    return TraceEvent(
        event_name=HTTP_BEGIN_EVENT, process_id=pid, timestamp_ms=timestamp_ms,
        fields={'uri': uri, 'id': correlation_id}
    )


def end(correlation_id, pid, timestamp_ms):
    return TraceEvent(
        event_name=HTTP_END_EVENT, process_id=pid, timestamp_ms=timestamp_ms,
        fields={'id': correlation_id}
    )


class TestNormalizeOperationKey:
    """Test cases for normalize_operation_key"""

    def test_strips_signature_suffix(self):
        """Test the URI is cut at the ?sv marker"""
        assert normalize_operation_key('/x?sv=2020-01-01&rest=1') == '/x'

    def test_truncates_long_uri(self):
        """Test a long URI without marker is cut to 200 characters"""
        uri = '/' + 'a' * 249
        assert len(uri) == 250

        key = normalize_operation_key(uri)

        assert len(key) == 200
        assert key == uri[:200]

    def test_truncates_after_stripping(self):
        """Test truncation applies to what remains after the marker is removed"""
        uri = '/' + 'b' * 300 + '?sv=abc'
        assert normalize_operation_key(uri) == uri[:200]

    def test_short_uri_unchanged(self):
        """Test a short URI without marker is kept as-is"""
        assert normalize_operation_key('/orders/42?page=2') == '/orders/42?page=2'

    def test_custom_length(self):
        """Test a custom maximum length"""
        assert normalize_operation_key('/abcdef', max_length=3) == '/ab'


class TestCorrelationTracker:
    """Test cases for CorrelationTracker"""

    def test_tracker_initialization(self):
        """Test tracker starts with nothing pending"""
        tracker = CorrelationTracker()
        assert tracker.pending == {}
        assert len(tracker.latencies) == 0

    def test_begin_end_pairing(self):
        """Test a begin/end pair produces one latency sample"""
        tracker = CorrelationTracker()

        tracker.begin(begin(7, 42, '/a/b', 100.0))
        elapsed = tracker.end(end(7, 42, 133.5))

        assert elapsed == pytest.approx(33.5)
        assert tracker.latencies.to_dict() == {'/a/b|7|42': pytest.approx(33.5)}
        assert tracker.pending == {}

    def test_scenario_signature_uri(self):
        """Test the signed URI scenario reports one row"""
        tracker = CorrelationTracker()

        tracker.begin(begin(1, 10, '/orders/42?sv=abc', 1000.0))
        tracker.end(end(1, 10, 1250.0))

        assert list(tracker.latencies.ranked_view()) == [('/orders/42|1|10', 250.0)]

    def test_orphan_end_dropped(self):
        """Test an end without a begin records nothing and does not raise"""
        tracker = CorrelationTracker()

        assert tracker.end(end(99, 10, 500.0)) is None
        assert len(tracker.latencies) == 0
        assert tracker.get_stats()['orphaned'] == 1

    def test_second_end_is_orphan(self):
        """Test an end only consumes its pending entry once"""
        tracker = CorrelationTracker()
        tracker.begin(begin(1, 10, '/a', 0.0))

        tracker.end(end(1, 10, 5.0))
        assert tracker.end(end(1, 10, 9.0)) is None

        assert tracker.latencies.to_dict() == {'/a|1|10': 5.0}

    def test_second_begin_supersedes_first(self):
        """Test the latest begin with the same id wins"""
        tracker = CorrelationTracker()

        tracker.begin(begin(2, 10, '/first', 100.0))
        tracker.begin(begin(2, 10, '/second', 300.0))
        tracker.end(end(2, 10, 350.0))

        assert tracker.latencies.to_dict() == {'/second|2|10': 50.0}
        assert tracker.get_stats()['superseded'] == 1

    def test_concurrent_requests_by_id(self):
        """Test overlapping requests are paired by their own ids"""
        tracker = CorrelationTracker()

        tracker.begin(begin(1, 10, '/a', 0.0))
        tracker.begin(begin(2, 10, '/a', 10.0))
        tracker.end(end(2, 10, 15.0))
        tracker.end(end(1, 10, 40.0))

        assert tracker.latencies.to_dict() == {'/a|2|10': 5.0, '/a|1|10': 40.0}

    def test_process_filter_excludes_other_processes(self):
        """Test events of other processes never reach the aggregate"""
        tracker = CorrelationTracker(ProcessScopeFilter([ParsedFilter('ProcessId', '10')]))

        assert tracker.begin(begin(1, 11, '/other', 0.0)) is None
        tracker.begin(begin(2, 10, '/mine', 0.0))
        tracker.end(end(1, 11, 5.0))
        tracker.end(end(2, 10, 7.0))

        assert tracker.latencies.to_dict() == {'/mine|2|10': 7.0}
        assert (11, 1) not in tracker.pending

    def test_empty_uri_dropped(self):
        """Test a begin with an empty key never produces a sample"""
        tracker = CorrelationTracker()

        tracker.begin(begin(3, 10, '', 0.0))

        assert tracker.end(end(3, 10, 5.0)) is None
        assert len(tracker.latencies) == 0
        assert tracker.pending == {}

    def test_empty_uri_consumed_by_end(self):
        """Test a URI-less request is not counted again at restart or close"""
        tracker = CorrelationTracker()

        tracker.begin(begin(3, 10, '', 0.0))
        tracker.end(end(3, 10, 5.0))
        tracker.begin(begin(3, 10, '/next', 6.0))
        tracker.end(end(3, 10, 8.0))

        stats = tracker.get_stats()
        assert stats['superseded'] == 0
        assert stats['orphaned'] == 1
        assert tracker.abandon() == 0
        assert tracker.latencies.to_dict() == {'/next|3|10': 2.0}

    def test_same_id_in_different_processes(self):
        """Test equal correlation ids from two processes are tracked separately"""
        tracker = CorrelationTracker()

        tracker.begin(begin(1, 10, '/a', 0.0))
        tracker.begin(begin(1, 20, '/b', 5.0))
        tracker.end(end(1, 10, 30.0))
        tracker.end(end(1, 20, 15.0))

        assert tracker.latencies.to_dict() == {'/a|1|10': 30.0, '/b|1|20': 10.0}
        assert tracker.get_stats()['superseded'] == 0

    def test_negative_elapsed_dropped(self, caplog):
        """Test an end stamped before its begin is dropped with a warning"""
        caplog.set_level(logging.WARNING)
        tracker = CorrelationTracker()

        tracker.begin(begin(4, 10, '/late', 100.0))

        assert tracker.end(end(4, 10, 90.0)) is None
        assert len(tracker.latencies) == 0
        assert tracker.pending == {}
        assert tracker.get_stats()['negative'] == 1
        assert 'end precedes begin' in caplog.text

    def test_zero_elapsed_recorded(self):
        """Test an end with the same timestamp records zero"""
        tracker = CorrelationTracker()

        tracker.begin(begin(5, 10, '/fast', 100.0))
        tracker.end(end(5, 10, 100.0))

        assert tracker.latencies.to_dict() == {'/fast|5|10': 0.0}

    def test_abandon_drops_pending(self):
        """Test pending requests are dropped at end of stream"""
        tracker = CorrelationTracker()
        tracker.begin(begin(1, 10, '/a', 0.0))
        tracker.begin(begin(2, 10, '/b', 0.0))

        assert tracker.abandon() == 2
        assert tracker.pending == {}
        assert len(tracker.latencies) == 0
        assert tracker.get_stats()['abandoned'] == 2
