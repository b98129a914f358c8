# etrace/collector/aggregator.py - Counting and duration aggregation
"""
Accumulates numeric values (counts or durations) per string key and
exposes them ranked by value for reporting.
"""

from typing import Dict, Iterator, Tuple, Union


Number = Union[int, float]


class RankedView:
    """
    Read-only view of an aggregate, ordered by value descending.

    The ordering is computed on each iteration, so the view can be iterated
    any number of times and always reflects the current values. Ties keep
    the order in which keys were first added.
    """

    def __init__(self, values: Dict[str, Number]):
        self._values = values

    def __iter__(self) -> Iterator[Tuple[str, Number]]:
        # sorted() is stable, also with reverse=True
        return iter(sorted(self._values.items(), key=lambda item: item[1], reverse=True))

    def __len__(self) -> int:
        return len(self._values)


class RankedAggregate:
    """
    Mapping from key to an accumulated value.

    Used both for event counts (integer deltas) and for latencies in
    milliseconds (float deltas). Not thread-safe; each processor owns its
    aggregates exclusively.
    """

    def __init__(self):
        self._values: Dict[str, Number] = {}

    def add(self, key: str, delta: Number = 1):
        """
        Accumulate a value under a key.

        Args:
            key: Aggregation key
            delta: Amount to add (inserted as-is when the key is new)
        """
        if key in self._values:
            self._values[key] = self._values[key] + delta
        else:
            self._values[key] = delta

    def merge(self, other: 'RankedAggregate'):
        """
        Add every entry of another aggregate into this one.

        Args:
            other: Aggregate to merge (left unchanged)
        """
        for key, value in other.to_dict().items():
            self.add(key, value)

    def ranked_view(self) -> RankedView:
        """
        Get the entries ordered by value descending.

        Returns:
            Restartable iterable of (key, value) tuples
        """
        return RankedView(self._values)

    def get(self, key: str, default: Number = 0) -> Number:
        return self._values.get(key, default)

    def total(self) -> Number:
        """Sum of all accumulated values"""
        return sum(self._values.values())

    def to_dict(self) -> Dict[str, Number]:
        """Copy of the entries in insertion order"""
        return dict(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __contains__(self, key: str) -> bool:
        return key in self._values
