from __future__ import annotations

from bisect import bisect_left, bisect_right
from dataclasses import dataclass
from operator import attrgetter
from typing import Callable, Generic, List, Optional, Tuple, TypeVar

from behavior_analyzer.common.dataclasses import NANOSECONDS_PER_SECOND
from behavior_analyzer.common.errors import EmptyBufferError, NonMonotonicAppendError

T = TypeVar("T")

DEFAULT_WINDOW_SPAN: int = 20 * NANOSECONDS_PER_SECOND  # [ns]


@dataclass(frozen=True)
class TimedRecord(Generic[T]):
    """Value paired with its timestamp in nanoseconds."""

    timestamp: int
    value: T


class TimeWindowBuffer(Generic[T]):
    """
    Time ordered store of records, shrunk by age based eviction.
    Records are kept in insertion order, which has to be the order of their timestamps.
    """

    def __init__(
        self,
        time_key: Callable[[T], int] = attrgetter("timestamp"),
        window_span: int = DEFAULT_WINDOW_SPAN,
    ):
        """
        Initializes the TimeWindowBuffer class.
        :param time_key: function extracting the timestamp [ns] from an appended value
        :param window_span: span [ns] the buffered records must exceed to be ready
        """
        assert window_span >= 0, "TimeWindowBuffer: window_span must be non-negative!"

        self._time_key = time_key
        self._window_span = window_span

        # parallel lists, timestamps are searched with bisect
        self._records: List[TimedRecord[T]] = []
        self._timestamps: List[int] = []

    def __len__(self) -> int:
        return len(self._records)

    @property
    def window_span(self) -> int:
        return self._window_span

    @property
    def time_key(self) -> Callable[[T], int]:
        return self._time_key

    def append(self, value: T) -> TimedRecord[T]:
        """
        Inserts a value at the back of the buffer.
        :param value: value with a timestamp readable by the buffer's time key
        :raises NonMonotonicAppendError: if the value is older than the newest record
        :return: the inserted record
        """
        timestamp = int(self._time_key(value))
        if self._timestamps and timestamp < self._timestamps[-1]:
            raise NonMonotonicAppendError(
                f"Cannot append record at {timestamp} behind newest record at {self._timestamps[-1]}"
            )

        record = TimedRecord(timestamp=timestamp, value=value)
        self._records.append(record)
        self._timestamps.append(timestamp)
        return record

    def evict(self, now: int) -> int:
        """
        Removes every record strictly older than now.
        :param now: eviction time [ns]
        :return: number of removed records
        """
        num_evicted = bisect_left(self._timestamps, now)
        if num_evicted > 0:
            del self._records[:num_evicted]
            del self._timestamps[:num_evicted]
        return num_evicted

    def front(self) -> TimedRecord[T]:
        """
        :raises EmptyBufferError: if no record is buffered
        :return: the earliest record
        """
        if not self._records:
            raise EmptyBufferError("Cannot access front of an empty buffer")
        return self._records[0]

    def query_after(self, timestamp: int) -> Optional[TimedRecord[T]]:
        """
        Looks up the first record strictly after a timestamp.
        :param timestamp: query time [ns]
        :return: earliest record with a larger timestamp, None if there is none
        """
        index = bisect_right(self._timestamps, timestamp)
        if index < len(self._records):
            return self._records[index]
        return None

    def is_ready(self) -> bool:
        """
        :return: whether the buffered records span more than the window span
        """
        if not self._records:
            return False
        return self._timestamps[-1] - self._timestamps[0] > self._window_span

    def snapshot_all(self) -> Tuple[TimedRecord[T], ...]:
        """
        :return: read-only view on all buffered records, oldest first
        """
        return tuple(self._records)
