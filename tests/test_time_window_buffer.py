from dataclasses import dataclass

import pytest

from behavior_analyzer.common.dataclasses import NANOSECONDS_PER_SECOND, Pose, TransformBatch, TransformStamped
from behavior_analyzer.common.errors import EmptyBufferError, NonMonotonicAppendError
from behavior_analyzer.planning.buffer.time_window_buffer import TimeWindowBuffer


@dataclass(frozen=True)
class Stamped:
    timestamp: int
    payload: str = ""


def seconds(value: float) -> int:
    return int(round(value * NANOSECONDS_PER_SECOND))


def test_buffer_not_ready_until_window_exceeded():
    """Three records within 5s are not ready, a fourth at +21s makes the buffer ready."""
    buffer: TimeWindowBuffer[Stamped] = TimeWindowBuffer(window_span=seconds(20.0))
    for time_s in [0.0, 2.5, 5.0]:
        buffer.append(Stamped(seconds(time_s)))
    assert not buffer.is_ready()

    buffer.append(Stamped(seconds(21.0)))
    assert buffer.is_ready()


def test_buffer_span_equal_to_window_is_not_ready():
    """Readiness requires the span to strictly exceed the window."""
    buffer: TimeWindowBuffer[Stamped] = TimeWindowBuffer(window_span=seconds(20.0))
    buffer.append(Stamped(0))
    buffer.append(Stamped(seconds(20.0)))
    assert not buffer.is_ready()


def test_empty_buffer_behaviour():
    """Empty buffers are not ready, evict is a no-op and front raises."""
    buffer: TimeWindowBuffer[Stamped] = TimeWindowBuffer()
    assert not buffer.is_ready()
    assert buffer.evict(seconds(100.0)) == 0
    assert buffer.query_after(0) is None
    assert buffer.snapshot_all() == ()
    with pytest.raises(EmptyBufferError):
        buffer.front()


def test_evict_removes_strictly_older_records():
    """Records at the eviction time survive, older ones are dropped in order."""
    buffer: TimeWindowBuffer[Stamped] = TimeWindowBuffer()
    for timestamp, payload in [(10, "a"), (20, "b"), (20, "c"), (30, "d")]:
        buffer.append(Stamped(timestamp, payload))

    assert buffer.evict(20) == 1
    assert [record.value.payload for record in buffer.snapshot_all()] == ["b", "c", "d"]
    assert buffer.front().timestamp == 20


def test_query_after_is_strict():
    """query_after returns the earliest record with a larger timestamp."""
    buffer: TimeWindowBuffer[Stamped] = TimeWindowBuffer()
    for timestamp, payload in [(10, "a"), (20, "b"), (20, "c"), (30, "d")]:
        buffer.append(Stamped(timestamp, payload))

    assert buffer.query_after(5).value.payload == "a"
    assert buffer.query_after(10).value.payload == "b"
    assert buffer.query_after(15).value.payload == "b"
    assert buffer.query_after(20).value.payload == "d"
    assert buffer.query_after(30) is None


def test_query_after_eviction():
    """After eviction, lookups only see the remaining records."""
    buffer: TimeWindowBuffer[Stamped] = TimeWindowBuffer()
    for timestamp in range(0, 100, 10):
        buffer.append(Stamped(timestamp))

    buffer.evict(45)
    assert buffer.query_after(0).timestamp == 50
    assert buffer.query_after(85).timestamp == 90
    assert len(buffer) == 5


def test_readiness_kept_when_appending_newer_records():
    """Once ready, appending newer records keeps the buffer ready."""
    buffer: TimeWindowBuffer[Stamped] = TimeWindowBuffer(window_span=seconds(1.0))
    buffer.append(Stamped(0))
    buffer.append(Stamped(seconds(1.5)))
    assert buffer.is_ready()
    for time_s in [2.0, 3.0, 10.0]:
        buffer.append(Stamped(seconds(time_s)))
        assert buffer.is_ready()

    buffer.evict(seconds(9.5))
    assert not buffer.is_ready()


def test_non_monotonic_append_raises():
    """Appending a record older than the newest one is rejected."""
    buffer: TimeWindowBuffer[Stamped] = TimeWindowBuffer()
    buffer.append(Stamped(20))
    buffer.append(Stamped(20))
    with pytest.raises(NonMonotonicAppendError):
        buffer.append(Stamped(10))
    assert len(buffer) == 2


def test_nested_timestamp_key():
    """Transform batches are ordered by the stamp of their first transform."""
    buffer: TimeWindowBuffer[TransformBatch] = TimeWindowBuffer()
    pose = Pose(0.0, 0.0)
    for timestamp in [100, 200]:
        buffer.append(
            TransformBatch(
                transforms=(
                    TransformStamped(timestamp, "map", "base_link", pose),
                    TransformStamped(timestamp + 50, "base_link", "lidar", pose),
                )
            )
        )

    assert buffer.front().timestamp == 100
    assert buffer.query_after(120).timestamp == 200

    with pytest.raises(ValueError):
        buffer.append(TransformBatch(transforms=()))


def test_custom_time_key():
    """The comparison key is supplied per stream."""
    buffer: TimeWindowBuffer[dict] = TimeWindowBuffer(time_key=lambda value: value["stamp"])
    buffer.append({"stamp": 5})
    buffer.append({"stamp": 7})
    assert buffer.query_after(5).value == {"stamp": 7}
