from behavior_analyzer.common.dataclasses import NANOSECONDS_PER_SECOND, TrajectorySampling
from behavior_analyzer.common.enums import StreamType
from behavior_analyzer.common.result import NotReady, Ready
from behavior_analyzer.planning.buffer.synchronized_snapshot import SynchronizedSnapshot


def fill_snapshot(snapshot: SynchronizedSnapshot, stream_log) -> None:
    for stream, value in stream_log.iter_stream_records():
        snapshot.append(stream, value)


def test_snapshot_ready_requires_all_buffers(straight_stream_log):
    """Readiness is the conjunction of all buffers."""
    stream_log = straight_stream_log(duration=25.0)
    snapshot = SynchronizedSnapshot()
    assert not snapshot.is_ready()

    for stream, value in stream_log.iter_stream_records():
        if stream != StreamType.STEERING:
            snapshot.append(stream, value)
    assert not snapshot.is_ready()

    for value in stream_log.steering:
        snapshot.append(StreamType.STEERING, value)
    assert snapshot.is_ready()


def test_advance_evicts_all_buffers_in_lockstep(straight_stream_log):
    """Advancing moves the clock and evicts every buffer at the new timestamp."""
    snapshot = SynchronizedSnapshot()
    fill_snapshot(snapshot, straight_stream_log(duration=25.0))

    snapshot.advance(3 * NANOSECONDS_PER_SECOND)
    assert snapshot.timestamp == 3 * NANOSECONDS_PER_SECOND
    for stream in StreamType:
        assert snapshot.buffer(stream).front().timestamp == 3 * NANOSECONDS_PER_SECOND

    # 22s left in every buffer, still more than the window
    assert snapshot.is_ready()
    snapshot.advance(3 * NANOSECONDS_PER_SECOND)
    assert not snapshot.is_ready()


def test_query_relative_to_logical_timestamp(straight_stream_log, record_period):
    """Stream samples are taken strictly after timestamp + step offset."""
    snapshot = SynchronizedSnapshot(timestamp=NANOSECONDS_PER_SECOND)
    fill_snapshot(snapshot, straight_stream_log(duration=25.0))
    trajectory_sampling = TrajectorySampling(num_poses=4, interval_length=0.5)

    assert snapshot.query(StreamType.ODOMETRY).timestamp == NANOSECONDS_PER_SECOND + record_period
    record = snapshot.query(StreamType.ODOMETRY, step=2, trajectory_sampling=trajectory_sampling)
    assert record.timestamp == 2 * NANOSECONDS_PER_SECOND + record_period


def test_collect_returns_ready_with_num_poses_values(straight_stream_log):
    """Collecting a full horizon yields one value per step."""
    snapshot = SynchronizedSnapshot()
    fill_snapshot(snapshot, straight_stream_log(duration=25.0))
    trajectory_sampling = TrajectorySampling(num_poses=5, interval_length=0.5)

    result = snapshot.collect(StreamType.ACCELERATION, trajectory_sampling)
    assert isinstance(result, Ready)
    assert len(result.value) == 5


def test_collect_returns_not_ready_when_buffer_runs_out(straight_stream_log):
    """A horizon exceeding the buffered records is reported as not ready."""
    snapshot = SynchronizedSnapshot()
    fill_snapshot(snapshot, straight_stream_log(duration=2.0))
    trajectory_sampling = TrajectorySampling(num_poses=10, interval_length=0.5)

    result = snapshot.collect(StreamType.OBJECTS, trajectory_sampling)
    assert isinstance(result, NotReady)
    assert not result.is_ready
    assert "objects" in result.reason
