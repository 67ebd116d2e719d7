from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional

from behavior_analyzer.common.dataclasses import TrajectorySampling
from behavior_analyzer.common.enums import StreamType
from behavior_analyzer.common.result import NotReady, Ready, Result
from behavior_analyzer.planning.buffer.time_window_buffer import DEFAULT_WINDOW_SPAN, TimedRecord, TimeWindowBuffer

logger = logging.getLogger(__name__)


def _default_time_key(value: Any) -> int:
    return value.timestamp


# transform batches carry their stamp in the first transform, resolved by TransformBatch.timestamp
STREAM_TIME_KEYS: Dict[StreamType, Callable[[Any], int]] = {stream: _default_time_key for stream in StreamType}


class SynchronizedSnapshot:
    """Buffers of all input streams, evicted in lockstep relative to one logical clock."""

    def __init__(
        self,
        timestamp: int = 0,
        window_span: int = DEFAULT_WINDOW_SPAN,
        time_keys: Optional[Dict[StreamType, Callable[[Any], int]]] = None,
    ):
        """
        Initializes the SynchronizedSnapshot class.
        :param timestamp: initial logical timestamp [ns]
        :param window_span: readiness span [ns] shared by all buffers
        :param time_keys: optional per stream overrides of the timestamp extraction
        """
        self._timestamp = timestamp
        time_keys = {**STREAM_TIME_KEYS, **(time_keys or {})}
        self._buffers: Dict[StreamType, TimeWindowBuffer] = {
            stream: TimeWindowBuffer(time_key=time_keys[stream], window_span=window_span) for stream in StreamType
        }

    @property
    def timestamp(self) -> int:
        return self._timestamp

    def buffer(self, stream: StreamType) -> TimeWindowBuffer:
        return self._buffers[stream]

    def append(self, stream: StreamType, value: Any) -> TimedRecord:
        """
        Appends a value to the buffer of its stream.
        :param stream: stream type of the value
        :param value: timestamped payload
        :return: the inserted record
        """
        return self._buffers[stream].append(value)

    def advance(self, dt: int) -> None:
        """
        Moves the logical clock forward and evicts all buffers at the new timestamp.
        :param dt: time step [ns]
        """
        self._timestamp += dt
        self.evict()

    def evict(self) -> None:
        for stream, buffer in self._buffers.items():
            num_evicted = buffer.evict(self._timestamp)
            if num_evicted:
                logger.debug(f"Evicted {num_evicted} records from {stream.value} buffer")

    def is_ready(self) -> bool:
        """
        :return: whether every buffer holds enough history
        """
        return all(buffer.is_ready() for buffer in self._buffers.values())

    def query(
        self,
        stream: StreamType,
        step: int = 0,
        trajectory_sampling: Optional[TrajectorySampling] = None,
    ) -> Optional[TimedRecord]:
        """
        Samples a stream at a horizon step relative to the logical timestamp.
        :param stream: stream type to sample
        :param step: horizon step index, defaults to the current timestamp
        :param trajectory_sampling: horizon resolution, required for non-zero steps
        :return: first record after the step time, None if the buffer ran out
        """
        offset = 0
        if step != 0:
            assert trajectory_sampling is not None, "SynchronizedSnapshot: step offsets require a trajectory sampling!"
            offset = trajectory_sampling.step_offset(step)
        return self._buffers[stream].query_after(self._timestamp + offset)

    def collect(self, stream: StreamType, trajectory_sampling: TrajectorySampling) -> Result[List[Any]]:
        """
        Samples a stream at every step of the horizon.
        :param stream: stream type to sample
        :param trajectory_sampling: horizon of num_poses steps
        :return: Ready with num_poses values, or NotReady if the buffer ran out
        """
        values: List[Any] = []
        for step in range(trajectory_sampling.num_poses):
            record = self.query(stream, step, trajectory_sampling)
            if record is None:
                return NotReady(
                    f"{stream.value} buffer ran out at step {step} of {trajectory_sampling.num_poses} "
                    f"after timestamp {self._timestamp}"
                )
            values.append(record.value)
        return Ready(values)
