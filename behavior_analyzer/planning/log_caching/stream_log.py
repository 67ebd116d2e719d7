from __future__ import annotations

import lzma
import pickle
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterator, List, Tuple

from behavior_analyzer.common.dataclasses import (
    Acceleration,
    Odometry,
    PredictedObjects,
    SteeringReport,
    Trajectory,
    TransformBatch,
)
from behavior_analyzer.common.enums import StreamType


@dataclass
class StreamLog:
    """Dataclass for storing the recorded input streams of one drive."""

    log_name: str
    transforms: List[TransformBatch] = field(default_factory=list)
    odometry: List[Odometry] = field(default_factory=list)
    objects: List[PredictedObjects] = field(default_factory=list)
    acceleration: List[Acceleration] = field(default_factory=list)
    steering: List[SteeringReport] = field(default_factory=list)
    trajectory: List[Trajectory] = field(default_factory=list)

    def records(self, stream: StreamType) -> List[Any]:
        """
        :param stream: stream type
        :return: recorded values of the stream
        """
        return self._stream_records()[stream]

    def _stream_records(self) -> Dict[StreamType, List[Any]]:
        return {
            StreamType.TRANSFORM: self.transforms,
            StreamType.ODOMETRY: self.odometry,
            StreamType.OBJECTS: self.objects,
            StreamType.ACCELERATION: self.acceleration,
            StreamType.STEERING: self.steering,
            StreamType.TRAJECTORY: self.trajectory,
        }

    def iter_stream_records(self) -> Iterator[Tuple[StreamType, Any]]:
        """
        Iterates all records of all streams, each stream in recorded order.
        :return: iterator of stream type and value
        """
        for stream, records in self._stream_records().items():
            for record in records:
                yield stream, record

    @property
    def start_timestamp(self) -> int:
        """
        :return: earliest odometry timestamp [ns]
        """
        assert len(self.odometry) > 0, f"StreamLog {self.log_name} holds no odometry"
        return self.odometry[0].timestamp

    @property
    def end_timestamp(self) -> int:
        """
        :return: latest odometry timestamp [ns]
        """
        assert len(self.odometry) > 0, f"StreamLog {self.log_name} holds no odometry"
        return self.odometry[-1].timestamp

    def dump(self, file_path: Path) -> None:
        """Dump stream log to pickle with lzma compression."""
        file_path.parent.mkdir(parents=True, exist_ok=True)
        pickle_object = pickle.dumps(self, protocol=pickle.HIGHEST_PROTOCOL)
        with open(file_path, "wb") as f:
            f.write(lzma.compress(pickle_object, preset=0))
