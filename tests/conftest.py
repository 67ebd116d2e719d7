from typing import Callable

import pytest

from behavior_analyzer.common.dataclasses import (
    NANOSECONDS_PER_SECOND,
    Acceleration,
    Odometry,
    Pose,
    PredictedObjects,
    SteeringReport,
    Trajectory,
    TrajectoryPoint,
    TransformBatch,
    TransformStamped,
)
from behavior_analyzer.planning.log_caching.stream_log import StreamLog

RECORD_PERIOD: int = NANOSECONDS_PER_SECOND // 10  # [ns]


def straight_plan(timestamp: int, start_x: float, speed: float, num_points: int = 21, spacing: float = 5.0) -> Trajectory:
    """Plan along the x-axis starting at start_x."""
    points = tuple(
        TrajectoryPoint(
            pose=Pose.from_xy_heading(start_x + spacing * index, 0.0, 0.0),
            longitudinal_velocity=speed,
            acceleration=0.0,
            front_wheel_angle=0.0,
            time_from_start=spacing * index / speed,
        )
        for index in range(num_points)
    )
    return Trajectory(timestamp=timestamp, points=points)


def build_straight_stream_log(duration: float = 30.0, speed: float = 10.0, log_name: str = "straight") -> StreamLog:
    """Stream log of ego driving along the x-axis at constant speed, all streams at 10Hz."""
    stream_log = StreamLog(log_name=log_name)
    num_records = int(round(duration * NANOSECONDS_PER_SECOND / RECORD_PERIOD)) + 1
    for index in range(num_records):
        timestamp = index * RECORD_PERIOD
        x = speed * index * RECORD_PERIOD / NANOSECONDS_PER_SECOND
        pose = Pose.from_xy_heading(x, 0.0, 0.0)
        stream_log.odometry.append(Odometry(timestamp=timestamp, pose=pose, linear_velocity=(speed, 0.0, 0.0)))
        stream_log.acceleration.append(Acceleration(timestamp=timestamp, longitudinal_acceleration=0.0))
        stream_log.steering.append(SteeringReport(timestamp=timestamp, steering_tire_angle=0.0))
        stream_log.objects.append(PredictedObjects(timestamp=timestamp))
        stream_log.transforms.append(
            TransformBatch(transforms=(TransformStamped(timestamp, "map", "base_link", pose),))
        )
        stream_log.trajectory.append(straight_plan(timestamp, x, speed))
    return stream_log


@pytest.fixture
def straight_stream_log() -> Callable[..., StreamLog]:
    return build_straight_stream_log


@pytest.fixture
def plan_factory() -> Callable[..., Trajectory]:
    return straight_plan


@pytest.fixture
def record_period() -> int:
    return RECORD_PERIOD
