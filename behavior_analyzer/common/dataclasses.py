from __future__ import annotations

from dataclasses import dataclass
from typing import List, Tuple, Union

import numpy as np
import numpy.typing as npt
from pyquaternion import Quaternion

from behavior_analyzer.common.enums import CandidateTag, MetricIndex, ScoreIndex

NANOSECONDS_PER_SECOND: int = 1_000_000_000


@dataclass(frozen=True)
class Pose:
    """Pose in map frame, orientation stored as (w, x, y, z) quaternion."""

    x: float
    y: float
    z: float = 0.0
    orientation: Tuple[float, float, float, float] = (1.0, 0.0, 0.0, 0.0)

    @classmethod
    def from_xy_heading(cls, x: float, y: float, heading: float, z: float = 0.0) -> Pose:
        """
        Builds a planar pose rotated about the vertical axis.
        :param x: x coordinate [m]
        :param y: y coordinate [m]
        :param heading: yaw angle [rad]
        :param z: z coordinate [m], defaults to 0
        :return: pose dataclass
        """
        quaternion = Quaternion(axis=[0.0, 0.0, 1.0], angle=heading)
        return Pose(x=x, y=y, z=z, orientation=tuple(float(value) for value in quaternion.elements))

    @property
    def quaternion(self) -> Quaternion:
        return Quaternion(*self.orientation)

    @property
    def heading(self) -> float:
        return float(self.quaternion.yaw_pitch_roll[0])

    @property
    def position(self) -> npt.NDArray[np.float64]:
        return np.array([self.x, self.y, self.z], dtype=np.float64)

    def rotate(self, vector: npt.ArrayLike) -> npt.NDArray[np.float64]:
        """
        Rotates a vector from the body frame of the pose into the map frame.
        :param vector: (x, y, z) vector in body frame
        :return: vector in map frame
        """
        return np.asarray(self.quaternion.rotate(np.asarray(vector, dtype=np.float64)), dtype=np.float64)


@dataclass(frozen=True)
class Odometry:
    """Ego odometry with velocity in body frame."""

    timestamp: int  # [ns]
    pose: Pose
    linear_velocity: Tuple[float, float, float] = (0.0, 0.0, 0.0)  # [m/s]

    @property
    def longitudinal_velocity(self) -> float:
        return self.linear_velocity[0]


@dataclass(frozen=True)
class Acceleration:
    """Ego acceleration report."""

    timestamp: int  # [ns]
    longitudinal_acceleration: float  # [m/s^2]
    lateral_acceleration: float = 0.0  # [m/s^2]


@dataclass(frozen=True)
class SteeringReport:
    """Measured steering angle of the front tires."""

    timestamp: int  # [ns]
    steering_tire_angle: float  # [rad]


@dataclass(frozen=True)
class PredictedObject:
    """Dynamic object at its current (initial) predicted state."""

    object_id: str
    pose: Pose
    linear_velocity: Tuple[float, float, float] = (0.0, 0.0, 0.0)  # body frame [m/s]


@dataclass(frozen=True)
class PredictedObjects:
    """Set of predicted dynamic objects at one timestamp."""

    timestamp: int  # [ns]
    objects: Tuple[PredictedObject, ...] = ()


@dataclass(frozen=True)
class TransformStamped:
    """Single coordinate transform between two frames."""

    timestamp: int  # [ns]
    frame_id: str
    child_frame_id: str
    pose: Pose


@dataclass(frozen=True)
class TransformBatch:
    """Batch of transforms, stamped by its first transform."""

    transforms: Tuple[TransformStamped, ...]

    @property
    def timestamp(self) -> int:
        if len(self.transforms) == 0:
            raise ValueError("TransformBatch: cannot infer timestamp of an empty batch!")
        return self.transforms[0].timestamp


@dataclass(frozen=True)
class TrajectoryPoint:
    """Trajectory point of a plan or candidate."""

    pose: Pose
    longitudinal_velocity: float = 0.0  # [m/s]
    acceleration: float = 0.0  # [m/s^2]
    front_wheel_angle: float = 0.0  # [rad]
    time_from_start: float = 0.0  # [s]


@dataclass(frozen=True)
class Trajectory:
    """Planned trajectory published at one timestamp."""

    timestamp: int  # [ns]
    points: Tuple[TrajectoryPoint, ...]


@dataclass(frozen=True)
class VehicleParameters:
    """Kinematic constants of the ego vehicle."""

    wheel_base: float = 2.79  # [m]
    vehicle_name: str = "sample_vehicle"


@dataclass(frozen=True)
class TrajectorySampling:
    """Fixed evaluation horizon of num_poses steps at interval_length resolution."""

    num_poses: int
    interval_length: float  # [s]

    def __post_init__(self):
        assert self.num_poses > 0, "TrajectorySampling: num_poses must be positive!"
        assert self.interval_length > 0.0, "TrajectorySampling: interval_length must be positive!"

    @property
    def time_horizon(self) -> float:
        return self.num_poses * self.interval_length

    def step_offset(self, step: int) -> int:
        """
        :param step: index of horizon step
        :return: time offset of step relative to the horizon start [ns]
        """
        return int(round(NANOSECONDS_PER_SECOND * self.interval_length * step))


@dataclass(frozen=True)
class ManualDrivingSource:
    """Log-driven ego history sampled on the horizon grid."""

    odometry_history: List[Odometry]
    accel_history: List[Acceleration]
    steer_history: List[SteeringReport]


@dataclass(frozen=True)
class TrajectorySource:
    """Ordered trajectory points sampled on the horizon grid."""

    points: List[TrajectoryPoint]


DataSource = Union[ManualDrivingSource, TrajectorySource]


@dataclass(frozen=True)
class Candidate:
    """Tagged trajectory competing in a candidate set."""

    tag: CandidateTag
    source: DataSource
    objects_history: List[PredictedObjects]
    generation_index: int = 0


@dataclass
class MetricSeries:
    """Raw per-step metrics of one candidate over the horizon."""

    lateral_accel: npt.NDArray[np.float64]
    longitudinal_jerk: npt.NDArray[np.float64]
    minimum_ttc: npt.NDArray[np.float64]
    travel_distance: npt.NDArray[np.float64]

    def __post_init__(self):
        series_lengths = {len(series) for series in vars(self).values()}
        assert len(series_lengths) == 1, f"MetricSeries expects series of equal length, but got {series_lengths}"

    @property
    def num_steps(self) -> int:
        return len(self.lateral_accel)

    def as_array(self) -> npt.NDArray[np.float64]:
        """
        :return: array of shape (MetricIndex.size(), num_steps)
        """
        metrics = np.zeros((MetricIndex.size(), self.num_steps), dtype=np.float64)
        metrics[MetricIndex.LATERAL_ACCEL] = self.lateral_accel
        metrics[MetricIndex.LONGITUDINAL_JERK] = self.longitudinal_jerk
        metrics[MetricIndex.MINIMUM_TTC] = self.minimum_ttc
        metrics[MetricIndex.TRAVEL_DISTANCE] = self.travel_distance
        return metrics


@dataclass
class ScoreSet:
    """Helper dataclass to record the scores of a candidate."""

    lateral_comfortability: float
    longitudinal_comfortability: float
    efficiency: float
    safety: float

    total: float

    @classmethod
    def get_empty_results(cls) -> ScoreSet:
        """
        Returns an instance of the class where all values are NaN.
        :return: empty score dataclass.
        """
        return ScoreSet(
            lateral_comfortability=np.nan,
            longitudinal_comfortability=np.nan,
            efficiency=np.nan,
            safety=np.nan,
            total=np.nan,
        )

    def as_array(self) -> npt.NDArray[np.float64]:
        """
        :return: array of the individual scores indexed by ScoreIndex
        """
        scores = np.zeros(ScoreIndex.size(), dtype=np.float64)
        scores[ScoreIndex.LATERAL_COMFORTABILITY] = self.lateral_comfortability
        scores[ScoreIndex.LONGITUDINAL_COMFORTABILITY] = self.longitudinal_comfortability
        scores[ScoreIndex.EFFICIENCY] = self.efficiency
        scores[ScoreIndex.SAFETY] = self.safety
        return scores
