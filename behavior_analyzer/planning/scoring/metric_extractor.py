import logging
import sys
from typing import Sequence

import numpy as np
import numpy.typing as npt

from behavior_analyzer.common.dataclasses import (
    NANOSECONDS_PER_SECOND,
    Candidate,
    ManualDrivingSource,
    MetricSeries,
    Pose,
    PredictedObjects,
    TrajectorySampling,
    TrajectorySource,
    VehicleParameters,
)
from behavior_analyzer.common.errors import InsufficientHistoryError
from behavior_analyzer.planning.utils.geometry_utils import calculate_progress, velocity_in_map_frame

logger = logging.getLogger(__name__)

# (1) lateral acceleration
MIN_ABS_TAN_STEERING: float = 1e-9  # below, the turning radius is treated as infinite

# (3) time to collision
MIN_CLOSING_VELOCITY: float = 1e-3  # [m/s]
NO_COLLISION_TTC: float = sys.float_info.max  # [s]


def lateral_acceleration(speed: float, steering_angle: float, wheel_base: float) -> float:
    """
    Lateral acceleration v^2 / R of a kinematic bicycle, with R = wheel_base / tan(steering_angle).
    :param speed: longitudinal speed [m/s]
    :param steering_angle: front tire angle [rad]
    :param wheel_base: wheel base [m]
    :return: lateral acceleration [m/s^2], zero for straight driving
    """
    tan_steering = np.tan(steering_angle)
    if abs(tan_steering) < MIN_ABS_TAN_STEERING:
        return 0.0
    radius = wheel_base / tan_steering
    return float(speed * speed / radius)


def longitudinal_jerk(accelerations: Sequence[float], elapsed_times: Sequence[float]) -> npt.NDArray[np.float64]:
    """
    Forward difference of longitudinal acceleration, zero at the last step.
    :param accelerations: longitudinal accelerations per step [m/s^2]
    :param elapsed_times: time between step i and i+1 [s], one entry less than accelerations
    :return: jerk per step [m/s^3]
    """
    accelerations = np.asarray(accelerations, dtype=np.float64)
    elapsed_times = np.asarray(elapsed_times, dtype=np.float64)
    assert len(elapsed_times) == max(len(accelerations) - 1, 0), "Elapsed time required between all steps"

    jerk = np.zeros(len(accelerations), dtype=np.float64)
    acceleration_diff = np.diff(accelerations)
    valid = elapsed_times > 0.0
    jerk[:-1][valid] = acceleration_diff[valid] / elapsed_times[valid]
    return jerk


def time_to_collision(
    objects: PredictedObjects,
    ego_pose: Pose,
    ego_velocity: npt.NDArray[np.float64],
) -> float:
    """
    Minimum time to collision along the bearings from ego to all predicted objects.
    :param objects: predicted objects at the step
    :param ego_pose: ego pose at the step
    :param ego_velocity: ego velocity in map frame [m/s]
    :return: minimum time to collision [s], NO_COLLISION_TTC if no object is closing in
    """
    time_to_collisions = []
    for predicted_object in objects.objects:
        ego_to_object = predicted_object.pose.position - ego_pose.position
        distance = np.linalg.norm(ego_to_object)
        if distance == 0.0:
            return 0.0

        bearing = ego_to_object / distance
        object_velocity = velocity_in_map_frame(predicted_object.pose, predicted_object.linear_velocity)
        closing_velocity = np.dot(bearing, ego_velocity) - np.dot(bearing, object_velocity)
        if closing_velocity <= MIN_CLOSING_VELOCITY:
            continue
        time_to_collisions.append(distance / closing_velocity)

    if len(time_to_collisions) == 0:
        return NO_COLLISION_TTC
    return float(min(time_to_collisions))


class MetricExtractor:
    """Computes the raw metric series of candidates over a fixed horizon."""

    def __init__(self, vehicle_parameters: VehicleParameters, trajectory_sampling: TrajectorySampling):
        """
        Initializes the MetricExtractor class.
        :param vehicle_parameters: kinematic constants of the ego vehicle
        :param trajectory_sampling: horizon of num_poses steps
        """
        self._vehicle_parameters = vehicle_parameters
        self._trajectory_sampling = trajectory_sampling

    @property
    def num_steps(self) -> int:
        return self._trajectory_sampling.num_poses

    def extract(self, candidate: Candidate) -> MetricSeries:
        """
        Dispatches on the data source of the candidate.
        :param candidate: candidate to evaluate
        :raises InsufficientHistoryError: if any history holds less than num_poses samples
        :return: metric series of length num_poses
        """
        self._check_length("objects", candidate.objects_history)
        if isinstance(candidate.source, ManualDrivingSource):
            return self._extract_manual(candidate.source, candidate.objects_history)
        if isinstance(candidate.source, TrajectorySource):
            return self._extract_trajectory(candidate.source, candidate.objects_history)
        raise TypeError(f"Unknown data source type {type(candidate.source).__name__}")

    def _check_length(self, name: str, history: Sequence) -> None:
        if len(history) < self.num_steps:
            raise InsufficientHistoryError(f"{name} history holds {len(history)} of {self.num_steps} required samples")

    def _extract_manual(
        self, source: ManualDrivingSource, objects_history: Sequence[PredictedObjects]
    ) -> MetricSeries:
        self._check_length("odometry", source.odometry_history)
        self._check_length("acceleration", source.accel_history)
        self._check_length("steering", source.steer_history)

        num_steps = self.num_steps
        wheel_base = self._vehicle_parameters.wheel_base
        odometry_history = source.odometry_history[:num_steps]
        accel_history = source.accel_history[:num_steps]
        steer_history = source.steer_history[:num_steps]

        lateral_accel = np.array(
            [
                lateral_acceleration(odometry.longitudinal_velocity, steer.steering_tire_angle, wheel_base)
                for odometry, steer in zip(odometry_history, steer_history)
            ],
            dtype=np.float64,
        )

        accel_timestamps = np.array([accel.timestamp for accel in accel_history], dtype=np.int64)
        jerk = longitudinal_jerk(
            [accel.longitudinal_acceleration for accel in accel_history],
            np.diff(accel_timestamps) / NANOSECONDS_PER_SECOND,
        )

        minimum_ttc = np.array(
            [
                time_to_collision(
                    objects,
                    odometry.pose,
                    velocity_in_map_frame(odometry.pose, odometry.linear_velocity),
                )
                for odometry, objects in zip(odometry_history, objects_history)
            ],
            dtype=np.float64,
        )

        travel_distance = calculate_progress([odometry.pose for odometry in odometry_history], use_z=True)

        return MetricSeries(
            lateral_accel=lateral_accel,
            longitudinal_jerk=jerk,
            minimum_ttc=minimum_ttc,
            travel_distance=travel_distance,
        )

    def _extract_trajectory(
        self, source: TrajectorySource, objects_history: Sequence[PredictedObjects]
    ) -> MetricSeries:
        self._check_length("trajectory", source.points)

        num_steps = self.num_steps
        wheel_base = self._vehicle_parameters.wheel_base
        points = source.points[:num_steps]

        lateral_accel = np.array(
            [lateral_acceleration(point.longitudinal_velocity, point.front_wheel_angle, wheel_base) for point in points],
            dtype=np.float64,
        )

        elapsed_times = np.diff([point.time_from_start for point in points])
        if not np.any(elapsed_times > 0.0):
            # untimed points are spaced by the sampling interval
            elapsed_times = np.full(num_steps - 1, self._trajectory_sampling.interval_length)
        jerk = longitudinal_jerk([point.acceleration for point in points], elapsed_times)

        minimum_ttc = np.array(
            [
                time_to_collision(
                    objects,
                    point.pose,
                    velocity_in_map_frame(point.pose, (point.longitudinal_velocity, 0.0, 0.0)),
                )
                for point, objects in zip(points, objects_history)
            ],
            dtype=np.float64,
        )

        travel_distance = calculate_progress([point.pose for point in points])

        return MetricSeries(
            lateral_accel=lateral_accel,
            longitudinal_jerk=jerk,
            minimum_ttc=minimum_ttc,
            travel_distance=travel_distance,
        )
