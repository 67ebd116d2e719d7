from typing import List, Sequence

import numpy as np
import numpy.typing as npt
from shapely.geometry import LineString, Point

from behavior_analyzer.common.dataclasses import Pose, TrajectoryPoint


def normalize_angle(angle):
    """
    Map a angle in range [-π, π]
    :param angle: any angle as float
    :return: normalized angle
    """
    return np.arctan2(np.sin(angle), np.cos(angle))


def calculate_progress(poses: Sequence[Pose], use_z: bool = False) -> npt.NDArray[np.float64]:
    """
    Calculate the cumulative progress of a given path.
    :param poses: a path consisting of poses as waypoints
    :param use_z: whether the vertical component contributes to the distance
    :return: a cumulative array of progress
    """
    if len(poses) == 0:
        return np.zeros(0, dtype=np.float64)
    num_dims = 3 if use_z else 2
    positions = np.array([pose.position[:num_dims] for pose in poses], dtype=np.float64)
    progress_diff = np.append(0.0, np.linalg.norm(np.diff(positions, axis=0), axis=-1))
    return np.cumsum(progress_diff, dtype=np.float64)


def velocity_in_map_frame(pose: Pose, body_velocity: Sequence[float]) -> npt.NDArray[np.float64]:
    """
    Rotates a body frame velocity into the map frame.
    :param pose: pose of the body
    :param body_velocity: (vx, vy, vz) in body frame [m/s]
    :return: velocity in map frame [m/s]
    """
    return pose.rotate(body_velocity)


def project_to_arc_length(points: Sequence[TrajectoryPoint], pose: Pose) -> float:
    """
    Projects a pose onto the polyline of trajectory points.
    :param points: trajectory points
    :param pose: pose to project
    :return: arc length [m] of the nearest point on the polyline
    """
    if len(points) < 2:
        return 0.0
    linestring = LineString([(point.pose.x, point.pose.y) for point in points])
    return float(linestring.project(Point(pose.x, pose.y)))


def interpolate_trajectory_point(
    points: Sequence[TrajectoryPoint],
    progress: npt.NDArray[np.float64],
    arc_length: float,
) -> TrajectoryPoint:
    """
    Linearly interpolates a trajectory point at an arc length, clipped to the path.
    :param points: trajectory points
    :param progress: cumulative arc length of the points
    :param arc_length: query arc length [m]
    :return: interpolated trajectory point
    """
    assert len(points) == len(progress), "Progress must be given for every trajectory point"
    if len(points) == 1:
        return points[0]

    arc_length = float(np.clip(arc_length, progress[0], progress[-1]))
    headings = np.unwrap([point.pose.heading for point in points])

    def _interp(values: List[float]) -> float:
        return float(np.interp(arc_length, progress, values))

    pose = Pose.from_xy_heading(
        x=_interp([point.pose.x for point in points]),
        y=_interp([point.pose.y for point in points]),
        heading=float(normalize_angle(_interp(headings))),
        z=_interp([point.pose.z for point in points]),
    )
    return TrajectoryPoint(
        pose=pose,
        longitudinal_velocity=_interp([point.longitudinal_velocity for point in points]),
        acceleration=_interp([point.acceleration for point in points]),
        front_wheel_angle=_interp([point.front_wheel_angle for point in points]),
        time_from_start=_interp([point.time_from_start for point in points]),
    )
