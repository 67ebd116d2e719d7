from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Sequence, Tuple

import numpy as np
import numpy.typing as npt
from scipy.interpolate import CubicSpline
from shapely.geometry import LineString, Point

from behavior_analyzer.common.dataclasses import TrajectoryPoint
from behavior_analyzer.planning.frenet.frenet_state import FrenetPoint


class AbstractReferencePath(ABC):
    """Interface of the reference path anchoring frenet coordinates."""

    @property
    @abstractmethod
    def last_s(self) -> float:
        """
        :return: arc length [m] at the end of the path
        """

    @abstractmethod
    def frenet(self, x: float, y: float) -> FrenetPoint:
        """
        Converts a cartesian position into frenet coordinates.
        :param x: x coordinate [m]
        :param y: y coordinate [m]
        :return: arc length and signed lateral offset, left positive
        """

    @abstractmethod
    def cartesian(self, s: float, d: float = 0.0) -> Tuple[float, float]:
        """
        Converts frenet coordinates into a cartesian position.
        :param s: arc length [m]
        :param d: lateral offset [m]
        :return: (x, y) position [m]
        """

    @abstractmethod
    def yaw(self, s: float) -> float:
        """
        :param s: arc length [m]
        :return: heading of the path [rad]
        """

    @abstractmethod
    def curvature(self, s: float) -> float:
        """
        :param s: arc length [m]
        :return: signed curvature of the path [1/m]
        """


class SplineReferencePath(AbstractReferencePath):
    """Reference path of natural cubic splines x(s), y(s) over the chord length."""

    def __init__(self, xs: npt.ArrayLike, ys: npt.ArrayLike, projection_resolution: float = 0.1):
        """
        Initializes the SplineReferencePath class.
        :param xs: x coordinates of the path points [m]
        :param ys: y coordinates of the path points [m]
        :param projection_resolution: spacing [m] of the dense polyline used for projection
        """
        xy = np.stack([np.asarray(xs, dtype=np.float64), np.asarray(ys, dtype=np.float64)], axis=-1)

        # drop consecutive duplicates, the spline needs strictly increasing arc length
        keep = np.append(True, np.linalg.norm(np.diff(xy, axis=0), axis=-1) > 1e-6)
        xy = xy[keep]
        assert len(xy) >= 2, "SplineReferencePath requires at least two distinct points"

        s = np.append(0.0, np.cumsum(np.linalg.norm(np.diff(xy, axis=0), axis=-1)))
        self._s = s
        self._x_spline = CubicSpline(s, xy[:, 0], bc_type="natural")
        self._y_spline = CubicSpline(s, xy[:, 1], bc_type="natural")

        num_samples = max(int(np.ceil(s[-1] / projection_resolution)) + 1, 2)
        self._dense_s = np.linspace(0.0, s[-1], num_samples)
        dense_xy = np.stack([self._x_spline(self._dense_s), self._y_spline(self._dense_s)], axis=-1)
        self._dense_progress = np.append(0.0, np.cumsum(np.linalg.norm(np.diff(dense_xy, axis=0), axis=-1)))
        self._linestring = LineString(dense_xy)

    @classmethod
    def from_trajectory_points(cls, points: Sequence[TrajectoryPoint], **kwargs) -> SplineReferencePath:
        """
        Builds the reference path through the positions of trajectory points.
        :param points: trajectory points of a plan
        :return: spline reference path
        """
        return SplineReferencePath(
            xs=[point.pose.x for point in points],
            ys=[point.pose.y for point in points],
            **kwargs,
        )

    @property
    def last_s(self) -> float:
        return float(self._s[-1])

    def frenet(self, x: float, y: float) -> FrenetPoint:
        """Inherited, see superclass."""
        point = Point(x, y)
        progress = self._linestring.project(point)
        s = float(np.interp(progress, self._dense_progress, self._dense_s))

        path_x, path_y = self.cartesian(s)
        yaw = self.yaw(s)
        # sign of the cross product between path tangent and offset
        dx, dy = x - path_x, y - path_y
        sign = np.sign(np.cos(yaw) * dy - np.sin(yaw) * dx)
        d = float(sign * np.hypot(dx, dy))
        return FrenetPoint(s=s, d=d)

    def cartesian(self, s: float, d: float = 0.0) -> Tuple[float, float]:
        """Inherited, see superclass."""
        x = float(self._x_spline(s))
        y = float(self._y_spline(s))
        if d != 0.0:
            yaw = self.yaw(s)
            x -= d * np.sin(yaw)
            y += d * np.cos(yaw)
        return x, y

    def yaw(self, s: float) -> float:
        """Inherited, see superclass."""
        return float(np.arctan2(self._y_spline(s, 1), self._x_spline(s, 1)))

    def curvature(self, s: float) -> float:
        """Inherited, see superclass."""
        dx, dy = self._x_spline(s, 1), self._y_spline(s, 1)
        ddx, ddy = self._x_spline(s, 2), self._y_spline(s, 2)
        denominator = (dx**2 + dy**2) ** 1.5
        if denominator == 0.0:
            return 0.0
        return float((dx * ddy - dy * ddx) / denominator)
