from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np

from behavior_analyzer.common.dataclasses import Acceleration, Odometry
from behavior_analyzer.planning.utils.geometry_utils import normalize_angle

if TYPE_CHECKING:
    from behavior_analyzer.planning.frenet.reference_path import AbstractReferencePath

CURVATURE_DERIVATIVE_STEP: float = 0.001  # [m]


@dataclass(frozen=True)
class FrenetPoint:
    """Position along a reference path."""

    s: float  # arc length [m]
    d: float  # lateral offset [m], left positive


@dataclass(frozen=True)
class FrenetState:
    """Frenet state, lateral derivatives are taken w.r.t. arc length."""

    position: FrenetPoint
    longitudinal_velocity: float = 0.0  # ds/dt [m/s]
    longitudinal_acceleration: float = 0.0  # d2s/dt2 [m/s^2]
    lateral_velocity: float = 0.0  # dd/ds
    lateral_acceleration: float = 0.0  # d2d/ds2 [1/m]


def compute_initial_frenet_state(
    reference_path: AbstractReferencePath,
    odometry: Odometry,
    acceleration: Acceleration,
) -> FrenetState:
    """
    Computes the frenet state of the ego vehicle, see appendix I of
    "Optimal Trajectory Generation for Dynamic Street Scenarios in a Frenet Frame" (Werling et al.).
    :param reference_path: path the state is expressed against
    :param odometry: ego odometry
    :param acceleration: ego acceleration
    :return: initial frenet state
    """
    position = reference_path.frenet(odometry.pose.x, odometry.pose.y)
    s, d = position.s, position.d

    frenet_yaw = float(normalize_angle(odometry.pose.heading - reference_path.yaw(s)))
    path_curvature = reference_path.curvature(s)
    path_curvature_derivative = (
        reference_path.curvature(s + CURVATURE_DERIVATIVE_STEP) - path_curvature
    ) / CURVATURE_DERIVATIVE_STEP

    # ego curvature is assumed to follow the path
    ego_curvature = path_curvature

    one_minus_kd = 1.0 - path_curvature * d
    lateral_velocity = one_minus_kd * np.tan(frenet_yaw)

    cos_yaw = np.cos(frenet_yaw)
    if cos_yaw == 0.0:
        lateral_acceleration = 0.0
    else:
        lateral_acceleration = -(path_curvature_derivative * d + path_curvature * lateral_velocity) * np.tan(
            frenet_yaw
        ) + (one_minus_kd / cos_yaw**2) * (ego_curvature * one_minus_kd / cos_yaw - path_curvature)

    return FrenetState(
        position=position,
        longitudinal_velocity=odometry.longitudinal_velocity,
        longitudinal_acceleration=acceleration.longitudinal_acceleration,
        lateral_velocity=float(lateral_velocity),
        lateral_acceleration=float(lateral_acceleration),
    )
