import numpy as np
import pytest

from behavior_analyzer.common.dataclasses import Acceleration, Odometry, Pose
from behavior_analyzer.planning.frenet.frenet_state import FrenetPoint, FrenetState, compute_initial_frenet_state
from behavior_analyzer.planning.frenet.reference_path import SplineReferencePath
from behavior_analyzer.planning.frenet.sampling_parameters import SamplingConfig, prepare_sampling_parameters


def straight_path() -> SplineReferencePath:
    xs = np.linspace(0.0, 100.0, 21)
    return SplineReferencePath(xs, np.zeros_like(xs))


def test_straight_path_round_trip():
    """Frenet and cartesian conversions agree on a straight path, left offsets positive."""
    path = straight_path()
    assert path.last_s == pytest.approx(100.0)

    point = path.frenet(42.0, 2.0)
    assert point.s == pytest.approx(42.0, abs=1e-6)
    assert point.d == pytest.approx(2.0, abs=1e-6)
    assert path.frenet(42.0, -3.0).d == pytest.approx(-3.0, abs=1e-6)

    x, y = path.cartesian(point.s, point.d)
    assert x == pytest.approx(42.0, abs=1e-6)
    assert y == pytest.approx(2.0, abs=1e-6)
    assert path.yaw(50.0) == pytest.approx(0.0)
    assert path.curvature(50.0) == pytest.approx(0.0, abs=1e-9)


def test_circular_path_curvature():
    """Curvature of a sampled circle approaches its inverse radius."""
    radius = 20.0
    angles = np.linspace(0.0, np.pi / 2, 50)
    path = SplineReferencePath(radius * np.sin(angles), radius * (1.0 - np.cos(angles)))

    s_mid = path.last_s / 2
    assert path.curvature(s_mid) == pytest.approx(1.0 / radius, rel=1e-2)
    assert path.yaw(s_mid) == pytest.approx(np.pi / 4, abs=1e-2)


def test_duplicate_points_are_dropped():
    """Repeated plan points do not break the spline."""
    path = SplineReferencePath([0.0, 0.0, 10.0, 10.0, 20.0], [0.0, 0.0, 0.0, 0.0, 0.0])
    assert path.last_s == pytest.approx(20.0)


def test_initial_frenet_state_on_path():
    """Ego aligned with a straight path has zero lateral derivatives."""
    path = straight_path()
    odometry = Odometry(timestamp=0, pose=Pose.from_xy_heading(10.0, 1.0, 0.0), linear_velocity=(8.0, 0.0, 0.0))
    acceleration = Acceleration(timestamp=0, longitudinal_acceleration=0.5)

    state = compute_initial_frenet_state(path, odometry, acceleration)
    assert state.position.s == pytest.approx(10.0, abs=1e-6)
    assert state.position.d == pytest.approx(1.0, abs=1e-6)
    assert state.longitudinal_velocity == 8.0
    assert state.longitudinal_acceleration == 0.5
    assert state.lateral_velocity == pytest.approx(0.0, abs=1e-9)
    assert state.lateral_acceleration == pytest.approx(0.0, abs=1e-6)


def test_initial_frenet_state_with_heading_offset():
    """Lateral velocity over arc length is tan of the heading offset on a straight path."""
    path = straight_path()
    heading = 0.1
    odometry = Odometry(timestamp=0, pose=Pose.from_xy_heading(10.0, 0.0, heading), linear_velocity=(8.0, 0.0, 0.0))

    state = compute_initial_frenet_state(path, odometry, Acceleration(timestamp=0, longitudinal_acceleration=0.0))
    assert state.lateral_velocity == pytest.approx(np.tan(heading))


def test_sampling_lattice_cross_product():
    """The lattice holds one target per grid combination, anchored at the clamped arc length."""
    path = straight_path()
    initial_state = FrenetState(position=FrenetPoint(s=10.0, d=0.0))
    config = SamplingConfig()

    sampling_parameters = prepare_sampling_parameters(initial_state, path, 50.0, config)
    assert len(sampling_parameters) == 2 * 1 * 5 * 1 * 5
    assert sampling_parameters.resolution == 0.5
    assert {parameter.target_state.position.s for parameter in sampling_parameters.parameters} == {60.0}
    assert {parameter.target_state.position.d for parameter in sampling_parameters.parameters} == {
        -4.5,
        -2.5,
        0.0,
        2.5,
        4.5,
    }
    assert all(parameter.target_duration == 10.0 for parameter in sampling_parameters.parameters)

    clamped = prepare_sampling_parameters(initial_state, path, 500.0, config)
    assert clamped.parameters[0].target_state.position.s == pytest.approx(path.last_s)


def test_sampling_lattice_custom_grids():
    """Grids and base length are configurable."""
    path = straight_path()
    initial_state = FrenetState(position=FrenetPoint(s=0.0, d=0.0))
    config = SamplingConfig(
        target_lateral_positions=[0.0],
        target_longitudinal_velocities=[5.0],
        target_lateral_accelerations=[0.0],
        base_length=10.0,
    )

    sampling_parameters = prepare_sampling_parameters(initial_state, path, 30.0, config)
    assert len(sampling_parameters) == 1
    assert sampling_parameters.parameters[0].target_state.position.s == pytest.approx(20.0)
