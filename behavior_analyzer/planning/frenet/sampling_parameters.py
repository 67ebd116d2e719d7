from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from typing import List

from behavior_analyzer.planning.frenet.frenet_state import FrenetPoint, FrenetState
from behavior_analyzer.planning.frenet.reference_path import AbstractReferencePath


@dataclass
class SamplingConfig:
    """Grids of the target state lattice."""

    target_lateral_positions: List[float] = field(default_factory=lambda: [-4.5, -2.5, 0.0, 2.5, 4.5])  # [m]
    target_longitudinal_velocities: List[float] = field(default_factory=lambda: [5.56, 11.1])  # [m/s]
    target_longitudinal_accelerations: List[float] = field(default_factory=lambda: [0.0])  # [m/s^2]
    target_lateral_velocities: List[float] = field(default_factory=lambda: [0.0])
    target_lateral_accelerations: List[float] = field(default_factory=lambda: [-0.2, -0.1, 0.0, 0.1, 0.2])

    target_duration: float = 10.0  # [s]
    resolution: float = 0.5  # [s]
    base_length: float = 0.0  # [m]


@dataclass(frozen=True)
class SamplingParameter:
    """Terminal state a sampled trajectory is generated towards."""

    target_state: FrenetState
    target_duration: float  # [s]


@dataclass(frozen=True)
class SamplingParameters:
    """Lattice of terminal states and the time resolution of generated trajectories."""

    parameters: List[SamplingParameter]
    resolution: float  # [s]

    def __len__(self) -> int:
        return len(self.parameters)


def prepare_sampling_parameters(
    initial_state: FrenetState,
    reference_path: AbstractReferencePath,
    trajectory_length: float,
    sampling_config: SamplingConfig,
) -> SamplingParameters:
    """
    Builds the cross product of all target grids.
    :param initial_state: frenet state of the ego vehicle
    :param reference_path: path the lattice is anchored on
    :param trajectory_length: arc length [m] of the current plan
    :param sampling_config: grids of the lattice
    :return: sampling parameters
    """
    target_s = min(
        reference_path.last_s,
        initial_state.position.s + max(0.0, trajectory_length - sampling_config.base_length),
    )

    parameters: List[SamplingParameter] = []
    for (
        longitudinal_velocity,
        longitudinal_acceleration,
        lateral_position,
        lateral_velocity,
        lateral_acceleration,
    ) in itertools.product(
        sampling_config.target_longitudinal_velocities,
        sampling_config.target_longitudinal_accelerations,
        sampling_config.target_lateral_positions,
        sampling_config.target_lateral_velocities,
        sampling_config.target_lateral_accelerations,
    ):
        target_state = FrenetState(
            position=FrenetPoint(s=target_s, d=lateral_position),
            longitudinal_velocity=longitudinal_velocity,
            longitudinal_acceleration=longitudinal_acceleration,
            lateral_velocity=lateral_velocity,
            lateral_acceleration=lateral_acceleration,
        )
        parameters.append(SamplingParameter(target_state=target_state, target_duration=sampling_config.target_duration))

    return SamplingParameters(parameters=parameters, resolution=sampling_config.resolution)
