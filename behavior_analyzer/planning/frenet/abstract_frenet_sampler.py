from abc import ABC, abstractmethod
from typing import List

from behavior_analyzer.common.dataclasses import TrajectoryPoint
from behavior_analyzer.planning.frenet.frenet_state import FrenetState
from behavior_analyzer.planning.frenet.reference_path import AbstractReferencePath
from behavior_analyzer.planning.frenet.sampling_parameters import SamplingParameters


class AbstractFrenetSampler(ABC):
    """Interface of trajectory generators sampling alternatives in the frenet frame."""

    @abstractmethod
    def generate_trajectories(
        self,
        reference_path: AbstractReferencePath,
        initial_state: FrenetState,
        sampling_parameters: SamplingParameters,
    ) -> List[List[TrajectoryPoint]]:
        """
        Generates one trajectory per reachable lattice target, resampled from time zero
        at the resolution of the sampling parameters. Must not modify its inputs.
        :param reference_path: path the frenet states are expressed against
        :param initial_state: frenet state of the ego vehicle
        :param sampling_parameters: lattice of terminal states
        :return: list of trajectories as point sequences, possibly empty
        """
