from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, replace
from typing import Iterator, List, Optional, Sequence

from behavior_analyzer.common.dataclasses import (
    Acceleration,
    Candidate,
    ManualDrivingSource,
    MetricSeries,
    Odometry,
    ScoreSet,
    Trajectory,
    TrajectoryPoint,
    TrajectorySampling,
    TrajectorySource,
)
from behavior_analyzer.common.enums import CandidateTag, StreamType
from behavior_analyzer.common.errors import MissingSeedDataError
from behavior_analyzer.common.result import Ready, Result
from behavior_analyzer.planning.buffer.synchronized_snapshot import SynchronizedSnapshot
from behavior_analyzer.planning.frenet.abstract_frenet_sampler import AbstractFrenetSampler
from behavior_analyzer.planning.frenet.frenet_state import compute_initial_frenet_state
from behavior_analyzer.planning.frenet.reference_path import SplineReferencePath
from behavior_analyzer.planning.frenet.sampling_parameters import SamplingConfig, prepare_sampling_parameters
from behavior_analyzer.planning.scoring.behavior_scorer import BehaviorScorer
from behavior_analyzer.planning.scoring.metric_extractor import MetricExtractor
from behavior_analyzer.planning.utils.geometry_utils import (
    calculate_progress,
    interpolate_trajectory_point,
    project_to_arc_length,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScoredCandidate:
    """Candidate with its metric series and scores."""

    candidate: Candidate
    metrics: MetricSeries
    scores: ScoreSet

    @property
    def tag(self) -> CandidateTag:
        return self.candidate.tag

    @property
    def total(self) -> float:
        return self.scores.total


class CandidateSet:
    """Candidates ranked by total score, ties keep their generation order."""

    def __init__(self, timestamp: int, scored_candidates: Sequence[ScoredCandidate]):
        """
        Initializes the CandidateSet class.
        :param timestamp: logical timestamp [ns] the candidates were built at
        :param scored_candidates: scored candidates in generation order
        """
        self._timestamp = timestamp
        # sorted() is stable, also with reverse=True
        self._ranked: List[ScoredCandidate] = sorted(scored_candidates, key=lambda scored: scored.total, reverse=True)

    def __len__(self) -> int:
        return len(self._ranked)

    def __iter__(self) -> Iterator[ScoredCandidate]:
        return iter(self._ranked)

    def __getitem__(self, rank: int) -> ScoredCandidate:
        return self._ranked[rank]

    @property
    def timestamp(self) -> int:
        return self._timestamp

    @property
    def ranked(self) -> List[ScoredCandidate]:
        return list(self._ranked)

    def best(self) -> ScoredCandidate:
        """
        :return: highest ranked candidate
        """
        assert len(self._ranked) > 0, "CandidateSet: cannot select from an empty candidate set"
        return self._ranked[0]

    def by_tag(self, tag: CandidateTag) -> Optional[ScoredCandidate]:
        """
        :param tag: origin of the candidate
        :return: highest ranked candidate with the tag, None if there is none
        """
        return next((scored for scored in self._ranked if scored.tag == tag), None)


def resample_trajectory(
    trajectory: Trajectory,
    odometry: Odometry,
    trajectory_sampling: TrajectorySampling,
) -> List[TrajectoryPoint]:
    """
    Walks the plan forward from the projected ego position by kinematic integration.
    :param trajectory: current plan
    :param odometry: ego odometry, anchors the walk
    :param trajectory_sampling: horizon of num_poses steps
    :return: num_poses interpolated trajectory points
    """
    points = list(trajectory.points)
    assert len(points) > 0, "Cannot resample an empty trajectory"

    dt = trajectory_sampling.interval_length
    progress = calculate_progress([point.pose for point in points])
    arc_length = project_to_arc_length(points, odometry.pose)

    resampled_points: List[TrajectoryPoint] = []
    for step in range(trajectory_sampling.num_poses):
        point = interpolate_trajectory_point(points, progress, arc_length)
        resampled_points.append(
            TrajectoryPoint(
                pose=point.pose,
                longitudinal_velocity=point.longitudinal_velocity,
                acceleration=point.acceleration,
                front_wheel_angle=point.front_wheel_angle,
                time_from_start=step * dt,
            )
        )
        arc_length += point.longitudinal_velocity * dt + 0.5 * point.acceleration * dt * dt

    return resampled_points


class CandidateSetBuilder:
    """Builds and scores the candidates competing at the current logical timestamp."""

    def __init__(
        self,
        trajectory_sampling: TrajectorySampling,
        extractor: MetricExtractor,
        scorer: BehaviorScorer,
        sampler: Optional[AbstractFrenetSampler] = None,
        sampling_config: SamplingConfig = SamplingConfig(),
        include_executed: bool = True,
        max_workers: Optional[int] = None,
    ):
        """
        Initializes the CandidateSetBuilder class.
        :param trajectory_sampling: horizon of num_poses steps
        :param extractor: metric extractor
        :param scorer: scorer of the metric series
        :param sampler: optional frenet sampler for alternative candidates
        :param sampling_config: grids of the sampling lattice
        :param include_executed: whether the log-driven ego motion competes as candidate
        :param max_workers: thread pool size for scoring, sequential if None
        """
        self._trajectory_sampling = trajectory_sampling
        self._extractor = extractor
        self._scorer = scorer
        self._sampler = sampler

        # sampled points are paired step by step with the objects history
        if sampling_config.resolution != trajectory_sampling.interval_length:
            logger.warning(
                f"Sampling resolution {sampling_config.resolution}s differs from interval length "
                f"{trajectory_sampling.interval_length}s, sampling at the interval length"
            )
            sampling_config = replace(sampling_config, resolution=trajectory_sampling.interval_length)
        self._sampling_config = sampling_config
        self._include_executed = include_executed
        self._max_workers = max_workers

    def build(self, snapshot: SynchronizedSnapshot) -> Result[CandidateSet]:
        """
        Builds, scores and ranks all candidates of a snapshot. The snapshot is only read.
        :param snapshot: synchronized snapshot at the logical timestamp
        :raises MissingSeedDataError: if plan, odometry or acceleration are missing at the timestamp
        :return: Ready with the candidate set, NotReady if the histories are too short
        """
        odometry_record = snapshot.query(StreamType.ODOMETRY)
        accel_record = snapshot.query(StreamType.ACCELERATION)
        trajectory_record = snapshot.query(StreamType.TRAJECTORY)
        missing = [
            stream.value
            for stream, record in [
                (StreamType.ODOMETRY, odometry_record),
                (StreamType.ACCELERATION, accel_record),
                (StreamType.TRAJECTORY, trajectory_record),
            ]
            if record is None
        ]
        if missing:
            raise MissingSeedDataError(f"No {', '.join(missing)} after timestamp {snapshot.timestamp}")

        odometry: Odometry = odometry_record.value
        trajectory: Trajectory = trajectory_record.value
        if len(trajectory.points) == 0:
            raise MissingSeedDataError(f"Plan at {trajectory.timestamp} holds no points")

        objects_history = snapshot.collect(StreamType.OBJECTS, self._trajectory_sampling)
        if not objects_history.is_ready:
            return objects_history

        candidates: List[Candidate] = []
        if self._include_executed:
            executed = self._build_executed(snapshot, objects_history.value)
            if not executed.is_ready:
                return executed
            candidates.append(executed.value)

        candidates.append(
            Candidate(
                tag=CandidateTag.SELF,
                source=TrajectorySource(resample_trajectory(trajectory, odometry, self._trajectory_sampling)),
                objects_history=objects_history.value,
            )
        )

        for sampled_points in self._sample(trajectory, odometry, accel_record.value):
            candidates.append(
                Candidate(
                    tag=CandidateTag.SAMPLED,
                    source=TrajectorySource(sampled_points),
                    objects_history=objects_history.value,
                )
            )

        candidates = [
            Candidate(
                tag=candidate.tag,
                source=candidate.source,
                objects_history=candidate.objects_history,
                generation_index=generation_index,
            )
            for generation_index, candidate in enumerate(candidates)
        ]

        if self._max_workers is not None and self._max_workers > 1:
            with ThreadPoolExecutor(max_workers=self._max_workers) as executor:
                scored_candidates = list(executor.map(self._score_candidate, candidates))
        else:
            scored_candidates = [self._score_candidate(candidate) for candidate in candidates]

        return Ready(CandidateSet(timestamp=snapshot.timestamp, scored_candidates=scored_candidates))

    def _build_executed(self, snapshot: SynchronizedSnapshot, objects_history: List) -> Result[Candidate]:
        histories = {}
        for stream in [StreamType.ODOMETRY, StreamType.ACCELERATION, StreamType.STEERING]:
            history = snapshot.collect(stream, self._trajectory_sampling)
            if not history.is_ready:
                return history
            histories[stream] = history.value

        source = ManualDrivingSource(
            odometry_history=histories[StreamType.ODOMETRY],
            accel_history=histories[StreamType.ACCELERATION],
            steer_history=histories[StreamType.STEERING],
        )
        return Ready(Candidate(tag=CandidateTag.EXECUTED, source=source, objects_history=objects_history))

    def _sample(
        self, trajectory: Trajectory, odometry: Odometry, acceleration: Acceleration
    ) -> List[List[TrajectoryPoint]]:
        if self._sampler is None:
            return []

        points = list(trajectory.points)
        if len(points) < 2:
            logger.debug("Plan too short to build a reference path, skipping sampling")
            return []

        reference_path = SplineReferencePath.from_trajectory_points(points)
        initial_state = compute_initial_frenet_state(reference_path, odometry, acceleration)
        trajectory_length = float(calculate_progress([point.pose for point in points])[-1])
        sampling_parameters = prepare_sampling_parameters(
            initial_state, reference_path, trajectory_length, self._sampling_config
        )

        num_steps = self._trajectory_sampling.num_poses
        sampled_trajectories: List[List[TrajectoryPoint]] = []
        for sampled_points in self._sampler.generate_trajectories(reference_path, initial_state, sampling_parameters):
            if len(sampled_points) < num_steps:
                logger.debug(f"Dropping sampled trajectory with {len(sampled_points)} of {num_steps} points")
                continue
            sampled_trajectories.append(list(sampled_points[:num_steps]))

        logger.debug(f"Sampled {len(sampled_trajectories)} of {len(sampling_parameters)} lattice targets")
        return sampled_trajectories

    def _score_candidate(self, candidate: Candidate) -> ScoredCandidate:
        metrics = self._extractor.extract(candidate)
        return ScoredCandidate(candidate=candidate, metrics=metrics, scores=self._scorer.score(metrics))
