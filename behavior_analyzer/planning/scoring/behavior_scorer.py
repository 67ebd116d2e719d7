from dataclasses import dataclass

import numpy as np
import numpy.typing as npt

from behavior_analyzer.common.dataclasses import MetricSeries, ScoreSet
from behavior_analyzer.common.enums import ScoreIndex


@dataclass
class BehaviorScorerConfig:

    time_decay_factor: float = 0.8  # weight of step i is factor^i

    # normalization bounds
    lateral_comfortability_min: float = 0.0  # [m/s^2]
    lateral_comfortability_max: float = 0.5  # [m/s^2]
    longitudinal_comfortability_min: float = 0.0  # [m/s^3]
    longitudinal_comfortability_max: float = 0.5  # [m/s^3]
    efficiency_min: float = 0.0
    efficiency_max: float = 20.0
    safety_min: float = 0.0  # [s]
    safety_max: float = 5.0  # [s]

    travel_distance_normalizer: float = 0.5  # [m]

    # total score weights
    lateral_comfortability_weight: float = 1.0
    longitudinal_comfortability_weight: float = 1.0
    efficiency_weight: float = 1.0
    safety_weight: float = 1.0

    def __post_init__(self):
        for name in ["lateral_comfortability", "longitudinal_comfortability", "efficiency", "safety"]:
            lower, upper = getattr(self, f"{name}_min"), getattr(self, f"{name}_max")
            assert upper > lower, f"BehaviorScorerConfig: {name} bounds must satisfy min < max, got [{lower}, {upper}]"
        assert self.travel_distance_normalizer > 0.0, "BehaviorScorerConfig: travel_distance_normalizer must be positive"

    @property
    def weighted_scores_array(self) -> npt.NDArray[np.float64]:
        weighted_scores = np.zeros(ScoreIndex.size(), dtype=np.float64)
        weighted_scores[ScoreIndex.LATERAL_COMFORTABILITY] = self.lateral_comfortability_weight
        weighted_scores[ScoreIndex.LONGITUDINAL_COMFORTABILITY] = self.longitudinal_comfortability_weight
        weighted_scores[ScoreIndex.EFFICIENCY] = self.efficiency_weight
        weighted_scores[ScoreIndex.SAFETY] = self.safety_weight
        return weighted_scores


def penalize(values: npt.NDArray[np.float64], lower: float, upper: float) -> npt.NDArray[np.float64]:
    """
    Maps values onto [0,1], high values score low.
    :param values: decayed metric values
    :param lower: lower clamp bound
    :param upper: upper clamp bound
    :return: normalized scores
    """
    return (upper - np.clip(values, lower, upper)) / (upper - lower)


def reward(values: npt.NDArray[np.float64], lower: float, upper: float) -> npt.NDArray[np.float64]:
    """
    Maps values onto [0,1], high values score high.
    :param values: decayed metric values
    :param lower: lower clamp bound
    :param upper: upper clamp bound
    :return: normalized scores
    """
    return (np.clip(values, lower, upper) - lower) / (upper - lower)


class BehaviorScorer:
    """Aggregates metric series into time decayed, normalized scores."""

    def __init__(self, config: BehaviorScorerConfig = BehaviorScorerConfig()):
        self._config = config

    @property
    def config(self) -> BehaviorScorerConfig:
        return self._config

    def _decay(self, num_steps: int) -> npt.NDArray[np.float64]:
        return np.power(self._config.time_decay_factor, np.arange(num_steps, dtype=np.float64))

    def score(self, metrics: MetricSeries) -> ScoreSet:
        """
        Scores the metric series of a candidate.
        :param metrics: raw metric series
        :return: scores of the candidate
        """
        assert metrics.num_steps > 0, "BehaviorScorer: cannot score an empty metric series"
        config = self._config
        decay = self._decay(metrics.num_steps)

        scores = np.zeros(ScoreIndex.size(), dtype=np.float64)
        scores[ScoreIndex.LATERAL_COMFORTABILITY] = penalize(
            decay * np.abs(metrics.lateral_accel),
            config.lateral_comfortability_min,
            config.lateral_comfortability_max,
        ).mean()
        scores[ScoreIndex.LONGITUDINAL_COMFORTABILITY] = penalize(
            decay * np.abs(metrics.longitudinal_jerk),
            config.longitudinal_comfortability_min,
            config.longitudinal_comfortability_max,
        ).mean()
        scores[ScoreIndex.EFFICIENCY] = reward(
            decay * np.abs(metrics.travel_distance) / config.travel_distance_normalizer,
            config.efficiency_min,
            config.efficiency_max,
        ).mean()
        scores[ScoreIndex.SAFETY] = reward(
            decay * np.abs(metrics.minimum_ttc),
            config.safety_min,
            config.safety_max,
        ).mean()

        total = float(np.sum(config.weighted_scores_array * scores))
        return ScoreSet(
            lateral_comfortability=float(scores[ScoreIndex.LATERAL_COMFORTABILITY]),
            longitudinal_comfortability=float(scores[ScoreIndex.LONGITUDINAL_COMFORTABILITY]),
            efficiency=float(scores[ScoreIndex.EFFICIENCY]),
            safety=float(scores[ScoreIndex.SAFETY]),
            total=total,
        )
