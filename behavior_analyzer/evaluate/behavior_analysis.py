from __future__ import annotations

import logging
from dataclasses import dataclass, fields, replace
from typing import Dict, List, Optional

import numpy as np
import pandas as pd

from behavior_analyzer.common.dataclasses import ScoreSet
from behavior_analyzer.common.enums import StreamType
from behavior_analyzer.common.errors import MissingSeedDataError
from behavior_analyzer.common.result import NotReady, Ready, Result
from behavior_analyzer.planning.buffer.synchronized_snapshot import SynchronizedSnapshot
from behavior_analyzer.planning.log_caching.stream_log import StreamLog
from behavior_analyzer.planning.scoring.candidate_set import CandidateSet, CandidateSetBuilder

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AnalysisResult:
    """Ranked candidates of one tick."""

    timestamp: int  # [ns]
    candidate_set: CandidateSet
    stale: bool = False


class BehaviorAnalyzer:
    """Tick driver, advances the snapshot and ranks the candidates at the new logical timestamp."""

    def __init__(self, snapshot: SynchronizedSnapshot, candidate_set_builder: CandidateSetBuilder, time_step: int):
        """
        Initializes the BehaviorAnalyzer class.
        :param snapshot: snapshot owned by the analyzer, mutated only by update
        :param candidate_set_builder: builder of the candidate sets
        :param time_step: logical clock increment per tick [ns]
        """
        assert time_step > 0, "BehaviorAnalyzer: time_step must be positive!"
        self._snapshot = snapshot
        self._candidate_set_builder = candidate_set_builder
        self._time_step = time_step
        self._latest: Optional[AnalysisResult] = None

    @property
    def snapshot(self) -> SynchronizedSnapshot:
        return self._snapshot

    @property
    def latest(self) -> Optional[AnalysisResult]:
        """
        :return: result of the last successful tick, marked stale if a later tick was skipped
        """
        return self._latest

    def update(self, dt: Optional[int] = None) -> None:
        """
        Advances the logical clock of the snapshot.
        :param dt: time step [ns], defaults to the configured time step
        """
        self._snapshot.advance(self._time_step if dt is None else dt)

    def process(self) -> Result[AnalysisResult]:
        """
        Builds and ranks the candidates at the current logical timestamp.
        :return: Ready with the analysis result, NotReady if the tick was skipped
        """
        if not self._snapshot.is_ready():
            return NotReady(f"Snapshot not ready at {self._snapshot.timestamp}")

        try:
            candidate_set = self._candidate_set_builder.build(self._snapshot)
        except MissingSeedDataError as e:
            logger.warning(f"Skipping evaluation at {self._snapshot.timestamp}: {e}")
            if self._latest is not None:
                self._latest = replace(self._latest, stale=True)
            return NotReady(str(e))

        if not candidate_set.is_ready:
            logger.debug(f"Insufficient history at {self._snapshot.timestamp}: {candidate_set.reason}")
            return candidate_set

        self._latest = AnalysisResult(timestamp=self._snapshot.timestamp, candidate_set=candidate_set.value)
        return Ready(self._latest)

    def tick(self) -> Result[AnalysisResult]:
        """
        One cycle of snapshot advance, candidate build, scoring and ranking.
        :return: Ready with the analysis result, NotReady if the tick was skipped
        """
        self.update()
        return self.process()


class StreamLogReplayer:
    """Feeds the records of a stream log into a snapshot, in order, up to a playback time."""

    def __init__(self, stream_log: StreamLog):
        self._records: Dict[StreamType, List] = {stream: stream_log.records(stream) for stream in StreamType}
        self._cursors: Dict[StreamType, int] = {stream: 0 for stream in StreamType}

    def is_exhausted(self) -> bool:
        return all(self._cursors[stream] >= len(records) for stream, records in self._records.items())

    def feed_until(self, snapshot: SynchronizedSnapshot, timestamp: int) -> int:
        """
        Appends all records up to a timestamp to the snapshot.
        :param snapshot: snapshot to feed
        :param timestamp: playback time [ns], inclusive
        :return: number of appended records
        """
        num_appended = 0
        for stream, records in self._records.items():
            buffer = snapshot.buffer(stream)
            cursor = self._cursors[stream]
            while cursor < len(records) and buffer.time_key(records[cursor]) <= timestamp:
                snapshot.append(stream, records[cursor])
                cursor += 1
                num_appended += 1
            self._cursors[stream] = cursor
        return num_appended


def analysis_result_to_dataframe(result: AnalysisResult) -> pd.DataFrame:
    """
    Converts ranked candidates into a table with one row per candidate.
    :param result: analysis result of a tick
    :return: pandas dataframe
    """
    score_names = [score_field.name for score_field in fields(ScoreSet)]
    rows = []
    for rank, scored in enumerate(result.candidate_set.ranked):
        row = {
            "timestamp": result.timestamp,
            "stale": result.stale,
            "rank": rank,
            "tag": scored.tag.value,
            "generation_index": scored.candidate.generation_index,
        }
        row.update({name: getattr(scored.scores, name) for name in score_names})
        row.update(
            {
                "mean_lateral_accel": float(np.mean(scored.metrics.lateral_accel)),
                "mean_longitudinal_jerk": float(np.mean(scored.metrics.longitudinal_jerk)),
                "min_ttc": float(np.min(scored.metrics.minimum_ttc)),
                "travel_distance": float(scored.metrics.travel_distance[-1]),
            }
        )
        rows.append(row)
    return pd.DataFrame(rows)
