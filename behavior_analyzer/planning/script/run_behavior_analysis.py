import logging
from datetime import datetime
from pathlib import Path
from typing import List

import hydra
import pandas as pd
from hydra.utils import instantiate
from omegaconf import DictConfig

from behavior_analyzer.common.dataclasses import NANOSECONDS_PER_SECOND, ScoreSet, TrajectorySampling
from behavior_analyzer.common.dataloader import StreamLogLoader
from behavior_analyzer.evaluate.behavior_analysis import (
    BehaviorAnalyzer,
    StreamLogReplayer,
    analysis_result_to_dataframe,
)
from behavior_analyzer.planning.buffer.synchronized_snapshot import SynchronizedSnapshot
from behavior_analyzer.planning.log_caching.stream_log import StreamLog
from behavior_analyzer.planning.scoring.candidate_set import CandidateSetBuilder
from behavior_analyzer.planning.script.builders.logging_builder import build_logger

logger = logging.getLogger(__name__)

CONFIG_PATH = "config/behavior_analysis"
CONFIG_NAME = "default_run_behavior_analysis"


def run_behavior_analysis(cfg: DictConfig, stream_log: StreamLog) -> pd.DataFrame:
    """
    Replays one stream log and ranks the candidates at every tick.
    :param cfg: omegaconf dictionary
    :param stream_log: recorded input streams
    :return: dataframe with one row per candidate and tick
    """
    trajectory_sampling: TrajectorySampling = instantiate(cfg.trajectory_sampling)
    candidate_set_builder: CandidateSetBuilder = instantiate(cfg.candidate_set_builder)

    window_span = int(cfg.window_span * NANOSECONDS_PER_SECOND)
    time_step = int(cfg.time_step * NANOSECONDS_PER_SECOND)
    # records have to reach past the horizon of the current timestamp
    lookahead = window_span + trajectory_sampling.step_offset(trajectory_sampling.num_poses)

    snapshot = SynchronizedSnapshot(timestamp=stream_log.start_timestamp, window_span=window_span)
    analyzer = BehaviorAnalyzer(snapshot, candidate_set_builder, time_step=time_step)
    replayer = StreamLogReplayer(stream_log)

    results: List[pd.DataFrame] = []
    num_ticks, num_skipped = 0, 0
    while snapshot.timestamp <= stream_log.end_timestamp:
        replayer.feed_until(snapshot, snapshot.timestamp + lookahead)
        result = analyzer.tick()
        num_ticks += 1
        if not result.is_ready:
            num_skipped += 1
            logger.debug(f"Tick at {snapshot.timestamp} skipped: {result.reason}")
            row = pd.DataFrame([ScoreSet.get_empty_results()])
            row["timestamp"] = snapshot.timestamp
            row["valid"] = False
        else:
            row = analysis_result_to_dataframe(result.value)
            row["valid"] = True
        row["log_name"] = stream_log.log_name
        results.append(row)

    logger.info(f"Processed {num_ticks} ticks of log {stream_log.log_name}, {num_skipped} skipped")
    return pd.concat(results, ignore_index=True) if results else pd.DataFrame()


@hydra.main(config_path=CONFIG_PATH, config_name=CONFIG_NAME, version_base=None)
def main(cfg: DictConfig) -> None:
    """
    Main entrypoint for running the behavior analysis on recorded stream logs.
    :param cfg: omegaconf dictionary
    """
    build_logger(cfg)

    stream_log_loader = StreamLogLoader(
        log_path=Path(cfg.stream_log_path),
        log_names=list(cfg.log_names) if cfg.log_names is not None else None,
    )
    logger.info(f"Starting behavior analysis of {len(stream_log_loader)} logs...")

    analysis_rows = [run_behavior_analysis(cfg, stream_log) for stream_log in stream_log_loader]
    if len(analysis_rows) == 0:
        logger.warning("No stream logs found, nothing to write.")
        return
    analysis_df = pd.concat(analysis_rows, ignore_index=True)

    num_valid = int(analysis_df.loc[analysis_df["valid"], "timestamp"].nunique())
    num_ticks = int(analysis_df["timestamp"].nunique())
    logger.info(
        f"""
        Finished running behavior analysis.
            Number of evaluated ticks: {num_ticks}
            Number of successful ticks: {num_valid}
            Number of skipped ticks: {num_ticks - num_valid}
        """
    )

    timestamp = datetime.now().strftime("%Y.%m.%d.%H.%M.%S")
    output_dir = Path(cfg.output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    save_path = output_dir / f"{timestamp}.csv"
    analysis_df.to_csv(save_path)
    logger.info(f"Results are stored in {save_path}")


if __name__ == "__main__":
    main()
