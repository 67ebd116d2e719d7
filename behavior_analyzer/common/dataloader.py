from __future__ import annotations

import lzma
import pickle
from pathlib import Path
from typing import Dict, Iterator, List, Optional

from tqdm import tqdm

from behavior_analyzer.planning.log_caching.stream_log import StreamLog

STREAM_LOG_SUFFIX = ".pkl.xz"


class StreamLogLoader:
    """Simple dataloader for recorded stream logs."""

    def __init__(self, log_path: Path, log_names: Optional[List[str]] = None):
        """
        Initializes the stream log loader.
        :param log_path: directory of stream log files
        :param log_names: optional list of log names to load, defaults to all
        """
        self.log_paths = self._load_log_paths(log_path, log_names)

    @staticmethod
    def _load_log_paths(log_path: Path, log_names: Optional[List[str]]) -> Dict[str, Path]:
        """
        Helper function to find all stream log files in folder.
        :param log_path: directory of stream log files
        :param log_names: optional filter of log names
        :return: dictionary of log name and file path
        """
        log_paths = {
            file.name[: -len(STREAM_LOG_SUFFIX)]: file
            for file in sorted(log_path.iterdir())
            if file.name.endswith(STREAM_LOG_SUFFIX)
        }
        if log_names is not None:
            log_paths = {log_name: file for log_name, file in log_paths.items() if log_name in set(log_names)}
        return log_paths

    @property
    def log_names(self) -> List[str]:
        """
        :return: list of log names for loading.
        """
        return list(self.log_paths.keys())

    def __len__(self) -> int:
        """
        :return: number of logs possible to load.
        """
        return len(self.log_paths)

    def __getitem__(self, idx: int) -> StreamLog:
        """
        :param idx: index of log to load
        :return: stream log dataclass
        """
        return self.get_from_log_name(self.log_names[idx])

    def __iter__(self) -> Iterator[StreamLog]:
        for log_name in tqdm(self.log_names, desc="Loading stream logs"):
            yield self.get_from_log_name(log_name)

    def get_from_log_name(self, log_name: str) -> StreamLog:
        """
        Load stream log from log name.
        :param log_name: name of the log
        :return: stream log dataclass
        """
        with lzma.open(self.log_paths[log_name], "rb") as f:
            stream_log: StreamLog = pickle.load(f)
        return stream_log
