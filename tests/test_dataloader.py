from pathlib import Path

from behavior_analyzer.common.dataloader import StreamLogLoader
from behavior_analyzer.common.enums import StreamType


def test_stream_log_dump_and_load(tmp_path: Path, straight_stream_log):
    """Dumped stream logs are found and loaded by name."""
    stream_log = straight_stream_log(duration=2.0, log_name="log_a")
    stream_log.dump(tmp_path / "log_a.pkl.xz")
    straight_stream_log(duration=1.0, log_name="log_b").dump(tmp_path / "log_b.pkl.xz")
    (tmp_path / "notes.txt").write_text("not a log")

    loader = StreamLogLoader(tmp_path)
    assert loader.log_names == ["log_a", "log_b"]
    assert len(loader) == 2

    loaded = loader.get_from_log_name("log_a")
    assert loaded == stream_log
    assert len(loaded.records(StreamType.ODOMETRY)) == 21
    assert [stream_log.log_name for stream_log in loader] == ["log_a", "log_b"]


def test_stream_log_loader_filters_log_names(tmp_path: Path, straight_stream_log):
    """Only requested logs are listed."""
    for log_name in ["log_a", "log_b"]:
        straight_stream_log(duration=1.0, log_name=log_name).dump(tmp_path / f"{log_name}.pkl.xz")

    loader = StreamLogLoader(tmp_path, log_names=["log_b"])
    assert loader.log_names == ["log_b"]
    assert loader[0].log_name == "log_b"
