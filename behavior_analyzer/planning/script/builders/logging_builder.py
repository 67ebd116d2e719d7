import logging
from typing import Optional

from omegaconf import DictConfig

logger = logging.getLogger(__name__)

DEFAULT_LOGGER_FORMAT = "%(asctime)s %(levelname)-2s {%(pathname)s:%(lineno)d}  %(message)s"


def build_logger(cfg: DictConfig) -> logging.Logger:
    """
    Setup the standard logger, always log to sys.stdout.
    :param cfg: DictConfig. Configuration that is used to run the experiment.
    :return: root logger
    """
    level = getattr(logging, str(cfg.get("logger_level", "info")).upper())
    format_string: Optional[str] = cfg.get("logger_format_string", None) or DEFAULT_LOGGER_FORMAT

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    # hydra installs its own handlers, reuse them if present
    if not root_logger.handlers:
        root_logger.addHandler(logging.StreamHandler())
    for handler in root_logger.handlers:
        handler.setLevel(level)
        handler.setFormatter(logging.Formatter(format_string))

    logger.info(f"Logger is configured with level {logging.getLevelName(level)}")
    return root_logger
