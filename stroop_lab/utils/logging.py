import logging
from copy import deepcopy
from pathlib import Path

import yaml
from dareplane_utils.logging.logger import get_logger

logger = get_logger("stroop_lab", add_console_handler=True)


def add_file_handler(file_path: Path = Path("stroop_lab.log")) -> logging.Handler:
    """Mirror the console output into `file_path`, without color codes"""
    file_path = Path(file_path)
    for handler in logger.handlers:
        if (
            isinstance(handler, logging.FileHandler)
            and Path(handler.baseFilename) == file_path.resolve()
        ):
            return handler

    fh = logging.FileHandler(file_path)
    formatter = deepcopy(logger.handlers[0].formatter)
    formatter.no_color = True  # type: ignore
    fh.formatter = formatter

    logger.addHandler(fh)
    return fh


def setup_logging(config_dir: Path = Path("./configs"), level: str | None = None):
    """Configure the file handler and level from `logging.yaml`. A given
    `level` overwrites the configured one."""
    log_cfg = yaml.safe_load(open(Path(config_dir) / "logging.yaml"))
    log_path = Path(log_cfg["log_file"])
    log_path.parent.mkdir(exist_ok=True, parents=True)
    add_file_handler(log_path)
    logger.setLevel(level or log_cfg["level"])
