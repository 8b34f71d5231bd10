import logging
import sys
from pathlib import Path

from pfs import config

LOGGER_NAME = "pfs"


def setup_logger():
    logger = logging.getLogger(LOGGER_NAME)
    # Every module calls this at import time; configure only once
    if logger.handlers:
        return logger

    logger.setLevel(logging.DEBUG)
    logger.propagate = False

    # Console handler (for basic logging)
    console_formatter = logging.Formatter(
        '%(asctime)s - %(levelname)s - %(message)s'
    )
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(console_formatter)
    logger.addHandler(console_handler)

    # File handler (for detailed logging), only when a log directory is configured
    if config.LOG_DIR:
        logs_dir = Path(config.LOG_DIR)
        logs_dir.mkdir(exist_ok=True, parents=True)

        file_formatter = logging.Formatter(
            '%(asctime)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s'
        )
        file_handler = logging.FileHandler(logs_dir / "pfs.log")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(file_formatter)
        logger.addHandler(file_handler)

    return logger
