import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from . import settings

FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Libraries whose DEBUG chatter would drown the pipeline banners.
NOISY_LOGGERS = ("urllib3", "requests")


def _file_handler(log_dir: Path, level) -> RotatingFileHandler:
    log_dir.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        log_dir / settings.LOG_FILENAME,
        maxBytes=5 * 1024 * 1024,  # 5 MB
        backupCount=3,
        encoding="utf-8",
    )
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(FILE_FORMAT))
    return handler


def setup_logger(
    name: str = None, log_level: int | str = None, log_dir: Path = None
) -> logging.Logger:
    """
    Configures console (bare messages) and rotating file (timestamped) output.
    With no name this is the root logger, so every module's
    logging.getLogger(__name__) writes through it.
    """
    level = log_level or settings.LOG_LEVEL

    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Calling twice (main + tests) must not duplicate every line.
    if logger.handlers:
        return logger

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(console_handler)

    logger.addHandler(_file_handler(log_dir or settings.LOG_DIR, level))

    for noisy in NOISY_LOGGERS:
        logging.getLogger(noisy).setLevel(logging.WARNING)

    return logger
