# VRPlayer Logging

import logging
import sys
from pathlib import Path
from typing import Optional, Union

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(name="VRPlayer", level=logging.INFO,
                  log_file: Optional[Union[str, Path]] = None):
    """Configures the application-wide logger, optionally mirroring to a file."""
    formatter = logging.Formatter(LOG_FORMAT)

    # Root carries the handlers so detector module loggers inherit them.
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    if not root_logger.handlers:
        console = logging.StreamHandler(sys.stdout)
        console.setFormatter(formatter)
        root_logger.addHandler(console)

    if log_file is not None:
        path = Path(log_file)
        already_attached = any(
            isinstance(h, logging.FileHandler) and Path(h.baseFilename) == path.resolve()
            for h in root_logger.handlers
        )
        if not already_attached:
            path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(path, encoding="utf-8")
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)

    for handler in root_logger.handlers:
        handler.setLevel(level)
        if handler.formatter is None:
            handler.setFormatter(formatter)

    logger = logging.getLogger(name)
    logger.setLevel(level)
    logger.propagate = True
    return logger


def level_for_verbosity(verbose: int) -> int:
    """Map a CLI -v count to a logging level (0 → WARNING, 1 → INFO, 2+ → DEBUG)."""
    if verbose <= 0:
        return logging.WARNING
    if verbose == 1:
        return logging.INFO
    return logging.DEBUG


def get_logger(name="VRPlayer"):
    return logging.getLogger(name)
