# pricescout/config/logging_config.py

"""Per-run timestamped logging configuration for pricescout.

Each launch creates a dedicated log file inside ``logs/`` named after
the launch timestamp (e.g. ``logs/run_20260214_153045.log``).  Every
``pricescout.*`` logger routes through that file so a single search can
be followed end to end, from strategy selection through each source's
fetch to the degrade decisions of the ranking stage.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path

from pricescout.config.settings import Settings

_FILE_FORMAT = (
    "%(asctime)s | %(levelname)-8s | %(name)-24s | "
    "%(funcName)s:%(lineno)d | %(message)s"
)
_CONSOLE_FORMAT = "%(levelname)-8s %(name)s: %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Client libraries that log every request at INFO
_CHATTY_LOGGERS = ("httpx", "httpcore", "urllib3")


def _handler(
    handler: logging.Handler,
    level: int,
    fmt: str,
) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt, datefmt=_DATE_FORMAT))
    return handler


def setup_logging(verbose: bool = False) -> Path:
    """Attach a per-run file handler and a stderr handler to ``pricescout``.

    Args:
        verbose: Echo INFO records to stderr instead of WARNING and up.

    Returns:
        Path of this run's log file.
    """
    logs_dir: Path = Settings.LOGS_DIR
    logs_dir.mkdir(parents=True, exist_ok=True)
    log_file = logs_dir / f"run_{datetime.now():%Y%m%d_%H%M%S}.log"

    project_logger = logging.getLogger("pricescout")
    project_logger.setLevel(logging.DEBUG)
    for name in _CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    # Repeated calls (tests, CLI re-entry) keep the first handlers
    if project_logger.handlers:
        return log_file

    project_logger.addHandler(
        _handler(
            logging.FileHandler(log_file, encoding="utf-8"),
            logging.DEBUG,
            _FILE_FORMAT,
        )
    )
    project_logger.addHandler(
        _handler(
            logging.StreamHandler(sys.stderr),
            logging.INFO if verbose else logging.WARNING,
            _CONSOLE_FORMAT,
        )
    )
    project_logger.info(
        "Logging initialised for %s, log file: %s",
        "verbose console" if verbose else "quiet console",
        log_file,
    )
    return log_file
