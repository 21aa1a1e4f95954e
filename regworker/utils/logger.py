"""Centralized logging configuration for driver and worker processes.

Every module of the package obtains its logger through `get_logger`.
Importing the package never touches the root logger; the driver
application calls `configure_logging` once at startup if it wants the
package's handler set.

Examples
--------
>>> from regworker.utils.logger import get_logger, configure_logging
>>> configure_logging(level=logging.DEBUG, log_file="driver.log")
>>> logger = get_logger(__name__)
>>> logger.info("Dispatching time index 3")

Notes
-----
Worker processes started with ``fork`` inherit the driver's configuration.
Processes started with ``spawn`` log through whatever the worker
entry point configures.
"""

from __future__ import annotations

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

from .constants import LOG_DATE_FORMAT, LOG_FORMAT

__all__ = ["get_logger", "configure_logging", "log_progress"]


_LOGGING_CONFIGURED = False
_LOG_LEVEL = logging.INFO
_LOG_FILE: Optional[Path] = None


def configure_logging(
    level: int = logging.INFO,
    log_file: Optional[str | Path] = None,
    format_string: Optional[str] = None
) -> None:
    """Configure global logging settings (call once at driver startup).

    Parameters
    ----------
    level : int, default=logging.INFO
        Logging level from the logging module.
    log_file : str or Path or None, optional
        Path to log file. If None, logs only to console.
    format_string : str or None, optional
        Custom format string for log messages. If None, uses
        ``LOG_FORMAT`` which includes the process id, so driver and
        worker lines can be told apart in a shared log.

    Notes
    -----
    Subsequent calls have no effect.
    """
    global _LOGGING_CONFIGURED, _LOG_LEVEL, _LOG_FILE

    if _LOGGING_CONFIGURED:
        logging.getLogger(__name__).debug(
            "Logging already configured, skipping reconfiguration"
        )
        return

    _LOG_LEVEL = level
    _LOG_FILE = Path(log_file) if log_file else None

    if format_string is None:
        format_string = LOG_FORMAT

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    formatter = logging.Formatter(format_string, datefmt=LOG_DATE_FORMAT)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if _LOG_FILE:
        _LOG_FILE.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(_LOG_FILE)
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

        root_logger.info(f"Logging to file: {_LOG_FILE}")

    _LOGGING_CONFIGURED = True
    root_logger.debug("Logging configuration complete")


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance with the given name.

    Parameters
    ----------
    name : str
        Logger name, typically `__name__` of the calling module.

    Returns
    -------
    logging.Logger
        Logger instance. Handlers and level come from the host
        application or from `configure_logging`.
    """
    return logging.getLogger(name)


def log_progress(message: str) -> None:
    """Print a timestamped progress message to stdout with flush.

    Used by the progress tracker for driver-side run reports that should
    show up regardless of log level.

    Parameters
    ----------
    message : str
        Progress message to print.

    Examples
    --------
    >>> log_progress("Time index 4/10 done")
    [2025-12-28 10:30:45] Time index 4/10 done
    """
    timestamp = datetime.now().strftime(LOG_DATE_FORMAT)
    print(f"[{timestamp}] {message}", flush=True)
