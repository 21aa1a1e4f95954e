"""Worker shell utilities.

- **logger**: Centralized logging configuration
- **constants**: Package-wide constants
- **progress**: Progress reporting for time-series runs
- **validation**: Logging helpers for monitored values

Examples
--------
>>> from regworker.utils import get_logger
>>> logger = get_logger(__name__)
"""

from __future__ import annotations

from .logger import (
    get_logger,
    configure_logging,
    log_progress,
)

from .constants import (
    TIME_AXIS_LABEL,
    LOG_SEPARATOR,
)

from .progress import ProgressTracker

from .validation import (
    log_array_stats,
    log_monitor_summary,
)

__all__ = [
    # Logger
    "get_logger",
    "configure_logging",
    "log_progress",
    # Constants
    "TIME_AXIS_LABEL",
    "LOG_SEPARATOR",
    # Progress
    "ProgressTracker",
    # Validation
    "log_array_stats",
    "log_monitor_summary",
]
