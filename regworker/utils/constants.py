"""Package-wide constants and defaults.

This module centralizes the axis labels, file names and log formatting
used by the worker shell so driver and worker agree on them.

Examples
--------
>>> from regworker.utils.constants import TIME_AXIS_LABEL
>>> "TZYX".index(TIME_AXIS_LABEL)
0
"""

from __future__ import annotations

__all__ = [
    # Axes
    "TIME_AXIS_LABEL",
    # Monitor persistence
    "SCALARS_FILENAME",
    "ARRAY_TIFF_MIN_NDIM",
    "DEFAULT_MONITOR_PREFIX",
    # Shared memory
    "MIN_SHARED_NBYTES",
    # Logging
    "LOG_FORMAT",
    "LOG_DATE_FORMAT",
    "LOG_SEPARATOR",
]


# =============================================================================
# Axes
# =============================================================================

# tifffile / OME axis code for the time dimension
TIME_AXIS_LABEL: str = "T"


# =============================================================================
# Monitor Persistence
# =============================================================================

# JSON sidecar holding the scalar values of a saved monitor
SCALARS_FILENAME: str = "scalars.json"

# Arrays with at least this many dimensions are written as TIFF, others as .npy
ARRAY_TIFF_MIN_NDIM: int = 2

DEFAULT_MONITOR_PREFIX: str = "monitor"


# =============================================================================
# Shared Memory
# =============================================================================

# SharedMemory refuses zero-sized segments
MIN_SHARED_NBYTES: int = 1


# =============================================================================
# Logging Formatting
# =============================================================================

LOG_FORMAT: str = "%(asctime)s - [%(process)d] %(name)s - %(levelname)s - %(message)s"

LOG_DATE_FORMAT: str = "%Y-%m-%d %H:%M:%S"

# Standard separator for log sections (70 characters)
LOG_SEPARATOR: str = "=" * 70
