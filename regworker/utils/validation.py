"""Logging helpers for values collected in a monitor.

Examples
--------
>>> from regworker.utils.validation import log_array_stats
>>> log_array_stats(mon["warped"], "warped", logger)
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

import numpy as np
from numpy.typing import NDArray


__all__ = [
    "log_array_stats",
    "log_monitor_summary",
]


def _has_nonfinite(data: NDArray) -> bool:
    """Return True if a floating or complex array holds NaN or Inf values."""
    if not (np.issubdtype(data.dtype, np.floating) or np.issubdtype(data.dtype, np.complexfloating)):
        return False
    return not bool(np.all(np.isfinite(data)))


def log_array_stats(
    data: NDArray,
    field_name: str,
    logger: Optional[logging.Logger] = None,
    level: int = logging.DEBUG
) -> None:
    """Log statistics of a monitored array.

    Parameters
    ----------
    data : NDArray
        Array value of a monitor field.
    field_name : str
        Monitor key, used as the log prefix.
    logger : logging.Logger, optional
        Logger to use. If None, uses this module's logger.
    level : int, default=logging.DEBUG
        Level for the statistics line. Non-finite values are always
        reported as a warning.
    """
    _logger = logger or logging.getLogger(__name__)

    if data.size == 0 or data.dtype.hasobject or not np.issubdtype(data.dtype, np.number):
        _logger.log(level, f"[{field_name}] dtype={data.dtype}, shape={data.shape}")
        return

    if _has_nonfinite(data):
        _logger.warning(f"[{field_name}] Non-finite values detected")
        finite = data[np.isfinite(data)]
        if finite.size == 0:
            return
        data = finite

    _logger.log(
        level,
        f"[{field_name}] dtype={data.dtype}, shape={data.shape}, "
        f"min={data.min()}, max={data.max()}, mean={data.mean():.4g}"
    )


def log_monitor_summary(
    values: Mapping[str, Any],
    logger: Optional[logging.Logger] = None,
    level: int = logging.DEBUG
) -> None:
    """Log one line per monitor field: array statistics or the scalar value."""
    _logger = logger or logging.getLogger(__name__)

    for name, value in values.items():
        if isinstance(value, np.ndarray):
            log_array_stats(value, name, _logger, level)
        else:
            _logger.log(level, f"[{name}] {type(value).__name__}: {value!r}")
