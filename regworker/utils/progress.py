"""Progress reporting for time-series worker runs.

Examples
--------
>>> tracker = ProgressTracker(total_steps=10, operation_name="Rigid registration")
>>> tracker.start()
>>> for t in range(10):
...     execute(worker, volume, t, mon)
...     tracker.step_complete(f"t={t}")
>>> tracker.finish()
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import List, Optional

from .constants import LOG_SEPARATOR
from .logger import log_progress

__all__ = [
    "ProgressTracker",
    "format_duration",
]


def format_duration(seconds: float) -> str:
    """Format a duration in seconds as a short human-readable string."""
    if seconds < 60:
        return f"{seconds:.0f}s"
    elif seconds < 3600:
        return f"{seconds/60:.1f}m"
    else:
        return f"{seconds/3600:.1f}h"


@dataclass
class ProgressTracker:
    """Track progress over units of work with ETA estimation.

    Attributes
    ----------
    total_steps : int
        Number of units of work to complete
    operation_name : str
        Name shown in the banner, usually the worker type
    current_step : int
        Number of completed units
    start_time : datetime or None
        When tracking started
    step_times : list of float
        Duration of each completed unit in seconds
    quiet : bool
        If True, timing is still recorded but nothing is printed
    """

    total_steps: int
    operation_name: str
    current_step: int = 0
    start_time: Optional[datetime] = None
    step_times: List[float] = field(default_factory=list)
    quiet: bool = False
    _last_step_time: Optional[float] = field(default=None, repr=False)

    def _emit(self, message: str) -> None:
        if not self.quiet:
            log_progress(message)

    def start(self) -> None:
        """Start progress tracking."""
        self.start_time = datetime.now()
        self._last_step_time = time.time()

        self._emit(LOG_SEPARATOR)
        self._emit(f"Starting: {self.operation_name}")
        self._emit(f"Units of work: {self.total_steps}")
        self._emit(LOG_SEPARATOR)

    def step_complete(self, step_name: str, details: str = "") -> None:
        """Mark a unit as complete and log progress.

        Parameters
        ----------
        step_name : str
            Name of the completed unit (e.g. ``"t=3"``)
        details : str, optional
            Additional details to log
        """
        self.current_step += 1
        now = time.time()

        if self._last_step_time is not None:
            self.step_times.append(now - self._last_step_time)
        self._last_step_time = now

        progress_pct = (self.current_step / self.total_steps) * 100 if self.total_steps else 100.0
        self._emit(
            f"[{self.current_step}/{self.total_steps}] {step_name} "
            f"({progress_pct:.0f}% complete, ETA: {self.estimate_remaining()})"
        )
        if details:
            self._emit(f"    {details}")

    def estimate_remaining(self) -> str:
        """Estimate remaining time from the average unit duration."""
        if not self.step_times:
            return "calculating..."

        avg_time = sum(self.step_times) / len(self.step_times)
        remaining_steps = max(self.total_steps - self.current_step, 0)
        return format_duration(avg_time * remaining_steps)

    def finish(self, success: bool = True) -> None:
        """Mark the run as complete.

        Parameters
        ----------
        success : bool, default=True
            Whether the run completed successfully
        """
        if self.start_time:
            duration = datetime.now() - self.start_time
        else:
            duration = timedelta(seconds=0)

        status = "completed successfully" if success else "FAILED"

        self._emit(LOG_SEPARATOR)
        self._emit(f"{self.operation_name} {status}")
        self._emit(f"Total time: {duration}")
        self._emit(f"Units completed: {self.current_step}/{self.total_steps}")
        if self.step_times:
            avg_time = sum(self.step_times) / len(self.step_times)
            self._emit(f"Average unit time: {avg_time:.1f}s")
        self._emit(LOG_SEPARATOR)
