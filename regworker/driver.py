"""Driver-side helpers for running a worker over a volume.

`WorkerSession` enforces the lifecycle order
``uninitialized -> initialized -> closed`` around the bare entry points,
which do not check it themselves. `run_time_series` is the usual driver
loop: monitor, initialize, execute for each time index, clean up.

Examples
--------
>>> with WorkerSession(worker) as session:
...     for t in range(n_timepoints(volume)):
...         session.run(volume, t, mon)

>>> results = run_time_series(worker, volume, ("shift", "mismatch"))
>>> monitor_table(results)
"""

from __future__ import annotations

import enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from .context import ProcessContext
from .errors import LifecycleError
from .monitor import Monitor, create_monitor
from .protocol import cleanup, execute, initialize
from .remote import resolve
from .timeslice import n_timepoints
from .utils.logger import get_logger
from .utils.progress import ProgressTracker
from .utils.validation import log_monitor_summary

__all__ = [
    "LifecycleState",
    "WorkerSession",
    "run_time_series",
]

logger = get_logger(__name__)


class LifecycleState(enum.Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZED = "initialized"
    CLOSED = "closed"


class WorkerSession:
    """One registration run of a worker, with ordering checks.

    Parameters
    ----------
    worker : AbstractWorker or RemoteHandle
        The worker descriptor, or a handle to it.
    init_args : sequence, optional
        Extra positional arguments for `initialize`.
    cleanup_args : sequence, optional
        Extra positional arguments for `cleanup`.

    Notes
    -----
    Used as a context manager, `initialize` runs on entry and `cleanup`
    runs on exit, including when the body raises. Errors raised by the
    worker propagate unchanged.
    """

    def __init__(
        self,
        worker: Any,
        init_args: Sequence[Any] = (),
        cleanup_args: Sequence[Any] = ()
    ):
        self.worker = worker
        self.init_args = tuple(init_args)
        self.cleanup_args = tuple(cleanup_args)
        self.state = LifecycleState.UNINITIALIZED
        self.units_run = 0

    def _require(self, state: LifecycleState, action: str) -> None:
        if self.state is not state:
            raise LifecycleError(
                f"Cannot {action} worker in state {self.state.value!r} "
                f"(expected {state.value!r})"
            )

    def initialize(self) -> Any:
        self._require(LifecycleState.UNINITIALIZED, "initialize")
        result = initialize(self.worker, *self.init_args)
        self.state = LifecycleState.INITIALIZED
        return result

    def run(self, volume: Any, index: int, mon: Monitor) -> Any:
        """Execute one unit of work.

        If the worker returns a monitor other than `mon` (as one that ran
        in another process does), its values are folded into `mon`.
        """
        self._require(LifecycleState.INITIALIZED, "execute")
        result = execute(self.worker, volume, index, mon)
        if isinstance(result, Monitor) and result is not mon:
            mon.merge(result)
        self.units_run += 1
        return result

    def close(self) -> Any:
        self._require(LifecycleState.INITIALIZED, "clean up")
        try:
            return cleanup(self.worker, *self.cleanup_args)
        finally:
            self.state = LifecycleState.CLOSED

    def __enter__(self) -> "WorkerSession":
        self.initialize()
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        if self.state is LifecycleState.INITIALIZED:
            self.close()
        return False


def run_time_series(
    worker: Any,
    volume: Any,
    fields: Iterable[str],
    extra: Optional[Mapping[str, Any]] = None,
    indices: Optional[Iterable[int]] = None,
    ctx: Optional[ProcessContext] = None,
    init_args: Sequence[Any] = (),
    name: Optional[str] = None,
    progress: bool = True,
    release: bool = True
) -> List[Dict[str, Any]]:
    """Run `worker` over time indices of `volume` and collect monitored values.

    Parameters
    ----------
    worker : AbstractWorker or RemoteHandle
        Worker descriptor.
    volume : Any
        Input volume, see `regworker.timeslice`.
    fields, extra, ctx
        Passed to `create_monitor`.
    indices : iterable of int, optional
        Time indices to process. Defaults to every index of the volume's
        time axis (a single index 0 for volumes without one).
    init_args : sequence, optional
        Extra arguments for `initialize`.
    name : str, optional
        Run name for progress output. Defaults to the worker type name.
    progress : bool, default=True
        Print per-unit progress.
    release : bool, default=True
        Unlink shared memory allocated for the monitor once the run ends.

    Returns
    -------
    list of dict
        One snapshot of the monitor per processed index, in order.
    """
    mon = create_monitor(worker, fields, extra, ctx)
    if indices is None:
        indices = range(n_timepoints(volume))
    indices = list(indices)

    name = name or type(resolve(worker)).__name__
    logger.info(f"Running {name} on {len(indices)} time indices, monitoring {sorted(mon)}")

    tracker = ProgressTracker(total_steps=len(indices), operation_name=name, quiet=not progress)
    results: List[Dict[str, Any]] = []
    success = False

    tracker.start()
    try:
        with WorkerSession(worker, init_args=init_args) as session:
            for index in indices:
                session.run(volume, index, mon)
                snapshot = mon.snapshot()
                log_monitor_summary(snapshot, logger)
                results.append(snapshot)
                tracker.step_complete(f"t={index}")
        success = True
    finally:
        tracker.finish(success)
        if release:
            mon.release()

    return results
