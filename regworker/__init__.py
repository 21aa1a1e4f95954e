"""Worker shell for distributed image registration.

This package defines the contract between a driver process and the worker
processes that register individual time slices of an image volume:

- `AbstractWorker` and the entry points `initialize`, `execute`,
  `cleanup`, `target_process` and `load_device_support`
- monitors (`create_monitor`, `update_monitor`, `update_field`) for
  passing results back to the driver
- shared-memory promotion of monitored arrays (`promote`, `ArrayDecl`)
- remote handles (`RemoteHandle` and friends)
- `time_slice` for taking one time point of a volume
"""

__version__ = "1.0.0"

from .context import ProcessContext
from .errors import (
    LifecycleError,
    MissingWorkerPidError,
    RegWorkerError,
    RemoteFetchError,
    WorkerNotImplementedError,
)
from .shared import ArrayDecl, SharedArray, is_shareable_dtype, promote
from .remote import (
    AsyncResultHandle,
    CallableHandle,
    FutureHandle,
    RemoteHandle,
    resolve,
    resolves_handles,
)
from .protocol import (
    AbstractWorker,
    LocalWorker,
    cleanup,
    execute,
    initialize,
    load_device_support,
    register_device_support,
    target_process,
)
from .monitor import (
    Monitor,
    create_monitor,
    release_monitor,
    update_field,
    update_monitor,
)
from .timeslice import LabeledVolume, n_timepoints, time_axis, time_slice
from .driver import LifecycleState, WorkerSession, run_time_series
from .results import load_scalars, monitor_table, save_monitor

__all__ = [
    "ProcessContext",
    # errors
    "RegWorkerError",
    "WorkerNotImplementedError",
    "MissingWorkerPidError",
    "LifecycleError",
    "RemoteFetchError",
    # shared memory
    "ArrayDecl",
    "SharedArray",
    "is_shareable_dtype",
    "promote",
    # remote handles
    "RemoteHandle",
    "CallableHandle",
    "FutureHandle",
    "AsyncResultHandle",
    "resolve",
    "resolves_handles",
    # protocol
    "AbstractWorker",
    "LocalWorker",
    "initialize",
    "execute",
    "cleanup",
    "target_process",
    "load_device_support",
    "register_device_support",
    # monitor
    "Monitor",
    "create_monitor",
    "update_monitor",
    "update_field",
    "release_monitor",
    # time slices
    "LabeledVolume",
    "time_axis",
    "time_slice",
    "n_timepoints",
    # driver
    "LifecycleState",
    "WorkerSession",
    "run_time_series",
    # results
    "monitor_table",
    "save_monitor",
    "load_scalars",
]
