"""The worker lifecycle protocol.

An `AbstractWorker` subclass performs registration on one unit of work
(one time slice of a volume). Everything the algorithm needs besides the
moving image is carried in fields of the worker object, usually declared
as a dataclass.

The module-level entry points are what drivers call:

- `initialize` / `cleanup`: set up and release per-run resources
  (default: no-op)
- `execute`: run the algorithm on one unit of work (must be overridden)
- `target_process`: the process the worker is bound to
- `load_device_support`: hook for loading accelerator-specific code

Each accepts either the worker itself or a `RemoteHandle` to it.

Examples
--------
>>> @dataclass
... class ShiftWorker(AbstractWorker):
...     worker_pid: int
...     shift: np.ndarray = field(default_factory=lambda: np.zeros(2))
...
...     def execute(self, volume, index, mon):
...         self.shift[:] = estimate_shift(time_slice(volume, index))
...         update_monitor(mon, self)
...         return mon
"""

from __future__ import annotations

import functools
import os
from typing import Any

from .errors import MissingWorkerPidError, WorkerNotImplementedError
from .remote import resolves_handles

__all__ = [
    "AbstractWorker",
    "LocalWorker",
    "initialize",
    "execute",
    "cleanup",
    "target_process",
    "load_device_support",
    "register_device_support",
]


class AbstractWorker:
    """Base class for registration algorithm descriptors.

    Subclasses must implement `execute` and must either provide a
    ``worker_pid`` field or override `target_process`.
    """

    def initialize(self, *args, **kwargs) -> Any:
        """Prepare resources before the first unit of work. Default: no-op."""
        return None

    def execute(self, volume, index, mon) -> Any:
        """Register the slice of `volume` at `index`, reporting into `mon`."""
        raise WorkerNotImplementedError(
            f"{type(self).__name__} must define execute(volume, index, mon)"
        )

    def cleanup(self, *args, **kwargs) -> Any:
        """Release what `initialize` acquired. Default: no-op."""
        return None

    def target_process(self) -> int:
        """Process id of the worker that will be assigned this descriptor's tasks."""
        try:
            return self.worker_pid
        except AttributeError:
            raise MissingWorkerPidError(
                f"{type(self).__name__} has no worker_pid field; "
                f"define one or override target_process()"
            ) from None


class LocalWorker(AbstractWorker):
    """Worker that always runs in the process holding it."""

    def target_process(self) -> int:
        return os.getpid()


@resolves_handles
def initialize(worker: AbstractWorker, *args, **kwargs) -> Any:
    """Call ``worker.initialize``; run once before any `execute`."""
    return worker.initialize(*args, **kwargs)


@resolves_handles
def execute(worker: AbstractWorker, volume, index, mon) -> Any:
    """Run `worker` on unit of work `index` of `volume`.

    Raises
    ------
    WorkerNotImplementedError
        If the worker type does not override `execute`.
    """
    return worker.execute(volume, index, mon)


@resolves_handles
def cleanup(worker: AbstractWorker, *args, **kwargs) -> Any:
    """Call ``worker.cleanup``; run once after the last `execute`."""
    return worker.cleanup(*args, **kwargs)


@resolves_handles
def target_process(worker: AbstractWorker) -> int:
    return worker.target_process()


@resolves_handles
@functools.singledispatch
def load_device_support(device, *args, **kwargs) -> Any:
    """Load accelerator support code for `device`. Default: no-op.

    Register loaders per device-selector type with `register_device_support`.
    """
    return None


register_device_support = load_device_support.register
