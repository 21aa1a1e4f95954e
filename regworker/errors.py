"""Exception types raised by the worker shell.

Soft conditions (an unset monitor field, a value that cannot be placed in
shared memory) are not errors and never raise.
"""

from __future__ import annotations

__all__ = [
    "RegWorkerError",
    "WorkerNotImplementedError",
    "MissingWorkerPidError",
    "LifecycleError",
    "RemoteFetchError",
]


class RegWorkerError(Exception):
    """Base class for all worker shell errors."""


class WorkerNotImplementedError(RegWorkerError, NotImplementedError):
    """A worker type did not define `execute`."""


class MissingWorkerPidError(RegWorkerError, AttributeError):
    """A worker has no ``worker_pid`` field and does not override `target_process`."""


class LifecycleError(RegWorkerError, RuntimeError):
    """An entry point was called out of order within a `WorkerSession`."""


class RemoteFetchError(RegWorkerError):
    """The substrate failed to deliver the value behind a remote handle."""
