"""Monitors: passing results from workers back to the driver.

A monitor is a fixed set of named outputs the driver wants reported for
one worker. The driver creates it with `create_monitor`, naming fields of
the worker (``"shift"``, ``"mismatch"``...) and optionally extra internal
variables the algorithm knows to look for. The worker calls
`update_monitor` (all of its fields) or `update_field` (a single value)
once results for a unit of work are ready.

Only keys present at creation are ever written. Workers can test
``name in mon`` to skip computing outputs nobody asked for.

If the worker is bound to another process, array-valued entries are
promoted to shared memory (see `regworker.shared.promote`). Updating such
an entry with an array of the same shape copies in place, so the driver
sees the result without fetching it.

Examples
--------
>>> mon = create_monitor(worker, ("shift", "mismatch"), {"warped": ArrayDecl(np.float32, (512, 512))})
>>> execute(worker, volume, 0, mon)
>>> mon["shift"]
array([ 1.5, -0.25])
"""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping
from typing import Any, Dict, Iterable, Iterator, List, Optional, Union

import numpy as np

from .context import ProcessContext, current_context
from .protocol import AbstractWorker, target_process
from .remote import resolves_handles
from .shared import SharedArray, promote
from .utils.logger import get_logger

__all__ = [
    "Monitor",
    "create_monitor",
    "update_monitor",
    "update_field",
    "release_monitor",
    "worker_field_names",
]

logger = get_logger(__name__)

_UNSET = object()


def worker_field_names(worker: Any) -> List[str]:
    """Names of the fields a worker type defines.

    Dataclass fields for dataclass workers, instance attributes otherwise.
    """
    if dataclasses.is_dataclass(worker):
        return [f.name for f in dataclasses.fields(worker)]
    return list(vars(worker))


class Monitor(Mapping):
    """Read-only mapping of monitored outputs with a fixed key set.

    Values change only through `update_field` (and the helpers built on
    it); keys can be neither added nor removed after creation.
    """

    def __init__(self, values: Optional[Mapping[str, Any]] = None):
        self._values: Dict[str, Any] = dict(values or {})

    def __getitem__(self, name: str) -> Any:
        return self._values[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __contains__(self, name: object) -> bool:
        return name in self._values

    def __repr__(self) -> str:
        return f"Monitor({self._values!r})"

    def update_field(self, name: str, value: Any) -> "Monitor":
        """Store `value` under `name` if `name` is monitored.

        Same-shape arrays are copied into the existing storage, preserving
        its identity (and shared-memory backing). Anything else replaces
        the stored value.
        """
        if name not in self._values:
            return self

        current = self._values[name]
        if (
            isinstance(value, np.ndarray)
            and isinstance(current, np.ndarray)
            and current.shape == value.shape
            and current.flags.writeable
            and np.can_cast(value.dtype, current.dtype, casting="same_kind")
        ):
            if current is not value:
                np.copyto(current, value)
        else:
            self._values[name] = value
        return self

    def update_from(self, worker: Any) -> "Monitor":
        """Apply `update_field` for every field of `worker` that is set."""
        for name in worker_field_names(worker):
            value = getattr(worker, name, _UNSET)
            if value is _UNSET:
                continue
            self.update_field(name, value)
        return self

    def merge(self, other: Mapping) -> "Monitor":
        """Fold values from another monitor (e.g. one returned by a worker process)."""
        for name, value in other.items():
            self.update_field(name, value)
        return self

    def snapshot(self) -> Dict[str, Any]:
        """Plain dict of current values, with arrays copied out of shared memory."""
        return {
            name: np.array(value) if isinstance(value, np.ndarray) else value
            for name, value in self._values.items()
        }

    def release(self) -> None:
        """Unlink shared-memory segments this process allocated for the monitor."""
        for value in self._values.values():
            if isinstance(value, SharedArray):
                value.release()


@resolves_handles
def create_monitor(
    worker: Union[AbstractWorker, Iterable[AbstractWorker]],
    fields: Iterable[str],
    extra: Optional[Mapping[str, Any]] = None,
    ctx: Optional[ProcessContext] = None
) -> Union[Monitor, List[Monitor]]:
    """Turn on reporting of `fields` for `worker`.

    Parameters
    ----------
    worker : AbstractWorker or list of AbstractWorker
        Worker descriptor (or a handle to one). For a list or tuple, one
        monitor is created per element, in order.
    fields : iterable of str
        Worker fields to report. Fields the worker does not set are skipped.
    extra : mapping, optional
        Additional internal variables, with initial values. Zero is a fine
        initial value; large arrays benefit from being given as a full array
        or an `ArrayDecl` so they can be placed in shared memory.
    ctx : ProcessContext, optional
        Identity of the calling process. Defaults to the current process.

    Returns
    -------
    Monitor or list of Monitor
    """
    ctx = current_context(ctx)
    if isinstance(fields, str):
        fields = (fields,)

    if isinstance(worker, (list, tuple)):
        fields = tuple(fields)
        return [create_monitor(w, fields, extra, ctx) for w in worker]

    pid = target_process(worker)
    defined = set(worker_field_names(worker))
    values: Dict[str, Any] = {}
    for name in fields:
        value = getattr(worker, name, _UNSET) if name in defined else _UNSET
        if value is _UNSET:
            logger.debug(f"{type(worker).__name__} does not define {name!r}; not monitored")
            continue
        values[name] = promote(value, pid, ctx)

    for name, value in (extra or {}).items():
        values[name] = promote(value, pid, ctx)

    logger.debug(
        f"Monitor for {type(worker).__name__} (pid {pid}): {sorted(values)}"
    )
    return Monitor(values)


def update_monitor(mon: Monitor, worker: Any) -> Monitor:
    """Copy the current values of `worker`'s fields into `mon`.

    Workers call this once results for the current unit of work are ready.
    """
    return mon.update_from(worker)


def update_field(mon: Monitor, name: str, value: Any) -> Monitor:
    """Store `value` under `name` in `mon`; no-op if `name` is not monitored."""
    return mon.update_field(name, value)


def release_monitor(mon: Union[Monitor, Iterable[Monitor]]) -> None:
    """Release shared memory held by a monitor or a list of monitors."""
    if isinstance(mon, Monitor):
        mon.release()
        return
    for m in mon:
        m.release()
