"""Shared-memory promotion of monitored arrays.

When a worker is bound to another process, array-valued monitor fields are
moved into `multiprocessing.shared_memory` so the worker writes its results
straight into memory the driver can read, instead of pickling the array
back and forth.

A `SharedArray` is an ``ndarray`` view of a shared-memory segment. Pickling
one that spans its whole segment sends only the segment name; the receiving
process attaches to the same memory. Any other array derived from it
(slices, arithmetic results) pickles as an ordinary copy.

Examples
--------
>>> ctx = ProcessContext(pid=os.getpid())
>>> shifts = promote(np.zeros((10, 2)), worker_pid, ctx)
>>> isinstance(shifts, SharedArray)
True
>>> field = promote(ArrayDecl(np.float32, (512, 512)), worker_pid, ctx)
"""

from __future__ import annotations

import sys
from dataclasses import dataclass
from multiprocessing import shared_memory
from typing import Any, Iterable, Optional, Tuple

import numpy as np
from numpy.typing import DTypeLike

from .context import ProcessContext, current_context
from .utils.constants import MIN_SHARED_NBYTES
from .utils.logger import get_logger

__all__ = [
    "ArrayDecl",
    "SharedArray",
    "is_shareable_dtype",
    "promote",
]

logger = get_logger(__name__)

# Python 3.13 lets non-owning processes attach without registering the
# segment with their resource tracker.
_HAS_TRACK_FLAG = sys.version_info >= (3, 13)

# Variable-width or reference-holding dtype kinds
_NON_PLAIN_KINDS = frozenset("OT")


def is_shareable_dtype(dtype: DTypeLike) -> bool:
    """Return True if elements of `dtype` can live in raw shared memory.

    Fixed-width dtypes holding no Python object references qualify,
    including structured dtypes built from such fields.
    """
    dtype = np.dtype(dtype)
    return (
        dtype.kind not in _NON_PLAIN_KINDS
        and not dtype.hasobject
        and dtype.itemsize > 0
    )


@dataclass(frozen=True)
class ArrayDecl:
    """Declaration of an array output that has not been computed yet.

    Lets the driver ask for a shared buffer of a given element type and
    shape before the worker produces any data.

    Attributes
    ----------
    dtype : numpy.dtype
        Element type of the future array.
    shape : tuple of int
        Shape of the future array.
    """

    dtype: np.dtype
    shape: Tuple[int, ...]

    def __post_init__(self):
        object.__setattr__(self, "dtype", np.dtype(self.dtype))
        object.__setattr__(self, "shape", tuple(int(n) for n in self.shape))

    @property
    def ndim(self) -> int:
        return len(self.shape)

    @property
    def nbytes(self) -> int:
        return int(np.prod(self.shape, dtype=np.int64)) * self.dtype.itemsize


def _open_segment(name: str) -> shared_memory.SharedMemory:
    if _HAS_TRACK_FLAG:
        return shared_memory.SharedMemory(name=name, track=False)
    return shared_memory.SharedMemory(name=name)


def _rebuild_shared(name: str, shape: Tuple[int, ...], dtype: np.dtype, pids: Tuple[int, ...]) -> "SharedArray":
    return SharedArray(shape, dtype, pids, name=name)


class SharedArray(np.ndarray):
    """An ndarray backed by a named shared-memory segment.

    Parameters
    ----------
    shape : tuple of int
        Array shape.
    dtype : dtype-like
        Element type; must satisfy `is_shareable_dtype`.
    pids : iterable of int
        Processes the buffer is registered as visible to.
    name : str, optional
        Attach to an existing segment instead of creating one.

    Attributes
    ----------
    pids : frozenset of int
        Processes the buffer is registered as visible to.
    """

    def __new__(
        cls,
        shape: Iterable[int],
        dtype: DTypeLike,
        pids: Iterable[int],
        *,
        name: Optional[str] = None
    ):
        dtype = np.dtype(dtype)
        shape = tuple(int(n) for n in shape)
        if not is_shareable_dtype(dtype):
            raise TypeError(f"dtype {dtype} cannot be placed in shared memory")

        if name is None:
            nbytes = int(np.prod(shape, dtype=np.int64)) * dtype.itemsize
            shm = shared_memory.SharedMemory(create=True, size=max(nbytes, MIN_SHARED_NBYTES))
            owner = True
        else:
            shm = _open_segment(name)
            owner = False

        obj = super().__new__(cls, shape, dtype=dtype, buffer=shm.buf)
        obj._shm = shm
        obj._owner = owner
        obj._segment = (obj.__array_interface__["data"][0], shape, dtype)
        obj.pids = frozenset(pids)
        return obj

    def __array_finalize__(self, obj):
        if obj is None:
            return
        self._shm = getattr(obj, "_shm", None)
        self._segment = getattr(obj, "_segment", None)
        self.pids = getattr(obj, "pids", frozenset())
        self._owner = False

    @property
    def name(self) -> Optional[str]:
        """Name of the backing segment, or None for a detached array."""
        return self._shm.name if self._shm is not None else None

    @property
    def is_shared(self) -> bool:
        """True if this array is exactly the view over its whole segment."""
        if self._shm is None or self._segment is None:
            return False
        address, shape, dtype = self._segment
        return (
            self.__array_interface__["data"][0] == address
            and self.shape == shape
            and self.dtype == dtype
            and self.flags.c_contiguous
        )

    @property
    def is_owner(self) -> bool:
        return self._owner

    def release(self) -> None:
        """Unlink the segment if this process created it.

        The memory stays valid for every process still mapping it; only new
        attachments by name become impossible. Attached copies are left alone.
        """
        if not self._owner:
            return
        logger.debug(f"Unlinking shared segment {self._shm.name} ({self.nbytes} bytes)")
        self._owner = False
        self._shm.unlink()

    def __reduce_ex__(self, protocol):
        if self.is_shared:
            return (_rebuild_shared, (self._shm.name, self.shape, self.dtype, tuple(sorted(self.pids))))
        return np.asarray(self).__reduce_ex__(protocol)

    def __reduce__(self):
        return self.__reduce_ex__(2)


def _allocate(dtype: np.dtype, shape: Tuple[int, ...], target: int, ctx: ProcessContext) -> SharedArray:
    shared = SharedArray(shape, dtype, ctx.peers(target))
    logger.debug(
        f"Allocated shared segment {shared.name}: dtype={shared.dtype}, "
        f"shape={shared.shape}, pids={sorted(shared.pids)}"
    )
    return shared


def promote(value: Any, target: int, ctx: Optional[ProcessContext] = None) -> Any:
    """Back `value` by shared memory when it crosses to process `target`.

    Parameters
    ----------
    value : Any
        Monitor value: an ndarray, an `ArrayDecl`, or anything else.
    target : int
        Process the worker runs in.
    ctx : ProcessContext, optional
        Identity of the calling process. Defaults to the current process.

    Returns
    -------
    Any
        A `SharedArray` visible to the local and target processes, or
        `value` itself when the target is local, the dtype is not
        bitwise-plain, or `value` is not array-shaped.

    Notes
    -----
    Promoting a `SharedArray` that already spans its segment and is
    registered for `target` returns it unchanged.
    """
    ctx = current_context(ctx)

    if ctx.is_local(target):
        return value

    if isinstance(value, ArrayDecl):
        if not is_shareable_dtype(value.dtype):
            logger.debug(f"Not sharing declaration with dtype {value.dtype}")
            return value
        return _allocate(value.dtype, value.shape, target, ctx)

    if not isinstance(value, np.ndarray):
        return value

    if not is_shareable_dtype(value.dtype):
        logger.debug(f"Not sharing array with dtype {value.dtype}")
        return value

    if isinstance(value, SharedArray) and value.is_shared and target in value.pids:
        return value

    shared = _allocate(value.dtype, value.shape, target, ctx)
    np.copyto(shared, value)
    return shared
