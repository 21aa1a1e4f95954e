"""Time-slice access for input volumes.

A volume has a time dimension when it can say which axis is time, through
a ``time_axis()`` method returning an axis position (or None). Plain
ndarrays carry no axis labels and are treated as a single unit of work.

`LabeledVolume` pairs an ndarray with a tifffile-style axes string
(``"TZYX"``, ``"TCYX"``...), where ``T`` marks time.

Examples
--------
>>> vol = LabeledVolume(np.zeros((5, 64, 64)), "TYX")
>>> time_slice(vol, 2).axes
'YX'
>>> plain = np.zeros((64, 64))
>>> time_slice(plain, 2) is plain
True
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import numpy as np
import tifffile
from numpy.typing import NDArray

from .utils.constants import TIME_AXIS_LABEL
from .utils.logger import get_logger

__all__ = [
    "LabeledVolume",
    "time_axis",
    "time_slice",
    "n_timepoints",
]

logger = get_logger(__name__)


@dataclass(eq=False)
class LabeledVolume:
    """An image array with one axis code per dimension.

    Attributes
    ----------
    data : NDArray
        Image data.
    axes : str
        One character per dimension of `data`, tifffile conventions.
    """

    data: NDArray
    axes: str

    def __post_init__(self):
        self.axes = self.axes.upper()
        if len(self.axes) != self.data.ndim:
            raise ValueError(
                f"Axes {self.axes!r} do not match array with {self.data.ndim} dimensions"
            )
        if len(set(self.axes)) != len(self.axes):
            raise ValueError(f"Duplicate axis codes in {self.axes!r}")

    @classmethod
    def from_tiff(cls, path: str | Path, series: int = 0) -> "LabeledVolume":
        """Read one series of a TIFF file together with its axes."""
        with tifffile.TiffFile(path) as tif:
            s = tif.series[series]
            logger.debug(f"Loaded {Path(path).name}: shape={s.shape}, axes={s.axes}")
            return cls(s.asarray(), s.axes)

    @property
    def shape(self):
        return self.data.shape

    @property
    def ndim(self) -> int:
        return self.data.ndim

    @property
    def dtype(self):
        return self.data.dtype

    def time_axis(self) -> Optional[int]:
        pos = self.axes.find(TIME_AXIS_LABEL)
        return pos if pos >= 0 else None

    def __array__(self, dtype=None, copy=None):
        if copy:
            return np.array(self.data, dtype=dtype)
        return np.asarray(self.data, dtype=dtype)

    def __getitem__(self, key) -> "LabeledVolume":
        """Basic indexing; integer positions drop their axis code."""
        if not isinstance(key, tuple):
            key = (key,)
        if len(key) > self.ndim:
            raise IndexError(f"Too many indices for volume with axes {self.axes!r}")
        for k in key:
            if not isinstance(k, (int, np.integer, slice)):
                raise IndexError("LabeledVolume supports integer and slice indices only")

        padded = key + (slice(None),) * (self.ndim - len(key))
        axes = "".join(a for a, k in zip(self.axes, padded) if isinstance(k, slice))
        return LabeledVolume(self.data[key], axes)


def time_axis(volume: Any) -> Optional[int]:
    """Position of the time dimension of `volume`, or None if it has none."""
    query = getattr(volume, "time_axis", None)
    if not callable(query):
        return None
    return query()


def time_slice(volume: Any, index: int) -> Any:
    """View of `volume` at time `index`.

    Parameters
    ----------
    volume : Any
        Input volume. Indexed with a tuple selecting `index` along the
        time axis; for ndarrays and `LabeledVolume` this is a view sharing
        memory with `volume`.
    index : int
        Time index.

    Returns
    -------
    Any
        The time slice, or `volume` itself when it has no time dimension.
    """
    axis = time_axis(volume)
    if axis is None:
        return volume
    key = (slice(None),) * axis + (index,)
    return volume[key]


def n_timepoints(volume: Any) -> int:
    """Number of units of work in `volume`: the time-axis length, or 1 without one."""
    axis = time_axis(volume)
    if axis is None:
        return 1
    return volume.shape[axis]
