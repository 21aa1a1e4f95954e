"""Tabulating and saving monitored results.

Examples
--------
>>> results = run_time_series(worker, volume, ("shift", "mismatch", "warped"))
>>> df = monitor_table(results)
>>> df.to_csv("mismatch.csv")
>>> save_monitor(results[-1], "out/t004")
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

import numpy as np
import pandas as pd
import tifffile

from .utils.constants import ARRAY_TIFF_MIN_NDIM, DEFAULT_MONITOR_PREFIX, SCALARS_FILENAME
from .utils.logger import get_logger

__all__ = [
    "monitor_table",
    "save_monitor",
    "load_scalars",
]

logger = get_logger(__name__)


def _is_scalar(value: Any) -> bool:
    return np.isscalar(value) or (isinstance(value, np.ndarray) and value.ndim == 0)


def _to_builtin(value: Any) -> Any:
    if isinstance(value, (np.generic, np.ndarray)):
        return value.item()
    return value


def monitor_table(
    snapshots: Sequence[Mapping[str, Any]],
    indices: Optional[Iterable[int]] = None
) -> pd.DataFrame:
    """Collect scalar monitor values into a table, one row per unit of work.

    Parameters
    ----------
    snapshots : sequence of mapping
        Monitor snapshots, e.g. the output of `run_time_series`.
    indices : iterable of int, optional
        Time index of each snapshot. Defaults to ``0..len(snapshots)-1``.

    Returns
    -------
    pandas.DataFrame
        Scalar fields as columns, indexed by time index. Array-valued
        fields are left out.
    """
    if indices is None:
        indices = range(len(snapshots))
    indices = list(indices)
    if len(indices) != len(snapshots):
        raise ValueError(
            f"Got {len(indices)} indices for {len(snapshots)} snapshots"
        )

    rows: List[Dict[str, Any]] = [
        {name: _to_builtin(value) for name, value in snap.items() if _is_scalar(value)}
        for snap in snapshots
    ]
    return pd.DataFrame(rows, index=pd.Index(indices, name="t"))


def save_monitor(
    values: Mapping[str, Any],
    output_dir: str | Path,
    prefix: str = DEFAULT_MONITOR_PREFIX
) -> Dict[str, Path]:
    """Write monitored values to `output_dir`.

    Arrays with two or more dimensions are written as TIFF, other arrays as
    ``.npy``; scalars and other JSON-serializable values go to one JSON
    file. Values that fit none of these are skipped with a warning.

    Parameters
    ----------
    values : mapping
        A monitor or a monitor snapshot.
    output_dir : str or Path
        Directory to write into, created if needed.
    prefix : str, default="monitor"
        File name prefix for array files.

    Returns
    -------
    dict
        Field name to written path. Scalars map to the JSON file.
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    written: Dict[str, Path] = {}
    scalars: Dict[str, Any] = {}

    for name, value in values.items():
        if isinstance(value, np.ndarray) and value.ndim > 0 and not value.dtype.hasobject:
            data = np.asarray(value)
            if data.ndim >= ARRAY_TIFF_MIN_NDIM:
                path = output_dir / f"{prefix}_{name}.tif"
                tifffile.imwrite(path, data)
            else:
                path = output_dir / f"{prefix}_{name}.npy"
                np.save(path, data)
            logger.debug(f"Saved {name}: {path.name} ({data.dtype}, {data.shape})")
            written[name] = path
            continue

        value = _to_builtin(value) if _is_scalar(value) else value
        try:
            json.dumps(value)
        except TypeError:
            logger.warning(f"Skipping {name}: {type(value).__name__} is not serializable")
            continue
        scalars[name] = value

    if scalars:
        path = output_dir / f"{prefix}_{SCALARS_FILENAME}"
        with open(path, "w") as f:
            json.dump(scalars, f, indent=2)
        for name in scalars:
            written[name] = path

    logger.info(f"Saved {len(written)} monitored fields to {output_dir}")
    return written


def load_scalars(output_dir: str | Path, prefix: str = DEFAULT_MONITOR_PREFIX) -> Dict[str, Any]:
    """Read back the scalar values written by `save_monitor`."""
    path = Path(output_dir) / f"{prefix}_{SCALARS_FILENAME}"
    if not path.exists():
        raise FileNotFoundError(f"Scalar file not found: {path}")
    with open(path) as f:
        return json.load(f)
