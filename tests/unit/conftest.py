#!/usr/bin/env python3
"""pytest configuration and fixtures for unit tests."""

import os

import numpy as np
import pytest

from regworker import ProcessContext, SharedArray


@pytest.fixture
def local_ctx():
    """Context for the test process itself."""
    return ProcessContext(pid=os.getpid())


@pytest.fixture
def driver_ctx():
    """Context claiming a pid no worker in these tests is bound to.

    Workers bound to ``os.getpid()`` then count as remote, so promotion to
    shared memory happens without starting another process.
    """
    return ProcessContext(pid=-1)


@pytest.fixture
def release_shared():
    """Collect SharedArrays created by a test and unlink them afterwards."""
    created = []

    def _track(value):
        if isinstance(value, SharedArray):
            created.append(value)
        return value

    yield _track

    for arr in created:
        arr.release()


@pytest.fixture
def synthetic_2d():
    """Small 2D image without a time axis."""
    return np.random.randint(0, 255, size=(32, 32), dtype=np.uint16)


@pytest.fixture
def synthetic_series():
    """Small (T, Y, X) time series with a different constant per time point."""
    data = np.zeros((4, 16, 16), dtype=np.float32)
    for t in range(data.shape[0]):
        data[t] = t + 1
    return data


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "slow: mark test as slow running"
    )
    config.addinivalue_line(
        "markers", "multiprocess: mark test as starting worker processes"
    )
