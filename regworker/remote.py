"""Remote handles to worker descriptors.

A driver can hold a worker directly or through a handle to a copy that
lives elsewhere (a pending ``concurrent.futures`` result, a
``multiprocessing`` async result, or any fetch callable). Entry points
decorated with `resolves_handles` fetch the value behind a handle and call
themselves again with it, so callers never branch on which one they hold.

Examples
--------
>>> with ProcessPoolExecutor() as pool:
...     handle = FutureHandle(pool.submit(build_worker, params))
...     initialize(handle)        # same call as initialize(worker)
"""

from __future__ import annotations

import functools
from abc import ABC, abstractmethod
from typing import Any, Callable, Optional

from .errors import RemoteFetchError
from .utils.logger import get_logger

__all__ = [
    "RemoteHandle",
    "CallableHandle",
    "FutureHandle",
    "AsyncResultHandle",
    "resolve",
    "resolves_handles",
]

logger = get_logger(__name__)


class RemoteHandle(ABC):
    """Indirect reference to a value that may live in another process.

    Holding a handle never implies ownership of the referenced value.
    Subclasses implement `_fetch`; failures of the underlying primitive are
    reported as `RemoteFetchError`.
    """

    @abstractmethod
    def _fetch(self) -> Any:
        ...

    def fetch(self) -> Any:
        """Return the referenced value, blocking until it is available."""
        try:
            return self._fetch()
        except RemoteFetchError:
            raise
        except Exception as e:
            raise RemoteFetchError(f"Could not fetch value behind {self!r}: {e}") from e


class CallableHandle(RemoteHandle):
    """Handle whose value is produced by a zero-argument callable."""

    def __init__(self, fetcher: Callable[[], Any], label: Optional[str] = None):
        self._fetcher = fetcher
        self.label = label or getattr(fetcher, "__name__", "callable")

    def _fetch(self) -> Any:
        return self._fetcher()

    def __repr__(self) -> str:
        return f"CallableHandle({self.label})"


class FutureHandle(RemoteHandle):
    """Handle over a ``concurrent.futures.Future``."""

    def __init__(self, future, timeout: Optional[float] = None):
        self.future = future
        self.timeout = timeout

    def _fetch(self) -> Any:
        return self.future.result(timeout=self.timeout)

    def __repr__(self) -> str:
        return f"FutureHandle({self.future!r})"


class AsyncResultHandle(RemoteHandle):
    """Handle over a ``multiprocessing.pool.AsyncResult``."""

    def __init__(self, result, timeout: Optional[float] = None):
        self.result = result
        self.timeout = timeout

    def _fetch(self) -> Any:
        return self.result.get(timeout=self.timeout)

    def __repr__(self) -> str:
        return f"AsyncResultHandle({self.result!r})"


def resolve(obj: Any) -> Any:
    """Fetch through any chain of handles and return the value at its end."""
    while isinstance(obj, RemoteHandle):
        logger.debug(f"Fetching {obj!r}")
        obj = obj.fetch()
    return obj


def resolves_handles(func: Callable) -> Callable:
    """Make an entry point accept a `RemoteHandle` as its first argument.

    When the first argument is a handle, its value is fetched and `func` is
    called again with the fetched value and the same remaining arguments.
    """

    @functools.wraps(func)
    def wrapper(obj, *args, **kwargs):
        if isinstance(obj, RemoteHandle):
            return wrapper(resolve(obj), *args, **kwargs)
        return func(obj, *args, **kwargs)

    return wrapper
