#!/usr/bin/env python3
"""Unit tests for remote handle resolution."""

from concurrent.futures import Future

import pytest

from regworker import (
    AsyncResultHandle,
    CallableHandle,
    FutureHandle,
    RemoteFetchError,
    resolve,
    resolves_handles,
)


class FakeAsyncResult:
    """Stands in for multiprocessing.pool.AsyncResult."""

    def __init__(self, value):
        self.value = value
        self.timeouts = []

    def get(self, timeout=None):
        self.timeouts.append(timeout)
        return self.value


class TestHandles:
    """Test fetching through each handle type."""

    def test_callable_handle(self):
        """Test that a callable handle returns the callable's result."""
        assert CallableHandle(lambda: 5).fetch() == 5

    def test_future_handle(self):
        """Test that a future handle returns the future's result."""
        future = Future()
        future.set_result("worker")
        assert FutureHandle(future).fetch() == "worker"

    def test_async_result_handle_passes_timeout(self):
        """Test that an async-result handle passes its timeout to get."""
        result = FakeAsyncResult("worker")
        assert AsyncResultHandle(result, timeout=2.0).fetch() == "worker"
        assert result.timeouts == [2.0]

    def test_failed_fetch_wrapped(self):
        """Test that fetch failures are wrapped in RemoteFetchError."""
        future = Future()
        future.set_exception(ConnectionError("worker died"))

        with pytest.raises(RemoteFetchError, match="worker died") as excinfo:
            FutureHandle(future).fetch()

        assert isinstance(excinfo.value.__cause__, ConnectionError)

    def test_repr_names_callable(self):
        """Test that the handle repr names the wrapped callable."""
        def build_worker():
            return None

        assert "build_worker" in repr(CallableHandle(build_worker))


class TestResolve:
    """Test resolving values and handle chains."""

    def test_plain_value_unchanged(self):
        """Test that resolving a plain value returns it unchanged."""
        obj = object()
        assert resolve(obj) is obj

    def test_nested_handles(self):
        """Test that handles to handles resolve to the final value."""
        inner = CallableHandle(lambda: "value")
        outer = CallableHandle(lambda: inner)
        assert resolve(outer) == "value"


class TestResolvesHandles:
    """Test the forwarding decorator."""

    def test_forwards_remaining_arguments(self):
        """Test that the decorator forwards the other arguments untouched."""
        seen = []

        @resolves_handles
        def entry(obj, *args, **kwargs):
            seen.append((obj, args, kwargs))
            return obj

        assert entry(CallableHandle(lambda: "w"), 1, 2, key="v") == "w"
        assert entry("direct", 3) == "direct"
        assert seen == [("w", (1, 2), {"key": "v"}), ("direct", (3,), {})]

    def test_fetches_once_per_call(self):
        """Test that a handle is fetched once per call."""
        count = {"n": 0}

        def fetcher():
            count["n"] += 1
            return "w"

        @resolves_handles
        def entry(obj):
            return obj

        handle = CallableHandle(fetcher)
        entry(handle)
        entry(handle)
        assert count["n"] == 2

    def test_preserves_metadata(self):
        """Test that the decorator preserves the function's name and docstring."""
        @resolves_handles
        def entry(obj):
            """Entry docstring."""
            return obj

        assert entry.__name__ == "entry"
        assert entry.__doc__ == "Entry docstring."
