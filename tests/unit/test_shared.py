#!/usr/bin/env python3
"""Unit tests for shared-memory promotion."""

import os
import pickle

import numpy as np
import pytest

from regworker import ArrayDecl, ProcessContext, SharedArray, is_shareable_dtype, promote


class TestShareableDtype:
    """Test which element types may live in shared memory."""

    @pytest.mark.parametrize("dtype", [np.uint16, np.float32, np.complex64, np.bool_, "U8"])
    def test_plain_dtypes(self, dtype):
        """Test that fixed-width dtypes are shareable."""
        assert is_shareable_dtype(dtype)

    def test_structured_plain_dtype(self):
        """Test that structured dtypes without objects are shareable."""
        assert is_shareable_dtype(np.dtype([("x", np.float64), ("y", np.int32)]))

    def test_object_dtype(self):
        """Test that the object dtype is not shareable."""
        assert not is_shareable_dtype(object)

    def test_structured_with_object_field(self):
        """Test that a structured dtype with an object field is not shareable."""
        assert not is_shareable_dtype(np.dtype([("x", np.float64), ("label", object)]))


class TestPromoteLocal:
    """Promotion is the identity when the worker runs in this process."""

    @pytest.mark.parametrize("value", [
        np.arange(6.0).reshape(2, 3),
        np.array([None, 1], dtype=object),
        ArrayDecl(np.float32, (4, 4)),
        [0, 0, 0],
        3.5,
        "label",
    ])
    def test_returns_same_object(self, value, local_ctx):
        """Test that local promotion returns the value itself."""
        assert promote(value, local_ctx.pid, local_ctx) is value

    def test_default_context_is_current_process(self):
        """Test that the current process is the default context."""
        arr = np.zeros(3)
        assert promote(arr, os.getpid()) is arr


class TestPromoteRemote:
    """Promotion towards another process."""

    def test_array_becomes_shared_copy(self, local_ctx, release_shared):
        """Test that an array is copied into a new shared segment."""
        arr = np.arange(12, dtype=np.int32).reshape(3, 4)
        shared = release_shared(promote(arr, local_ctx.pid + 1, local_ctx))

        assert isinstance(shared, SharedArray)
        assert shared is not arr
        assert shared.is_shared
        assert shared.is_owner
        assert shared.dtype == arr.dtype
        np.testing.assert_array_equal(shared, arr)
        assert shared.pids == frozenset({local_ctx.pid, local_ctx.pid + 1})

    def test_declaration_allocates_buffer(self, local_ctx, release_shared):
        """Test that a declaration allocates a shared buffer of its shape."""
        decl = ArrayDecl(np.float32, (5, 7))
        shared = release_shared(promote(decl, local_ctx.pid + 1, local_ctx))

        assert isinstance(shared, SharedArray)
        assert shared.shape == (5, 7)
        assert shared.dtype == np.float32

    def test_object_array_unchanged(self, local_ctx):
        """Test that object arrays are not promoted."""
        arr = np.array([{"a": 1}, None], dtype=object)
        assert promote(arr, local_ctx.pid + 1, local_ctx) is arr

    def test_object_declaration_unchanged(self, local_ctx):
        """Test that object declarations are not promoted."""
        decl = ArrayDecl(object, (3,))
        assert promote(decl, local_ctx.pid + 1, local_ctx) is decl

    @pytest.mark.parametrize("value", [0, 1.5, (1, 2), None])
    def test_non_array_unchanged(self, value, local_ctx):
        """Test that non-array values are not promoted."""
        assert promote(value, local_ctx.pid + 1, local_ctx) is value

    def test_repromote_same_target_is_noop(self, local_ctx, release_shared):
        """Test that promoting a shared array to the same target is a no-op."""
        shared = release_shared(promote(np.ones(4), local_ctx.pid + 1, local_ctx))
        assert promote(shared, local_ctx.pid + 1, local_ctx) is shared

    def test_repromote_other_target_copies(self, local_ctx, release_shared):
        """Test that promoting to another target makes a new shared copy."""
        shared = release_shared(promote(np.ones(4), local_ctx.pid + 1, local_ctx))
        again = release_shared(promote(shared, local_ctx.pid + 2, local_ctx))

        assert again is not shared
        assert local_ctx.pid + 2 in again.pids
        np.testing.assert_array_equal(again, shared)

    def test_zero_size_array(self, local_ctx, release_shared):
        """Test that zero-size arrays can be promoted."""
        shared = release_shared(promote(np.zeros((0, 3)), local_ctx.pid + 1, local_ctx))
        assert shared.shape == (0, 3)


class TestSharedArray:
    """Test SharedArray pickling and ownership."""

    def test_pickle_attaches_to_same_memory(self, release_shared):
        """Test that unpickling attaches to the same segment."""
        shared = release_shared(SharedArray((3, 3), np.float64, {1, 2}))
        shared[:] = 0

        attached = pickle.loads(pickle.dumps(shared))
        attached[1, 1] = 42.0

        assert isinstance(attached, SharedArray)
        assert attached.name == shared.name
        assert not attached.is_owner
        assert attached.pids == shared.pids
        assert shared[1, 1] == 42.0

    def test_slice_pickles_as_copy(self, release_shared):
        """Test that a slice of a shared array pickles as a plain copy."""
        shared = release_shared(SharedArray((4,), np.int64, {1, 2}))
        shared[:] = [1, 2, 3, 4]

        part = pickle.loads(pickle.dumps(shared[1:3]))
        part[0] = 99

        assert type(part) is np.ndarray
        np.testing.assert_array_equal(shared, [1, 2, 3, 4])

    def test_derived_arrays_are_not_shared(self, release_shared):
        """Test that arithmetic results and views are not marked shared."""
        shared = release_shared(SharedArray((4,), np.float32, {1, 2}))
        assert not (shared + 1).is_shared
        assert not shared[::2].is_shared

    def test_object_dtype_rejected(self):
        """Test that an object dtype cannot be allocated in shared memory."""
        with pytest.raises(TypeError, match="cannot be placed in shared memory"):
            SharedArray((2,), object, {1, 2})

    def test_release_is_idempotent(self):
        """Test that releasing twice is harmless."""
        shared = SharedArray((2,), np.uint8, {1, 2})
        shared.release()
        shared.release()
        assert not shared.is_owner

    def test_attached_copy_never_unlinks(self, release_shared):
        """Test that releasing an attached copy leaves the segment in place."""
        shared = release_shared(SharedArray((2,), np.uint8, {1, 2}))
        attached = pickle.loads(pickle.dumps(shared))
        attached.release()

        reattached = pickle.loads(pickle.dumps(shared))
        assert reattached.name == shared.name


class TestArrayDecl:
    """Test array declarations."""

    def test_normalizes_fields(self):
        """Test that dtype and shape are normalized."""
        decl = ArrayDecl("float32", [4, 5])
        assert decl.dtype == np.dtype(np.float32)
        assert decl.shape == (4, 5)
        assert decl.ndim == 2
        assert decl.nbytes == 80

    def test_promotion_uses_explicit_context(self, release_shared):
        """Test that promotion records the explicit context's pid."""
        ctx = ProcessContext(pid=10)
        shared = release_shared(promote(ArrayDecl(np.int16, (2,)), 11, ctx))
        assert shared.pids == frozenset({10, 11})
