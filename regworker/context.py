"""Explicit process identity.

Comparisons between "the process I am running in" and "the process a worker
is bound to" go through a `ProcessContext` instead of a global lookup, so
callers and tests can state which process they are speaking for.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Optional

__all__ = ["ProcessContext", "current_context"]


@dataclass(frozen=True)
class ProcessContext:
    """Identity of the local process.

    Attributes
    ----------
    pid : int
        Process identifier compared against a worker's target process.
        Defaults to ``os.getpid()`` of the process constructing it.
    """

    pid: int = field(default_factory=os.getpid)

    def is_local(self, pid: int) -> bool:
        """Return True if `pid` names this process."""
        return pid == self.pid

    def peers(self, pid: int) -> frozenset:
        """Processes that must see a buffer shared with `pid`."""
        return frozenset((self.pid, pid))


def current_context(ctx: Optional[ProcessContext] = None) -> ProcessContext:
    """Return `ctx`, or a context for the calling process when it is None."""
    return ctx if ctx is not None else ProcessContext()
