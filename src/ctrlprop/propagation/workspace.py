"""
Reusable scratch arrays for the propagators.

Buffers are keyed by ``(label, dtype, shape)`` and live in a per-thread arena,
so repeated calls (e.g. every iteration of an optimizer) reuse the same
memory. A label must be held with :meth:`Workspace.acquire` while its buffers
are in use; acquiring it again on the same thread before release raises
:class:`~ctrlprop.errors.WorkspaceError`.

Buffers are handed out uninitialized: callers overwrite them before reading.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterator

import numpy as np

from ..errors import WorkspaceError


@dataclass(slots=True)
class _Arena:
    buffers: dict[tuple[str, str, tuple[int, ...]], np.ndarray] = field(default_factory=dict)
    in_use: set[str] = field(default_factory=set)


class Workspace:
    """Thread-local pool of arrays keyed by a stable label."""

    def __init__(self):
        self._local = threading.local()

    def _arena(self) -> _Arena:
        arena = getattr(self._local, "arena", None)
        if arena is None:
            arena = self._local.arena = _Arena()
        return arena

    def array(self, dtype, shape: int | tuple[int, ...], label: str) -> np.ndarray:
        """
        Return the buffer for ``(label, dtype, shape)``, allocating on first request.

        Parameters
        ----------
        dtype : numpy dtype-like
        shape : int or tuple of int
        label : str
            Stable tag of the owner, typically its module name.

        Returns
        -------
        np.ndarray
            An uninitialized array owned by this thread's arena.
        """
        shape = (int(shape),) if np.ndim(shape) == 0 else tuple(int(s) for s in shape)
        key = (label, np.dtype(dtype).str, shape)
        buffers = self._arena().buffers
        if key not in buffers:
            buffers[key] = np.empty(shape, dtype=dtype)
        return buffers[key]

    @contextmanager
    def acquire(self, label: str) -> Iterator["Workspace"]:
        """Hold ``label`` for the duration of a ``with`` block."""
        arena = self._arena()
        if label in arena.in_use:
            raise WorkspaceError(f"workspace label {label!r} is already in use on this thread")
        arena.in_use.add(label)
        try:
            yield self
        finally:
            arena.in_use.discard(label)

    def in_use(self, label: str) -> bool:
        return label in self._arena().in_use

    def clear(self, label: str | None = None) -> None:
        """Drop this thread's buffers, optionally only those of ``label``."""
        arena = self._arena()
        if label is None:
            arena.buffers.clear()
            return
        for key in [k for k in arena.buffers if k[0] == label]:
            del arena.buffers[key]

    def nbytes(self) -> int:
        return sum(a.nbytes for a in self._arena().buffers.values())

    def __repr__(self) -> str:
        arena = self._arena()
        return f"<Workspace buffers={len(arena.buffers)} nbytes={self.nbytes()} in_use={sorted(arena.in_use)}>"


WORKSPACE = Workspace()


def array(dtype, shape: int | tuple[int, ...], label: str) -> np.ndarray:
    """Shorthand for ``WORKSPACE.array``."""
    return WORKSPACE.array(dtype, shape, label)
