"""
Dense linear-algebra helpers shared by the device model and the propagators.

``rotate`` mutates its second argument in place and also returns it, so both
``rotate(U, psi)`` and ``psi = rotate(U, psi)`` read naturally.
"""

from __future__ import annotations

from functools import reduce
from typing import Sequence

import numpy as np


def cis_type(x: np.ndarray | np.dtype | type) -> np.dtype:
    """Complex dtype with the same float precision as ``x``."""
    dtype = x.dtype if isinstance(x, np.ndarray) else np.dtype(x)
    return np.result_type(dtype, np.complex64)


def dagger(A: np.ndarray) -> np.ndarray:
    """Conjugate transpose."""
    return A.conj().T


def rotate(U: np.ndarray, x: np.ndarray) -> np.ndarray:
    """
    Apply ``U`` to ``x`` in place.

    Vectors are mapped ``x → U·x``; square matrices are conjugated
    ``x → U·x·U†``.

    Parameters
    ----------
    U : np.ndarray
        Square rotation (or any linear map, e.g. a projector).
    x : np.ndarray
        1-D state or 2-D operator; must be writable.

    Returns
    -------
    np.ndarray
        ``x`` itself.
    """
    if x.ndim == 1:
        x[...] = U @ x
    elif x.ndim == 2:
        x[...] = U @ x @ dagger(U)
    else:
        raise ValueError("rotate expects a vector or a square matrix")
    return x


def expectation(A: np.ndarray, psi: np.ndarray) -> complex:
    """⟨ψ|A|ψ⟩"""
    return complex(np.vdot(psi, A @ psi))


def braket(bra: np.ndarray, A: np.ndarray, ket: np.ndarray) -> complex:
    """⟨bra|A|ket⟩"""
    return complex(np.vdot(bra, A @ ket))


def kron_all(ops: Sequence[np.ndarray]) -> np.ndarray:
    """Kronecker product of a sequence of operators, first factor leftmost."""
    return reduce(np.kron, ops)


def annihilator(m: int) -> np.ndarray:
    """Truncated bosonic annihilation operator on ``m`` levels."""
    return np.diag(np.sqrt(np.arange(1, m, dtype=float)), k=1).astype(np.complex128)


def embed(op: np.ndarray, q: int, n: int) -> np.ndarray:
    """Embed the local operator ``op`` on site ``q`` of an ``n``-site register."""
    m = op.shape[0]
    eye = np.eye(m, dtype=op.dtype)
    return kron_all([op if p == q else eye for p in range(n)])
