"""
Qubit-subspace operators for multi-level devices.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

from .bases import OCCUPATION
from .linalg import annihilator, embed, kron_all, rotate

if TYPE_CHECKING:
    from .device import TransmonDevice


def localqubitprojectors(device: "TransmonDevice") -> list[np.ndarray]:
    """Projector onto levels {0, 1} for each qubit, as ``m×m`` matrices."""
    P = np.zeros((device.nlevels, device.nlevels), dtype=np.complex128)
    P[0, 0] = P[1, 1] = 1.0
    return [P.copy() for _ in range(device.nqubits)]


def qubitprojector(device: "TransmonDevice", basis: str = OCCUPATION) -> np.ndarray:
    """
    Global projector onto the computational subspace, expressed in ``basis``.

    Leakage into any level ``≥ 2`` of any qubit is projected out.
    """
    Π = kron_all(localqubitprojectors(device))
    if basis != OCCUPATION:
        rotate(device.basisrotation(basis, OCCUPATION), Π)
    return Π


def number_operator(device: "TransmonDevice", basis: str = OCCUPATION) -> np.ndarray:
    """Total excitation number ``Σ_q a_q†a_q`` in ``basis``."""
    a = annihilator(device.nlevels)
    n = a.conj().T @ a
    N = sum(embed(n, q, device.nqubits) for q in range(device.nqubits))
    if basis != OCCUPATION:
        rotate(device.basisrotation(basis, OCCUPATION), N)
    return N
