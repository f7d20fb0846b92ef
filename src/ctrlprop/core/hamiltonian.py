"""
Static Hamiltonian with unit handling and a cached dressed eigenbasis.

Internal units are angular frequencies in rad/ns (time in ns). Input
frequencies in GHz or MHz are converted on construction.
"""

from __future__ import annotations

from typing import Literal

import numpy as np
from scipy.optimize import linear_sum_assignment

from .bases import DRESSED, OCCUPATION, validate_basis
from .linalg import dagger


class StaticHamiltonian:
    """
    Time-independent part ``H0`` of a device Hamiltonian.

    The matrix is stored in the occupation basis. Its eigendecomposition is
    computed lazily and defines the DRESSED basis: column ``j`` of
    :meth:`dressed_basis` is the eigenvector most similar to the bare state
    ``|j⟩``, with phase chosen so that its ``j``-th component is real and
    positive.
    """

    _FREQUENCY_CONVERSIONS = {
        # Target: rad/ns
        "rad/ns": 1.0,
        "GHz": 2 * np.pi,
        "MHz": 2 * np.pi * 1e-3,
        "rad/us": 1e-3,
    }

    def __init__(self, matrix: np.ndarray, units: Literal["rad/ns", "GHz", "MHz", "rad/us"] = "rad/ns"):
        """
        Parameters
        ----------
        matrix : np.ndarray
            Hermitian matrix in the occupation basis.
        units : str
            Units of ``matrix``; converted to rad/ns.
        """
        if not isinstance(matrix, np.ndarray):
            raise TypeError("matrix must be numpy ndarray")
        if matrix.ndim != 2 or matrix.shape[0] != matrix.shape[1]:
            raise ValueError("matrix must be square 2D array")
        if units not in self._FREQUENCY_CONVERSIONS:
            raise ValueError(
                f"Unsupported Hamiltonian units: {units}. "
                f"Use one of {list(self._FREQUENCY_CONVERSIONS.keys())}"
            )
        if not np.allclose(matrix, dagger(matrix)):
            raise ValueError("matrix must be Hermitian")

        self._matrix = matrix.astype(np.complex128) * self._FREQUENCY_CONVERSIONS[units]
        self._eigvals: np.ndarray | None = None
        self._eigvecs: np.ndarray | None = None

    @property
    def matrix(self) -> np.ndarray:
        """Matrix in rad/ns, occupation basis."""
        return self._matrix.copy()

    @property
    def size(self) -> int:
        return self._matrix.shape[0]

    def _diagonalize(self) -> None:
        Λ, W = np.linalg.eigh(self._matrix)

        # Assign each eigenvector to the bare state it overlaps with most.
        _, order = linear_sum_assignment(-np.abs(W) ** 2)
        Λ = Λ[order]
        W = W[:, order]

        # Fix phases so the diagonal is real and positive.
        W = W * np.exp(-1j * np.angle(np.diag(W)))[np.newaxis, :]

        self._eigvals = Λ
        self._eigvecs = W

    @property
    def eigenvalues(self) -> np.ndarray:
        """Dressed energies, ordered like the bare states."""
        if self._eigvals is None:
            self._diagonalize()
        return self._eigvals.copy()  # type: ignore[union-attr]

    def dressed_basis(self) -> np.ndarray:
        """Unitary whose columns are the dressed states in the occupation basis."""
        if self._eigvecs is None:
            self._diagonalize()
        return self._eigvecs.copy()  # type: ignore[union-attr]

    def in_basis(self, basis: str) -> np.ndarray:
        """Matrix of ``H0`` expressed in ``basis``."""
        validate_basis(basis)
        if basis == OCCUPATION:
            return self.matrix
        return np.diag(self.eigenvalues).astype(np.complex128)

    def propagator(self, t: float, basis: str = DRESSED) -> np.ndarray:
        """
        ``U(t) = exp(-i·H0·t)`` in ``basis``.

        Diagonal in the dressed basis, so no matrix exponential is needed.
        """
        validate_basis(basis)
        phases = np.exp(-1j * self.eigenvalues * t)
        if basis == DRESSED:
            return np.diag(phases)
        W = self.dressed_basis()
        return (W * phases[np.newaxis, :]) @ dagger(W)

    def __repr__(self) -> str:
        info = f"StaticHamiltonian({self.size}×{self.size}, units='rad/ns')"
        if self.size <= 4:
            info += "\n  Eigenvalues: [" + ", ".join(f"{v:.3e}" for v in self.eigenvalues) + "]"
        return info
