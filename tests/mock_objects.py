import numpy as np

SIGMA_X = np.array([[0, 1], [1, 0]], dtype=np.complex128)
SIGMA_Y = np.array([[0, -1j], [1j, 0]], dtype=np.complex128)
SIGMA_Z = np.array([[1, 0], [0, -1]], dtype=np.complex128)


class MockDevice:
    """
    Two-level device with three constant gradient channels.

    H0 = diag(0, w), V = c0·σx + c1·σy + c2·σz, ∂V/∂c_j = σ_j.
    With ``w = 0`` the interaction-picture Hamiltonian is constant, so exact
    solutions are matrix exponentials of ``V``.
    """

    def __init__(self, coeffs=(0.5, 0.3, 0.2), w=0.0):
        self.coeffs = np.asarray(coeffs, dtype=float)
        self.w = float(w)
        self.channels = [SIGMA_X, SIGMA_Y, SIGMA_Z]

    @property
    def nstates(self):
        return 2

    def ngrades(self):
        return 3

    def ndrives(self):
        return 1

    def evolver(self, basis, t):
        return np.diag(np.exp(-1j * np.array([0.0, self.w]) * t))

    def operator(self, t, basis):
        return sum(c * G for c, G in zip(self.coeffs, self.channels))

    def gradient_operator(self, j, t, basis):
        return self.channels[j].copy()

    def braket(self, j, t, basis, bra, ket):
        U = self.evolver(basis, t)
        return complex(np.vdot(U @ bra, self.channels[j] @ (U @ ket)))

    def basisrotation(self, target, source):
        return np.eye(2, dtype=np.complex128)

    def hamiltonian(self):
        """Constant interaction-picture Hamiltonian, valid for ``w = 0``."""
        return self.operator(0.0, None)


class DummyEvolution:
    """Evolution mode stand-in for calling the module-level functions directly."""

    def __init__(self, workbasis="occupation"):
        self._workbasis = workbasis

    def workbasis(self):
        return self._workbasis
