"""
Population of the qubit subspace at the end of a pulse.
"""

from __future__ import annotations

from typing import Callable, Optional

import numpy as np

from ..core.linalg import expectation
from ..core.operators import qubitprojector
from .base import EnergyFunctionBase


class Normalization(EnergyFunctionBase):
    """
    ``N = ⟨ψ(T)|Π|ψ(T)⟩``, the norm of the state within the qubit subspace.

    Parameters
    ----------
    evolution : EvolutionBase
    device : TransmonDevice
    basis : str
        Measurement basis; ``psi0`` is given in it. The occupation basis is
        the natural choice.
    nsteps : int
    dt : float
    psi0 : array_like
    """

    def __init__(self, evolution, device, basis, nsteps, dt, psi0):
        super().__init__(evolution, device, basis, nsteps, dt, psi0)
        self.projector = qubitprojector(device, self.basis)

    def evaluate(self, psi, t):
        return float(np.real(expectation(self.projector, np.asarray(psi))))

    def cost_function(self, callback: Optional[Callable] = None):
        Π = self.projector

        def f(x):
            self.device.bind(x)
            psi = self._evolve(callback)
            return float(np.real(expectation(Π, psi)))

        return f

    def grad_function_inplace(self, phi: Optional[np.ndarray] = None):
        phi = self._signal_buffer(phi, 1)
        Π = self.projector

        def g(out, x):
            self.device.bind(x)
            self.evolution.gradientsignals(
                self.device, self.basis, self.grid, self.psi0, Π, result=phi,
            )
            out[:] = self.device.gradient(self.grid, phi[:, :, 0])
            return out

        return g
