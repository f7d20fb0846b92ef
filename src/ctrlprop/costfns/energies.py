"""
Energy cost functions: expectation values of a Hermitian observable at the
end of a pulse.

* :class:`BareEnergy`       – ``⟨ψ(T)|O_T|ψ(T)⟩``
* :class:`ProjectedEnergy`  – the state is projected onto the qubit subspace
  before measurement, ``O_T → Π·O_T·Π``
* :class:`NormalizedEnergy` – projected and renormalized, ``E / ⟨Π⟩``

``O_T`` is the observable in the measurement frame: ``O0`` itself in the
rotating frame, ``U(T)†·O0·U(T)`` in the lab frame.
"""

from __future__ import annotations

from typing import Callable, Optional

import numpy as np

from ..core.linalg import expectation, rotate
from ..core.operators import qubitprojector
from .base import EnergyFunctionBase


class BareEnergy(EnergyFunctionBase):
    """
    Expectation value of a Hermitian observable.

    "Bare" because no projection is performed, beyond whatever is built into
    ``O0`` itself.

    Parameters
    ----------
    evolution : EvolutionBase
    device : TransmonDevice
    basis : str
        Measurement basis, also the basis of ``psi0`` and ``O0``.
    frame : {"rotating", "lab"}
    nsteps : int
    dt : float
    psi0 : array_like
    O0 : array_like
        Hermitian ``(nstates, nstates)`` matrix.
    """

    def __init__(self, evolution, device, basis, frame, nsteps, dt, psi0, O0):
        super().__init__(evolution, device, basis, nsteps, dt, psi0, frame=frame)
        self.O0 = self._check_observable(O0)

    def observable(self) -> np.ndarray:
        """``O_T``, the observable measured on the final state."""
        return self._in_frame(self.O0, self.grid.duration())

    def evaluate(self, psi, t):
        psi = self._frame_state(np.array(psi, dtype=self.psi0.dtype), t)
        return float(np.real(expectation(self.O0, psi)))

    def cost_function(self, callback: Optional[Callable] = None):
        OT = self.observable()

        def f(x):
            self.device.bind(x)
            psi = self._evolve(callback)
            return float(np.real(expectation(OT, psi)))

        return f

    def grad_function_inplace(self, phi: Optional[np.ndarray] = None):
        phi = self._signal_buffer(phi, 1)
        OT = self.observable()

        def g(out, x):
            self.device.bind(x)
            self.evolution.gradientsignals(
                self.device, self.basis, self.grid, self.psi0, OT, result=phi,
            )
            out[:] = self.device.gradient(self.grid, phi[:, :, 0])
            return out

        return g


class ProjectedEnergy(BareEnergy):
    """
    Expectation value of a Hermitian observable after projecting the state
    onto the qubit subspace.

    Models an ideal measurement in which leakage is fully characterized.
    Arguments are those of :class:`BareEnergy`.
    """

    def __init__(self, evolution, device, basis, frame, nsteps, dt, psi0, O0):
        super().__init__(evolution, device, basis, frame, nsteps, dt, psi0, O0)
        self.projector = qubitprojector(device, self.basis)

    def observable(self):
        OT = super().observable()
        return rotate(self.projector, OT)

    def evaluate(self, psi, t):
        psi = np.array(psi, dtype=self.psi0.dtype)
        rotate(self.projector, psi)
        return super().evaluate(psi, t)


class NormalizedEnergy(ProjectedEnergy):
    """
    Projected energy renormalized by the population of the qubit subspace.

    Models a measurement in which leakage is completely obscured::

        f = E / N,    E = ⟨ψ(T)|Π·O_T·Π|ψ(T)⟩,    N = ⟨ψ(T)|Π|ψ(T)⟩

    Both gradient signals come from one adjoint pass with two observables.
    """

    def evaluate(self, psi, t):
        N = float(np.real(expectation(self.projector, np.asarray(psi))))
        return super().evaluate(psi, t) / N

    def cost_function(self, callback: Optional[Callable] = None):
        OT = self.observable()
        Π = self.projector

        def f(x):
            self.device.bind(x)
            psi = self._evolve(callback)
            E = float(np.real(expectation(OT, psi)))
            N = float(np.real(expectation(Π, psi)))
            return E / N

        return f

    def grad_function_inplace(self, phi: Optional[np.ndarray] = None):
        phi = self._signal_buffer(phi, 2)
        OT = self.observable()
        Π = self.projector
        observables = np.stack([OT, Π], axis=-1)

        def g(out, x):
            self.device.bind(x)
            psi = self._evolve()
            E = float(np.real(expectation(OT, psi)))
            N = float(np.real(expectation(Π, psi)))

            self.evolution.gradientsignals(
                self.device, self.basis, self.grid, self.psi0, observables, result=phi,
            )
            dE = self.device.gradient(self.grid, phi[:, :, 0])
            dN = self.device.gradient(self.grid, phi[:, :, 1])
            out[:] = dE / N - (E / N) * (dN / N)
            return out

        return g
