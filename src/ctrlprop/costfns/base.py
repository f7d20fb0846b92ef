"""
Abstract base classes for cost functions.

A cost function object is a factory: :meth:`cost_function` returns a plain
callable ``f(x)`` and :meth:`grad_function_inplace` returns ``g(out, x)``.
Both bind ``x`` to the device before evaluating, so they can be handed
directly to an optimizer such as ``scipy.optimize.minimize``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable, Optional

import numpy as np

from ..core.bases import validate_basis, validate_frame
from ..core.grid import UniformGrid
from ..core.linalg import cis_type, dagger, rotate
from ..errors import ConfigurationError

CostFn = Callable[[np.ndarray], float]
GradFnInplace = Callable[[np.ndarray, np.ndarray], np.ndarray]
GradFn = Callable[[np.ndarray], np.ndarray]


# Smooth penalty wall, zero with all derivatives at u = 0.
def wall(u: float) -> float:
    return np.exp(u - 1 / u)


def wall_grad(u: float) -> float:
    # exp(u - 1/u)·(1 + 1/u²) in log space; 1/u² overflows for tiny u
    return np.exp(u - 1 / u + np.log1p(u**2) - 2 * np.log(u))


class CostFunctionBase(ABC):
    """Scalar function of a parameter vector, with its gradient."""

    @abstractmethod
    def __len__(self) -> int:
        """Number of parameters."""

    @abstractmethod
    def cost_function(self) -> CostFn:
        pass

    @abstractmethod
    def grad_function_inplace(self) -> GradFnInplace:
        pass

    def grad_function(self) -> GradFn:
        """Allocating wrapper around :meth:`grad_function_inplace`."""
        g = self.grad_function_inplace()

        def grad(x: np.ndarray) -> np.ndarray:
            out = np.zeros(len(self))
            g(out, x)
            return out

        return grad


class EnergyFunctionBase(CostFunctionBase):
    """
    Cost function measured on the state evolved across a uniform grid.

    Parameters
    ----------
    evolution : EvolutionBase
        Algorithm with which ``psi0`` is evolved.
    device : TransmonDevice
        Determines the evolution; its parameters are the cost function's.
    basis : str
        Measurement basis; ``psi0`` and observables are given in it.
    nsteps, dt : int, float
        Uniform time grid.
    psi0 : array_like
        Reference state.
    frame : {"rotating", "lab"}
        Measurement frame applied to observables.
    """

    def __init__(self, evolution, device, basis, nsteps, dt, psi0, frame="rotating"):
        self.evolution = evolution
        self.device = device
        self.basis = validate_basis(basis)
        self.frame = validate_frame(frame)
        self.grid = UniformGrid(nsteps, dt)

        psi0 = np.asarray(psi0)
        if psi0.shape != (device.nstates,):
            raise ConfigurationError(
                f"psi0 must have shape ({device.nstates},), got {psi0.shape}"
            )
        self.psi0 = psi0.astype(cis_type(psi0))

    @property
    def nsteps(self) -> int:
        return self.grid.nsteps()

    @property
    def dt(self) -> float:
        return self.grid.stepsize()

    def __len__(self) -> int:
        return self.device.count()

    def _check_observable(self, O0) -> np.ndarray:
        O0 = np.asarray(O0)
        n = self.device.nstates
        if O0.shape != (n, n):
            raise ConfigurationError(f"observable must have shape ({n}, {n}), got {O0.shape}")
        return O0.astype(cis_type(self.psi0))

    def _in_frame(self, O: np.ndarray, t: float) -> np.ndarray:
        """Observable ``O`` as seen by an interaction-picture state at time ``t``."""
        O = O.copy()
        if self.frame == "lab":
            # U(t)† O U(t)
            rotate(dagger(self.device.evolver(self.basis, t)), O)
        return O

    def _frame_state(self, psi: np.ndarray, t: float) -> np.ndarray:
        """Move ``psi`` (in place) into the measurement frame at time ``t``."""
        if self.frame == "lab":
            rotate(self.device.evolver(self.basis, t), psi)
        return psi

    def _signal_buffer(self, phi, depth: int) -> np.ndarray:
        shape = (self.nsteps + 1, self.device.ngrades(), depth)
        if phi is None:
            return np.empty(shape, dtype=np.finfo(self.psi0.dtype).dtype)
        phi = np.asarray(phi)
        if phi.ndim == 2 and depth == 1:
            phi = phi[:, :, np.newaxis]
        if phi.shape != shape:
            raise ConfigurationError(f"phi must have shape {shape}, got {phi.shape}")
        return phi

    def _evolve(self, callback=None) -> np.ndarray:
        return self.evolution.evolve(
            self.device, self.basis, self.grid, self.psi0, callback=callback
        )

    @abstractmethod
    def evaluate(self, psi: np.ndarray, t: float) -> float:
        """Cost of the state ``psi`` (measurement basis) at time ``t``."""

    @abstractmethod
    def cost_function(self, callback: Optional[Callable] = None) -> CostFn:
        pass

    @abstractmethod
    def grad_function_inplace(self, phi: Optional[np.ndarray] = None) -> GradFnInplace:
        pass

    def trajectory_callback(self, values: np.ndarray, callback: Optional[Callable] = None) -> Callable:
        """
        Observer for :func:`~ctrlprop.propagation.rk4.evolve` recording the cost.

        Parameters
        ----------
        values : np.ndarray
            Length ``nsteps + 1``; entry ``i`` receives the cost at ``t_i``
            for ``i = 1..nsteps``. Entry 0 is left to the caller.
        callback : callable, optional
            Chained after recording, with the same arguments.
        """
        if len(values) != self.nsteps + 1:
            raise ConfigurationError(
                f"values must have length {self.nsteps + 1}, got {len(values)}"
            )
        workbasis = self.evolution.workbasis()
        R = self.device.basisrotation(self.basis, workbasis)
        psi_ = np.empty_like(self.psi0)

        def observe(i, t, psi):
            psi_[...] = psi
            rotate(R, psi_)
            values[i] = self.evaluate(psi_, t)
            if callback is not None:
                callback(i, t, psi)

        return observe
