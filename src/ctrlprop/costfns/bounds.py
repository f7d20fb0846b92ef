"""
Smooth penalty terms keeping pulse parameters inside a physical range.

Every bound uses the wall ``λ·exp(u − 1/u)`` for ``u = (r − r_max)/σ > 0`` and
zero otherwise, where ``r`` is the bounded quantity. The wall and all of its
derivatives vanish at ``u = 0``. Smaller ``σ`` means a steeper wall.
"""

from __future__ import annotations

from typing import Sequence

import numpy as np

from ..core.grid import UniformGrid
from ..errors import ConfigurationError, ParameterBoundsError
from .base import CostFunctionBase, wall, wall_grad


def _wall_values(u: np.ndarray) -> np.ndarray:
    out = np.zeros_like(u)
    m = u > 0
    out[m] = wall(u[m])
    return out


def _wall_grad_values(u: np.ndarray) -> np.ndarray:
    out = np.zeros_like(u)
    m = u > 0
    out[m] = wall_grad(u[m])
    return out


class AmplitudeBound(CostFunctionBase):
    """
    Smooth bounds on explicitly listed amplitude parameters.

    Parameters
    ----------
    omega_max : float
        Largest permissible amplitude.
    lam : float
        Penalty strength.
    sigma : float
        Penalty width.
    L : int
        Total number of parameters of the cost function.
    indices : sequence of int
        Parameter indices holding amplitudes; only these are penalized.
    paired : bool
        Whether consecutive entries of ``indices`` are the real and imaginary
        parts of one complex amplitude, bounded on its modulus.

    Raises
    ------
    ConfigurationError
        If ``paired`` and ``indices`` has odd length.
    """

    def __init__(self, omega_max: float, lam: float, sigma: float, L: int,
                 indices: Sequence[int], paired: bool):
        if sigma <= 0:
            raise ConfigurationError("sigma must be positive")
        self.omega_max = float(omega_max)
        self.lam = float(lam)
        self.sigma = float(sigma)
        self.L = int(L)
        self.indices = np.asarray(indices, dtype=int)
        self.paired = bool(paired)
        if self.paired and len(self.indices) % 2 != 0:
            raise ConfigurationError(
                f"paired amplitude indices must come in pairs, got {len(self.indices)} indices"
            )

    def __len__(self):
        return self.L

    def _pairs(self):
        if self.paired:
            return self.indices[0::2], self.indices[1::2]
        return self.indices, None

    def _check_bounds(self, x: np.ndarray) -> None:
        bad = self.indices[(self.indices < 0) | (self.indices >= len(x))]
        if bad.size:
            raise ParameterBoundsError(
                f"amplitude indices {bad.tolist()} out of range for {len(x)} parameters"
            )

    def _moduli(self, x):
        iα, iβ = self._pairs()
        α = x[iα]
        β = x[iβ] if iβ is not None else np.zeros_like(α)
        return iα, iβ, α, β, np.sqrt(α**2 + β**2)

    def cost_function(self):
        def f(x):
            x = np.asarray(x, dtype=float)
            self._check_bounds(x)
            _, _, _, _, r = self._moduli(x)
            u = (r - self.omega_max) / self.sigma
            return float(self.lam * np.sum(_wall_values(u)))

        return f

    def grad_function_inplace(self):
        def g(out, x):
            x = np.asarray(x, dtype=float)
            self._check_bounds(x)
            out[:] = 0
            iα, iβ, α, β, r = self._moduli(x)
            u = (r - self.omega_max) / self.sigma
            active = (u > 0) & (r > 0)
            scale = np.zeros_like(r)
            scale[active] = self.lam * _wall_grad_values(u[active]) / self.sigma / r[active]
            np.add.at(out, iα, scale * α)
            if iβ is not None:
                np.add.at(out, iβ, scale * β)
            return out

        return g


class GlobalAmplitudeBound(CostFunctionBase):
    """
    Smooth bound on ``|Ω_i(t)|`` for every drive, integrated over the pulse.

    Parameters
    ----------
    device : TransmonDevice
    nsteps : int
    dt : float
        Uniform grid on which the penalty density is integrated (trapezoidal).
    omega_max : float
        Largest permissible amplitude modulus.
    lam : float
        Penalty strength.
    sigma : float
        Penalty width.
    """

    def __init__(self, device, nsteps: int, dt: float, omega_max: float, lam: float, sigma: float):
        if sigma <= 0:
            raise ConfigurationError("sigma must be positive")
        self.device = device
        self.grid = UniformGrid(nsteps, dt)
        self.omega_max = float(omega_max)
        self.lam = float(lam)
        self.sigma = float(sigma)

    def __len__(self):
        return self.device.count()

    def cost_function(self):
        t = self.grid.lattice()

        def f(x):
            self.device.bind(x)
            total = 0.0
            for i in range(self.device.ndrives()):
                Ω = self.device.drivesignal(i)(t)
                u = (np.abs(Ω) - self.omega_max) / self.sigma
                total += self.grid.integrate(self.lam * _wall_values(u))
            return float(total)

        return f

    def grad_function_inplace(self):
        t = self.grid.lattice()

        def g(out, x):
            self.device.bind(x)
            out[:] = 0
            offset = 0
            for i in range(self.device.ndrives()):
                signal = self.device.drivesignal(i)
                Ω = signal(t)
                r = np.abs(Ω)
                u = (r - self.omega_max) / self.sigma
                active = (u > 0) & (r > 0)
                density = np.zeros_like(r)
                density[active] = self.lam * _wall_grad_values(u[active]) / (self.sigma * r[active])
                for k in range(signal.count()):
                    dΩ = signal.partial(k, t)
                    out[offset + k] = self.grid.integrate(density * np.real(np.conj(Ω) * dΩ))
                offset += signal.count()
            return out

        return g


class GlobalFrequencyBound(CostFunctionBase):
    """
    Smooth bound on the detuning ``|ν_i − ω_q|`` of every drive from its qubit.

    The gradient assumes the drive frequencies are the trailing parameters of
    the device, one per drive, after all signal parameters.

    Parameters
    ----------
    device : TransmonDevice
    delta_max : float
        Largest permissible detuning.
    lam : float
        Penalty strength.
    sigma : float
        Penalty width.
    """

    def __init__(self, device, delta_max: float, lam: float, sigma: float):
        if sigma <= 0:
            raise ConfigurationError("sigma must be positive")
        self.device = device
        self.delta_max = float(delta_max)
        self.lam = float(lam)
        self.sigma = float(sigma)

    def __len__(self):
        return self.device.count()

    def _detunings(self) -> np.ndarray:
        dev = self.device
        return np.array(
            [dev.detuningfrequency(i, dev.drivequbit(i)) for i in range(dev.ndrives())],
            dtype=float,
        )

    def cost_function(self):
        def f(x):
            self.device.bind(x)
            u = (np.abs(self._detunings()) - self.delta_max) / self.sigma
            return float(self.lam * np.sum(_wall_values(u)))

        return f

    def grad_function_inplace(self):
        nD = self.device.ndrives()
        offset = sum(self.device.drivesignal(i).count() for i in range(nD))

        if offset == len(self):
            # no frequency parameters
            def g0(out, x):
                out[:] = 0
                return out

            return g0
        if offset + nD != len(self):
            raise ConfigurationError("Ill-defined number of frequency parameters.")

        def g(out, x):
            self.device.bind(x)
            out[:] = 0
            Δ = self._detunings()
            u = (np.abs(Δ) - self.delta_max) / self.sigma
            out[offset:offset + nD] = self.lam * _wall_grad_values(u) * np.sign(Δ) / self.sigma
            return out

        return g
