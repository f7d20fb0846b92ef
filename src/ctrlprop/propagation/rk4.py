"""
Fixed-step RK4 propagation and adjoint gradient signals.

Equation of motion (interaction picture of the static Hamiltonian)::

    dψ/dt = -i · U(t)† · V(t) · U(t) · ψ,      U(t) = exp(-i·H0·t)

Backward propagation re-uses :func:`rk4_step` with a negated step size. It is
an independent re-integration, not an exact inverse, so forward and backward
trajectories agree only up to the integrator's own error.

Both grid call forms are accepted by the drivers::

    evolve(evolution, device, basis, grid, psi0)
    evolve(evolution, device, basis, nsteps, dt, psi0)
"""

from __future__ import annotations

from typing import Callable, Iterator, Optional, Sequence

import numpy as np

from ..core.bases import OCCUPATION, validate_basis
from ..core.grid import GridType, TemporalLattice, UniformGrid, as_grid
from ..core.linalg import cis_type, dagger, rotate
from ..errors import ConfigurationError, NumericalDivergenceError, get_logger
from .base import EvolutionBase
from .kernels import axpy_into, rk4_combine
from .workspace import WORKSPACE, array

LABEL = __name__

logger = get_logger()

Callback = Callable[[int, float, np.ndarray], None]


# ---------------------------------------------------------------------
# single step
# ---------------------------------------------------------------------
def psi_derivative(evolution, device, basis: str, t: float, psi: np.ndarray) -> np.ndarray:
    """
    Instantaneous derivative ``dψ/dt = -i·H_I(t)·ψ``.

    Parameters
    ----------
    evolution : EvolutionBase
        Evolution mode the call belongs to.
    device : DeviceProtocol
    basis : str
        Basis in which ``psi`` is expressed.
    t : float
    psi : np.ndarray
        State vector; not modified.

    Returns
    -------
    np.ndarray
        Newly allocated derivative vector.
    """
    U = device.evolver(basis, t)
    V = device.operator(t, basis)
    H = dagger(U) @ V @ U
    return -1j * (H @ psi)


def rk4_step(
    evolution,
    device,
    basis: str,
    t: float,
    psi: np.ndarray,
    dt: float,
    out: Optional[np.ndarray] = None,
) -> np.ndarray:
    """
    Advance ``psi`` from ``t`` to ``t + dt`` with one classical RK4 step.

    ``dt`` may be negative. ``psi`` is left untouched unless ``out is psi``.
    """
    dt = float(dt)
    half = 0.5 * dt
    psi = np.asarray(psi)
    stage = np.empty(psi.shape, dtype=cis_type(psi))

    # ---- Runge–Kutta 4 ----
    k1 = psi_derivative(evolution, device, basis, t, psi)

    axpy_into(half, k1, psi, stage)
    k2 = psi_derivative(evolution, device, basis, t + half, stage)

    axpy_into(half, k2, psi, stage)
    k3 = psi_derivative(evolution, device, basis, t + half, stage)

    axpy_into(dt, k3, psi, stage)
    k4 = psi_derivative(evolution, device, basis, t + dt, stage)

    if out is None:
        out = np.empty(psi.shape, dtype=cis_type(psi))
    rk4_combine(psi, k1, k2, k3, k4, dt, out)
    # -----------------------
    return out


# ---------------------------------------------------------------------
# helpers
# ---------------------------------------------------------------------
def _split_grid_args(grid, args: tuple, names: Sequence[str]) -> tuple[GridType, tuple]:
    if isinstance(grid, (UniformGrid, TemporalLattice)):
        rest = args
        grid = as_grid(grid)
    else:
        if not args:
            raise ConfigurationError("dt is required when nsteps is given")
        grid = as_grid(grid, args[0])
        rest = args[1:]
    if len(rest) != len(names):
        raise ConfigurationError(
            f"expected positional arguments {tuple(names)} after the grid, got {len(rest)}"
        )
    return grid, rest


def _forward_steps(grid: GridType) -> Iterator[tuple[int, float, float]]:
    """Yield ``(i, t_{i-1}, dt_{i-1})`` for ``i = 1..r``."""
    if isinstance(grid, UniformGrid):
        t = grid.t0
        for i in range(1, grid.n + 1):
            yield i, t, grid.dt
            t += grid.dt
    else:
        times = grid.times
        for i in range(1, times.size):
            yield i, float(times[i - 1]), float(times[i] - times[i - 1])


def _backward_steps(grid: GridType, t_final: float) -> Iterator[tuple[int, float, float, float]]:
    """Yield ``(i, t_{i+1}, dt_i, t_i)`` for ``i = r-1..0``."""
    if isinstance(grid, UniformGrid):
        t = t_final
        for i in range(grid.n - 1, -1, -1):
            yield i, t, grid.dt, t - grid.dt
            t -= grid.dt
    else:
        times = grid.times
        for i in range(times.size - 2, -1, -1):
            yield i, float(times[i + 1]), float(times[i + 1] - times[i]), float(times[i])


def _check_state(device, psi0) -> np.ndarray:
    psi0 = np.asarray(psi0)
    if psi0.ndim != 1 or psi0.shape[0] != device.nstates:
        raise ConfigurationError(
            f"initial state must have shape ({device.nstates},), got {psi0.shape}"
        )
    return psi0


def _check_finite(x: np.ndarray, i: int, direction: str) -> None:
    if not np.all(np.isfinite(x)):
        raise NumericalDivergenceError(
            f"non-finite state after {direction} step {i}"
        )


def _as_matrix_list(observables, n: int) -> np.ndarray:
    """Stack observables into an ``(n, n, K)`` array."""
    if isinstance(observables, np.ndarray):
        O = observables
    else:
        O = np.stack([np.asarray(o) for o in observables], axis=-1)
    if O.ndim == 2:
        O = O[:, :, np.newaxis]
    if O.ndim != 3 or O.shape[:2] != (n, n):
        raise ConfigurationError(
            f"observables must have shape ({n}, {n}) or ({n}, {n}, K), got {O.shape}"
        )
    if O.shape[2] == 0:
        raise ConfigurationError("at least one observable is required")
    return O


def _forward(evolution, device, basis, grid, psi, callback) -> float:
    """Step ``psi`` in place across ``grid``; return the accumulated final time."""
    t = float(grid.lattice()[0])
    for i, t_prev, dt in _forward_steps(grid):
        rk4_step(evolution, device, basis, t_prev, psi, dt, out=psi)
        _check_finite(psi, i, "forward")
        t = t_prev + dt
        if callback is not None:
            callback(i, t, psi)
    return t


def _gradient_sample(device, t, psi, lam, result_i) -> None:
    """``result_i[j, k] = 2·Im⟨λ_k|G_j(t)|ψ⟩`` in the occupation basis."""
    for k in range(lam.shape[1]):
        for j in range(result_i.shape[0]):
            z = device.braket(j, t, OCCUPATION, lam[:, k], psi)
            result_i[j, k] = 2 * np.imag(z)


# ---------------------------------------------------------------------
# drivers
# ---------------------------------------------------------------------
def evolve(
    evolution,
    device,
    basis: str,
    grid,
    *args,
    callback: Optional[Callback] = None,
    result: Optional[np.ndarray] = None,
) -> np.ndarray:
    """
    Evolve a state across a grid.

    Parameters
    ----------
    evolution : EvolutionBase
        Supplies the work basis in which stepping happens.
    device : DeviceProtocol
    basis : str
        Basis of ``psi0`` and of the returned state.
    grid : UniformGrid, TemporalLattice or int
        A grid, or ``nsteps`` followed by ``dt`` in ``args``.
    *args
        ``psi0`` (after ``dt`` in the ``nsteps`` form).
    callback : callable, optional
        ``callback(i, t_i, psi)`` after every step ``i = 1..r``; ``psi`` is in
        the work basis and must not be modified.
    result : np.ndarray, optional
        Receives the final state; a new array is allocated otherwise.

    Returns
    -------
    np.ndarray
        Final state in ``basis``.
    """
    grid, (psi0,) = _split_grid_args(grid, args, ("psi0",))
    basis = validate_basis(basis)
    psi0 = _check_state(device, psi0)
    workbasis = evolution.workbasis()

    if result is None:
        result = np.empty(psi0.shape, dtype=cis_type(psi0))
    elif result.shape != psi0.shape:
        raise ConfigurationError(f"result must have shape {psi0.shape}, got {result.shape}")
    psi = result
    psi[...] = psi0

    if basis != workbasis:
        rotate(device.basisrotation(workbasis, basis), psi)

    _forward(evolution, device, workbasis, grid, psi, callback)

    if basis != workbasis:
        rotate(device.basisrotation(basis, workbasis), psi)
    return psi


def gradientsignals(
    evolution,
    device,
    basis: str,
    grid,
    *args,
    result: Optional[np.ndarray] = None,
    callback: Optional[Callback] = None,
) -> np.ndarray:
    """
    Gradient signals of observable expectation values by the adjoint method.

    ``φ[i, j, k] = 2·Im⟨λ_k(t_i)|U(t_i)†·∂V/∂θ_j(t_i)·U(t_i)|ψ(t_i)⟩`` with
    ``λ_k(T) = O_k·ψ(T)``. ψ and every λ_k are propagated back from ``T``
    independently, so each sample is exact only up to integrator error.

    Parameters
    ----------
    evolution : EvolutionBase
    device : DeviceProtocol
    basis : str
        Basis of ``psi0`` and of the observables.
    grid : UniformGrid, TemporalLattice or int
        A grid, or ``nsteps`` followed by ``dt`` in ``args``.
    *args
        ``psi0, observables`` (after ``dt`` in the ``nsteps`` form).
        ``observables`` is an ``(n, n)`` matrix, an ``(n, n, K)`` array or a
        sequence of ``(n, n)`` matrices.
    result : np.ndarray, optional
        Pre-allocated output of shape ``(r + 1, ngrades, K)``.
    callback : callable, optional
        ``callback(i, t_i, psi)`` after every forward step; ``psi`` is in
        ``basis``.

    Returns
    -------
    np.ndarray
        ``φ``, real, shape ``(r + 1, ngrades, K)``. ``φ[i]`` is sampled at
        ``grid.lattice()[i]``.

    Raises
    ------
    ConfigurationError
        On a shape mismatch, before any integration.
    NumericalDivergenceError
        If a state becomes non-finite.
    WorkspaceError
        If called reentrantly on the same thread.
    """
    grid, (psi0, observables) = _split_grid_args(grid, args, ("psi0", "observables"))
    basis = validate_basis(basis)
    psi0 = _check_state(device, psi0)
    n = device.nstates
    O = _as_matrix_list(observables, n)
    K = O.shape[2]
    r = grid.nsteps()
    ngrades = device.ngrades()
    cdtype = cis_type(psi0)

    shape = (r + 1, ngrades, K)
    if result is None:
        result = np.empty(shape, dtype=np.finfo(cdtype).dtype)
    elif result.shape != shape:
        raise ConfigurationError(
            f"result must have shape {shape} (nsteps+1, ngrades, observables), got {result.shape}"
        )

    logger.debug(
        "gradientsignals: nstates=%d nsteps=%d ngrades=%d observables=%d basis=%s",
        n, r, ngrades, K, basis,
    )

    with WORKSPACE.acquire(LABEL):
        psi = array(cdtype, n, LABEL)
        lam = array(cdtype, (n, K), LABEL)
        psi[...] = psi0

        # forward pass, no trajectory kept
        t = _forward(evolution, device, basis, grid, psi, callback)
        logger.debug("gradientsignals: forward pass done at t=%.6g", t)

        # co-states at the final time, moved to the occupation basis
        for k in range(K):
            lam[:, k] = O[:, :, k] @ psi
        if basis != OCCUPATION:
            R = device.basisrotation(OCCUPATION, basis)
            rotate(R, psi)
            lam[...] = R @ lam

        _gradient_sample(device, t, psi, lam, result[r])

        # backward pass
        for i, t_next, dt, t_i in _backward_steps(grid, t):
            rk4_step(evolution, device, OCCUPATION, t_next, psi, -dt, out=psi)
            _check_finite(psi, i, "backward")
            for k in range(K):
                col = lam[:, k]
                rk4_step(evolution, device, OCCUPATION, t_next, col, -dt, out=col)
                _check_finite(col, i, "backward")
            _gradient_sample(device, t_i, psi, lam, result[i])
        logger.debug("gradientsignals: backward pass done")

    return result


# ---------------------------------------------------------------------
# evolution mode
# ---------------------------------------------------------------------
class RK4Evolution(EvolutionBase):
    """
    Classical fixed-step RK4 in the interaction picture of the static Hamiltonian.

    Parameters
    ----------
    workbasis : str
        Basis in which :meth:`evolve` steps; the static propagator is diagonal
        in the dressed basis.
    """

    name = "rk4"

    def __init__(self, workbasis: str = "dressed"):
        self._workbasis = validate_basis(workbasis)

    def workbasis(self) -> str:
        return self._workbasis

    def derivative(self, device, basis, t, psi):
        return psi_derivative(self, device, basis, t, psi)

    def step(self, device, basis, t, psi, dt, out=None):
        return rk4_step(self, device, basis, t, psi, dt, out=out)

    def evolve(self, device, basis, grid, *args, **kwargs):
        return evolve(self, device, basis, grid, *args, **kwargs)

    def gradientsignals(self, device, basis, grid, *args, **kwargs):
        return gradientsignals(self, device, basis, grid, *args, **kwargs)


RK4 = RK4Evolution()
