"""
Integration grids.

Two immutable forms are supported with identical semantics:

* ``UniformGrid(nsteps, dt, t0)`` – equally spaced samples;
* ``TemporalLattice(times)``      – explicit, possibly non-uniform samples.

Both have ``nsteps() + 1`` sample points, endpoints included.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Union

import numpy as np

from ..errors import ConfigurationError


@dataclass(frozen=True)
class UniformGrid:
    """``nsteps`` equal steps of size ``dt`` starting at ``t0``."""

    n: int
    dt: float
    t0: float = 0.0

    def __post_init__(self):
        if int(self.n) != self.n or self.n < 1:
            raise ConfigurationError("nsteps must be a positive integer")
        if not np.isfinite(self.dt) or self.dt <= 0:
            raise ConfigurationError("dt must be positive and finite")
        object.__setattr__(self, "n", int(self.n))
        object.__setattr__(self, "dt", float(self.dt))
        object.__setattr__(self, "t0", float(self.t0))

    def nsteps(self) -> int:
        return self.n

    def stepsize(self) -> float:
        return self.dt

    def stepsizes(self) -> np.ndarray:
        return np.full(self.n, self.dt)

    def lattice(self) -> np.ndarray:
        return self.t0 + self.dt * np.arange(self.n + 1)

    def duration(self) -> float:
        return self.n * self.dt

    def weights(self) -> np.ndarray:
        return _trapezoid_weights(self.stepsizes())

    def integrate(self, values: np.ndarray) -> np.ndarray:
        """Trapezoidal integral along the first axis of ``values``."""
        return _integrate(self.weights(), values)


@dataclass(frozen=True)
class TemporalLattice:
    """Explicit, strictly increasing sample times ``t_0 < … < t_r``."""

    times: np.ndarray = field(repr=False)

    def __post_init__(self):
        t = np.array(self.times, dtype=float)
        if t.ndim != 1 or t.size < 2:
            raise ConfigurationError("a lattice needs at least two sample times")
        if not np.all(np.isfinite(t)):
            raise ConfigurationError("lattice times must be finite")
        if np.any(np.diff(t) <= 0):
            raise ConfigurationError("lattice times must be strictly increasing")
        t.setflags(write=False)
        object.__setattr__(self, "times", t)

    def nsteps(self) -> int:
        return self.times.size - 1

    def stepsize(self) -> np.ndarray:
        return self.stepsizes()

    def stepsizes(self) -> np.ndarray:
        return np.diff(self.times)

    def lattice(self) -> np.ndarray:
        return self.times.copy()

    def duration(self) -> float:
        return float(self.times[-1] - self.times[0])

    def weights(self) -> np.ndarray:
        return _trapezoid_weights(self.stepsizes())

    def integrate(self, values: np.ndarray) -> np.ndarray:
        """Trapezoidal integral along the first axis of ``values``."""
        return _integrate(self.weights(), values)

    def __repr__(self) -> str:
        return f"TemporalLattice(nsteps={self.nsteps()}, t=[{self.times[0]:.4g}, {self.times[-1]:.4g}])"


GridType = Union[UniformGrid, TemporalLattice]


def as_grid(grid: GridType | int, dt: float | None = None) -> GridType:
    """
    Normalize the two call forms ``(grid)`` and ``(nsteps, dt)``.

    Raises
    ------
    ConfigurationError
        If neither form is matched.
    """
    if isinstance(grid, (UniformGrid, TemporalLattice)):
        if dt is not None:
            raise ConfigurationError("dt must not be given together with a grid object")
        return grid
    if isinstance(grid, (int, np.integer)) and not isinstance(grid, bool):
        if dt is None:
            raise ConfigurationError("dt is required when nsteps is given")
        return UniformGrid(int(grid), dt)
    raise ConfigurationError(f"Expected a grid or an integer nsteps, got {type(grid).__name__}")


def _trapezoid_weights(steps: np.ndarray) -> np.ndarray:
    w = np.zeros(steps.size + 1)
    w[:-1] += steps / 2
    w[1:] += steps / 2
    return w


def _integrate(w: np.ndarray, values: np.ndarray) -> np.ndarray:
    values = np.asarray(values)
    if values.shape[0] != w.size:
        raise ConfigurationError(
            f"values have {values.shape[0]} samples but the grid has {w.size}"
        )
    return np.tensordot(w, values, axes=(0, 0))
