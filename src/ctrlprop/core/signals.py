"""
Parametric drive envelopes Ω(t).

Every signal is complex valued, accepts scalar or array times, and exposes its
parameters for binding and differentiation:

* ``count()``, ``values()``, ``names()``, ``bind(x)``
* ``partial(k, t)`` – ∂Ω(t)/∂x_k
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Sequence, Union

import numpy as np

from ..errors import ConfigurationError, ParameterBoundsError

ArrayLike = Union[np.ndarray, float]


def gaussian(x: ArrayLike, xc: float, sigma: float) -> ArrayLike:
    return np.exp(-((x - xc)**2) / (2 * sigma**2))


def gaussian_fwhm(x: ArrayLike, xc: float, fwhm: float) -> ArrayLike:
    sigma = fwhm / (2 * np.sqrt(2 * np.log(2)))
    return gaussian(x, xc, sigma)


class SignalBase(ABC):
    """Abstract base class for drive envelopes."""

    @abstractmethod
    def __call__(self, t: ArrayLike) -> np.ndarray | complex:
        """Value Ω(t)."""

    @abstractmethod
    def partial(self, k: int, t: ArrayLike) -> np.ndarray | complex:
        """Derivative of Ω(t) with respect to parameter ``k``."""

    @abstractmethod
    def values(self) -> np.ndarray:
        """Current parameter values."""

    @abstractmethod
    def names(self) -> list[str]:
        """Parameter names, in the order of :meth:`values`."""

    @abstractmethod
    def bind(self, x: np.ndarray) -> None:
        """Overwrite the parameters with ``x`` (length :meth:`count`)."""

    def count(self) -> int:
        return len(self.names())

    def _check_index(self, k: int) -> None:
        if not 0 <= k < self.count():
            raise ParameterBoundsError(
                f"parameter index {k} out of range for {type(self).__name__} with {self.count()} parameters"
            )

    def _check_length(self, x: np.ndarray) -> np.ndarray:
        x = np.asarray(x, dtype=float)
        if x.shape != (self.count(),):
            raise ConfigurationError(
                f"{type(self).__name__} expects {self.count()} parameters, got shape {x.shape}"
            )
        return x

    def __repr__(self) -> str:
        body = ", ".join(f"{n}={v:.4g}" for n, v in zip(self.names(), self.values()))
        return f"{type(self).__name__}({body})"


def _broadcast(value: complex, t: ArrayLike) -> np.ndarray | complex:
    if np.ndim(t) == 0:
        return complex(value)
    return np.full(np.shape(t), value, dtype=np.complex128)


class Constant(SignalBase):
    """Real constant amplitude ``A``."""

    def __init__(self, A: float):
        self.A = float(A)

    def __call__(self, t):
        return _broadcast(self.A, t)

    def partial(self, k, t):
        self._check_index(k)
        return _broadcast(1.0, t)

    def values(self):
        return np.array([self.A])

    def names(self):
        return ["A"]

    def bind(self, x):
        x = self._check_length(x)
        self.A = float(x[0])


class ComplexConstant(SignalBase):
    """Complex constant amplitude ``A + iB``."""

    def __init__(self, A: float, B: float):
        self.A = float(A)
        self.B = float(B)

    def __call__(self, t):
        return _broadcast(complex(self.A, self.B), t)

    def partial(self, k, t):
        self._check_index(k)
        return _broadcast(1.0 if k == 0 else 1j, t)

    def values(self):
        return np.array([self.A, self.B])

    def names(self):
        return ["A", "B"]

    def bind(self, x):
        x = self._check_length(x)
        self.A, self.B = float(x[0]), float(x[1])


class Gaussian(SignalBase):
    """
    Complex Gaussian pulse ``(A + iB)·exp(-(t - t_c)²/2σ²)``.

    Only the amplitudes are parameters; width and centre are fixed.
    """

    def __init__(self, A: float, B: float, sigma: float, center: float):
        if sigma <= 0:
            raise ConfigurationError("sigma must be positive")
        self.A = float(A)
        self.B = float(B)
        self.sigma = float(sigma)
        self.center = float(center)

    def _envelope(self, t):
        return gaussian(np.asarray(t, dtype=float), self.center, self.sigma)

    def __call__(self, t):
        out = complex(self.A, self.B) * self._envelope(t)
        return complex(out) if np.ndim(t) == 0 else out.astype(np.complex128)

    def partial(self, k, t):
        self._check_index(k)
        out = (1.0 if k == 0 else 1j) * self._envelope(t)
        return complex(out) if np.ndim(t) == 0 else out.astype(np.complex128)

    def values(self):
        return np.array([self.A, self.B])

    def names(self):
        return ["A", "B"]

    def bind(self, x):
        x = self._check_length(x)
        self.A, self.B = float(x[0]), float(x[1])


class Windowed(SignalBase):
    """
    Piecewise signal: window ``i`` is active on ``[s_i, s_{i+1})``.

    The first window also covers times before ``s_0`` and the last one extends
    indefinitely. Parameters are the windows' parameters concatenated.
    """

    def __init__(self, windows: Sequence[SignalBase], starttimes: Sequence[float]):
        if len(windows) == 0:
            raise ConfigurationError("Windowed needs at least one window")
        if len(windows) != len(starttimes):
            raise ConfigurationError("windows and starttimes must have the same length")
        s = np.asarray(starttimes, dtype=float)
        if np.any(np.diff(s) <= 0):
            raise ConfigurationError("starttimes must be strictly increasing")
        self.windows = list(windows)
        self.starttimes = s
        self._offsets = np.cumsum([0] + [w.count() for w in self.windows])

    def _which(self, t):
        return np.clip(np.searchsorted(self.starttimes, t, side="right") - 1, 0, len(self.windows) - 1)

    def _locate(self, k):
        self._check_index(k)
        i = int(np.searchsorted(self._offsets, k, side="right") - 1)
        return i, k - int(self._offsets[i])

    def __call__(self, t):
        if np.ndim(t) == 0:
            return self.windows[int(self._which(t))](t)
        t = np.asarray(t, dtype=float)
        which = self._which(t)
        out = np.zeros(t.shape, dtype=np.complex128)
        for i, window in enumerate(self.windows):
            mask = which == i
            if np.any(mask):
                out[mask] = window(t[mask])
        return out

    def partial(self, k, t):
        i, kk = self._locate(k)
        if np.ndim(t) == 0:
            return self.windows[i].partial(kk, t) if int(self._which(t)) == i else 0j
        t = np.asarray(t, dtype=float)
        out = np.zeros(t.shape, dtype=np.complex128)
        mask = self._which(t) == i
        if np.any(mask):
            out[mask] = self.windows[i].partial(kk, t[mask])
        return out

    def values(self):
        return np.concatenate([w.values() for w in self.windows])

    def names(self):
        return [f"{name}{i}" for i, w in enumerate(self.windows) for name in w.names()]

    def count(self):
        return int(self._offsets[-1])

    def bind(self, x):
        x = self._check_length(x)
        for i, w in enumerate(self.windows):
            w.bind(x[self._offsets[i]:self._offsets[i + 1]])

    def __repr__(self):
        return f"Windowed(nwindows={len(self.windows)}, starttimes={self.starttimes.tolist()})"
