"""
Device model: static Hamiltonian, drives, gradient operators and parameters.

The propagators only rely on :class:`DeviceProtocol`. :class:`TransmonDevice`
is the concrete model of ``n`` coupled anharmonic oscillators truncated to
``m`` levels:

    H0   = Σ_q ω_q a_q†a_q − δ_q/2 a_q†a_q†a_q a_q + Σ_(p,q) g_pq (a_p†a_q + a_q†a_p)
    V(t) = Σ_i Ω_i(t) e^{iν_i t} a_{q_i} + h.c.

Each drive exposes two gradient channels, the derivatives of ``V`` with
respect to the real and imaginary parts of ``Ω_i``::

    A_i(t) =   e^{iν_i t} a + e^{-iν_i t} a†          (channel 2i)
    B_i(t) = i e^{iν_i t} a − i e^{-iν_i t} a†        (channel 2i + 1)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, Sequence, runtime_checkable

import numpy as np

from ..errors import ConfigurationError, ParameterBoundsError
from .bases import DRESSED, OCCUPATION, validate_basis
from .grid import GridType
from .hamiltonian import StaticHamiltonian
from .linalg import annihilator, dagger, embed
from .signals import SignalBase


@runtime_checkable
class DeviceProtocol(Protocol):
    """What the propagation engine needs from a device."""

    @property
    def nstates(self) -> int: ...

    def ngrades(self) -> int: ...

    def evolver(self, basis: str, t: float) -> np.ndarray: ...

    def operator(self, t: float, basis: str) -> np.ndarray: ...

    def braket(self, j: int, t: float, basis: str, bra: np.ndarray, ket: np.ndarray) -> complex: ...

    def basisrotation(self, target: str, source: str) -> np.ndarray: ...


@dataclass
class Drive:
    """A drive on ``qubit`` with carrier ``frequency`` (rad/ns) and envelope ``signal``."""

    qubit: int
    frequency: float
    signal: SignalBase


class TransmonDevice:
    """
    Coupled transmons with one or more parametric drives.

    Parameters
    ----------
    frequencies : sequence of float
        Qubit frequencies ω_q (rad/ns).
    anharmonicities : sequence of float
        Anharmonicities δ_q (rad/ns).
    couplings : sequence of (p, q, g)
        Exchange couplings between qubits ``p`` and ``q``.
    drives : sequence of Drive
        Drives; their signal parameters and carrier frequencies are the
        device's variational parameters.
    m : int
        Levels per qubit.
    """

    def __init__(
        self,
        frequencies: Sequence[float],
        anharmonicities: Sequence[float],
        couplings: Sequence[tuple[int, int, float]] = (),
        drives: Sequence[Drive] = (),
        m: int = 2,
    ):
        if len(frequencies) == 0:
            raise ConfigurationError("a device needs at least one qubit")
        if len(anharmonicities) != len(frequencies):
            raise ConfigurationError("frequencies and anharmonicities must have the same length")
        if m < 2:
            raise ConfigurationError("each qubit needs at least two levels")

        self.m = int(m)
        self.n = len(frequencies)
        self.frequencies = np.asarray(frequencies, dtype=float)
        self.anharmonicities = np.asarray(anharmonicities, dtype=float)
        self.couplings = [(int(p), int(q), float(g)) for p, q, g in couplings]
        self.drives = list(drives)

        for p, q, _ in self.couplings:
            if not (0 <= p < self.n and 0 <= q < self.n) or p == q:
                raise ConfigurationError(f"invalid coupling between qubits {p} and {q}")
        for drive in self.drives:
            if not 0 <= drive.qubit < self.n:
                raise ConfigurationError(f"drive on nonexistent qubit {drive.qubit}")

        a = annihilator(self.m)
        self._a = [embed(a, q, self.n) for q in range(self.n)]
        self.static = StaticHamiltonian(self._build_H0())

        W = self.static.dressed_basis()
        self._lowering = {
            OCCUPATION: self._a,
            DRESSED: [dagger(W) @ aq @ W for aq in self._a],
        }

    # ------------------------------------------------------------------
    # Structure
    # ------------------------------------------------------------------
    def _build_H0(self) -> np.ndarray:
        H0 = np.zeros((self.nstates, self.nstates), dtype=np.complex128)
        for q, aq in enumerate(self._a):
            ad = dagger(aq)
            H0 += self.frequencies[q] * (ad @ aq)
            H0 -= self.anharmonicities[q] / 2 * (ad @ ad @ aq @ aq)
        for p, q, g in self.couplings:
            hop = dagger(self._a[p]) @ self._a[q]
            H0 += g * (hop + dagger(hop))
        return H0

    @property
    def nstates(self) -> int:
        return self.m ** self.n

    @property
    def nqubits(self) -> int:
        return self.n

    @property
    def nlevels(self) -> int:
        return self.m

    def ndrives(self) -> int:
        return len(self.drives)

    def ngrades(self) -> int:
        return 2 * len(self.drives)

    def drivesignal(self, i: int) -> SignalBase:
        return self.drives[i].signal

    def drivequbit(self, i: int) -> int:
        return self.drives[i].qubit

    def drivefrequency(self, i: int) -> float:
        return self.drives[i].frequency

    def qubitfrequency(self, q: int) -> float:
        return float(self.frequencies[q])

    def detuningfrequency(self, i: int, q: int) -> float:
        return self.drives[i].frequency - self.qubitfrequency(q)

    def lowering(self, q: int, basis: str = OCCUPATION) -> np.ndarray:
        """Annihilation operator of qubit ``q`` in ``basis``."""
        return self._lowering[validate_basis(basis)][q]

    # ------------------------------------------------------------------
    # Parameters: signal parameters of each drive, then one frequency per drive
    # ------------------------------------------------------------------
    def count(self) -> int:
        return sum(d.signal.count() for d in self.drives) + len(self.drives)

    def values(self) -> np.ndarray:
        signals = [d.signal.values() for d in self.drives]
        freqs = np.array([d.frequency for d in self.drives], dtype=float)
        return np.concatenate(signals + [freqs]) if self.drives else np.zeros(0)

    def names(self) -> list[str]:
        out = [f"Ω{i}.{name}" for i, d in enumerate(self.drives) for name in d.signal.names()]
        return out + [f"ν{i}" for i in range(len(self.drives))]

    def bind(self, x: np.ndarray) -> None:
        x = np.asarray(x, dtype=float)
        if x.shape != (self.count(),):
            raise ConfigurationError(f"device expects {self.count()} parameters, got shape {x.shape}")
        offset = 0
        for d in self.drives:
            L = d.signal.count()
            d.signal.bind(x[offset:offset + L])
            offset += L
        for d in self.drives:
            d.frequency = float(x[offset])
            offset += 1

    # ------------------------------------------------------------------
    # Operators
    # ------------------------------------------------------------------
    def basisrotation(self, target: str, source: str) -> np.ndarray:
        """Matrix ``R`` with ``ψ_target = R·ψ_source``."""
        validate_basis(target)
        validate_basis(source)
        if target == source:
            return np.eye(self.nstates, dtype=np.complex128)
        W = self.static.dressed_basis()
        return W if target == OCCUPATION else dagger(W)

    def evolver(self, basis: str, t: float) -> np.ndarray:
        """Static propagator ``U(t) = exp(-i·H0·t)`` in ``basis``."""
        return self.static.propagator(t, basis)

    def operator(self, t: float, basis: str) -> np.ndarray:
        """Drive Hamiltonian ``V(t)`` in ``basis``."""
        V = np.zeros((self.nstates, self.nstates), dtype=np.complex128)
        for d in self.drives:
            a = self.lowering(d.qubit, basis)
            term = d.signal(t) * np.exp(1j * d.frequency * t) * a
            V += term + dagger(term)
        return V

    def gradient_operator(self, j: int, t: float, basis: str) -> np.ndarray:
        """``∂V/∂θ_j`` at time ``t`` in ``basis``; ``j`` indexes the gradient channels."""
        if not 0 <= j < self.ngrades():
            raise ParameterBoundsError(f"gradient channel {j} out of range (ngrades={self.ngrades()})")
        d = self.drives[j // 2]
        term = np.exp(1j * d.frequency * t) * self.lowering(d.qubit, basis)
        if j % 2 == 1:
            term = 1j * term
        return term + dagger(term)

    def braket(self, j: int, t: float, basis: str, bra: np.ndarray, ket: np.ndarray) -> complex:
        """``⟨bra| U(t)† · ∂V/∂θ_j(t) · U(t) |ket⟩``, in the frame of the static Hamiltonian."""
        U = self.evolver(basis, t)
        return complex(np.vdot(U @ bra, self.gradient_operator(j, t, basis) @ (U @ ket)))

    # ------------------------------------------------------------------
    # Gradient aggregation
    # ------------------------------------------------------------------
    def gradient(self, grid: GridType, phi: np.ndarray) -> np.ndarray:
        """
        Contract gradient signals with the parameter derivatives of ``V``.

        Parameters
        ----------
        grid : UniformGrid or TemporalLattice
            Grid on which ``phi`` was sampled.
        phi : np.ndarray
            Gradient signals of shape ``(nsteps + 1, ngrades)``.

        Returns
        -------
        np.ndarray
            Gradient with respect to :meth:`values`, length :meth:`count`.
        """
        phi = np.asarray(phi)
        t = grid.lattice()
        if phi.shape != (t.size, self.ngrades()):
            raise ConfigurationError(
                f"phi must have shape {(t.size, self.ngrades())}, got {phi.shape}"
            )

        grad = np.zeros(self.count())
        offset = 0
        for i, d in enumerate(self.drives):
            φA, φB = phi[:, 2 * i], phi[:, 2 * i + 1]
            for k in range(d.signal.count()):
                dΩ = d.signal.partial(k, t)
                grad[offset + k] = grid.integrate(φA * np.real(dΩ) + φB * np.imag(dΩ))
            offset += d.signal.count()

        for i, d in enumerate(self.drives):
            φA, φB = phi[:, 2 * i], phi[:, 2 * i + 1]
            Ω = d.signal(t)
            grad[offset + i] = grid.integrate(t * (np.real(Ω) * φB - np.imag(Ω) * φA))
        return grad

    def __repr__(self) -> str:
        return (
            f"TransmonDevice(nqubits={self.n}, levels={self.m}, "
            f"ndrives={self.ndrives()}, nparams={self.count()})"
        )
