"""
Basis and frame labels.

Bases are plain string labels, validated at the API boundary.

* ``DRESSED``    – eigenbasis of the device's static Hamiltonian. Eigenvectors
  are ordered to maximize similarity with the identity, and phases are fixed
  so that the diagonal is real.
* ``OCCUPATION`` – eigenbasis of the local number operators ``n̂ = a†a``,
  i.e. the computational basis. ``BARE`` is an alias.
"""

from __future__ import annotations

from typing import Literal

from ..errors import ConfigurationError

BasisType = Literal["dressed", "occupation"]
FrameType = Literal["rotating", "lab"]

DRESSED: BasisType = "dressed"
OCCUPATION: BasisType = "occupation"
BARE: BasisType = OCCUPATION

BASES: tuple[str, ...] = (DRESSED, OCCUPATION)
FRAMES: tuple[str, ...] = ("rotating", "lab")


def validate_basis(basis: str) -> BasisType:
    """Return ``basis`` if it is a known basis label, else raise."""
    if basis not in BASES:
        raise ConfigurationError(f"Unknown basis: {basis!r}. Use one of {BASES}")
    return basis  # type: ignore[return-value]


def validate_frame(frame: str) -> FrameType:
    """Return ``frame`` if it is a known measurement frame, else raise."""
    if frame not in FRAMES:
        raise ConfigurationError(f"Unknown frame: {frame!r}. Use one of {FRAMES}")
    return frame  # type: ignore[return-value]
