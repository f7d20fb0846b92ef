"""
Abstract base class for evolution algorithms.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

import numpy as np

from ..errors import ConfigurationError


class EvolutionBase(ABC):
    """
    Abstract base class for evolution algorithms.

    An evolution algorithm fixes a work basis, in which its internal stepping
    is defined, and provides forward evolution and gradient signals. States
    are rotated into the work basis on entry and back on exit.
    """

    name: str = ""

    @abstractmethod
    def workbasis(self) -> str:
        """Basis in which the internal stepping is defined."""
        pass

    @abstractmethod
    def step(self, device, basis: str, t: float, psi: np.ndarray, dt: float,
             out: np.ndarray | None = None) -> np.ndarray:
        """Advance ``psi`` from ``t`` to ``t + dt``; ``dt`` may be negative."""
        pass

    @abstractmethod
    def evolve(self, device, basis: str, grid, *args: Any, **kwargs: Any) -> np.ndarray:
        """Evolve a state over a grid. See :func:`ctrlprop.propagation.rk4.evolve`."""
        pass

    @abstractmethod
    def gradientsignals(self, device, basis: str, grid, *args: Any, **kwargs: Any) -> np.ndarray:
        """Gradient signals. See :func:`ctrlprop.propagation.rk4.gradientsignals`."""
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(workbasis={self.workbasis()!r})"


def get_evolution(name: str, **kwargs: Any) -> EvolutionBase:
    """
    Instantiate an evolution algorithm by name.

    Parameters
    ----------
    name : {"rk4"}
    **kwargs
        Forwarded to the algorithm's constructor.
    """
    if name.lower() == "rk4":
        from .rk4 import RK4Evolution

        return RK4Evolution(**kwargs)
    raise ConfigurationError(f"Unknown evolution algorithm: {name}")
