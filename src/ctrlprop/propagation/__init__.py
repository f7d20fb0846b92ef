"""
Time propagation for driven quantum devices.

This package provides the fixed-step RK4 engine, its adjoint extension for
gradient signals, and the per-thread workspace the engine draws buffers from.
"""

from .base import EvolutionBase, get_evolution
from .rk4 import RK4, RK4Evolution, evolve, gradientsignals, psi_derivative, rk4_step
from .workspace import WORKSPACE, Workspace

__all__ = [
    "EvolutionBase",
    "get_evolution",
    "RK4",
    "RK4Evolution",
    "evolve",
    "gradientsignals",
    "psi_derivative",
    "rk4_step",
    "WORKSPACE",
    "Workspace",
]
