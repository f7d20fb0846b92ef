"""
Device model, signals, grids and linear-algebra helpers.
"""

from .bases import BARE, DRESSED, OCCUPATION
from .device import DeviceProtocol, Drive, TransmonDevice
from .grid import TemporalLattice, UniformGrid, as_grid
from .hamiltonian import StaticHamiltonian
from .signals import ComplexConstant, Constant, Gaussian, SignalBase, Windowed

__all__ = [
    "BARE",
    "DRESSED",
    "OCCUPATION",
    "DeviceProtocol",
    "Drive",
    "TransmonDevice",
    "TemporalLattice",
    "UniformGrid",
    "as_grid",
    "StaticHamiltonian",
    "SignalBase",
    "Constant",
    "ComplexConstant",
    "Gaussian",
    "Windowed",
]
