"""
Cost functions for pulse optimization.

Energy functions evolve a reference state and measure it; bound functions
penalize parameters outside a physical range. Sums of them are left to the
optimizer driver.
"""

from .base import CostFunctionBase, EnergyFunctionBase
from .bounds import AmplitudeBound, GlobalAmplitudeBound, GlobalFrequencyBound
from .energies import BareEnergy, NormalizedEnergy, ProjectedEnergy
from .normalization import Normalization

__all__ = [
    "CostFunctionBase",
    "EnergyFunctionBase",
    "AmplitudeBound",
    "GlobalAmplitudeBound",
    "GlobalFrequencyBound",
    "BareEnergy",
    "NormalizedEnergy",
    "ProjectedEnergy",
    "Normalization",
]
