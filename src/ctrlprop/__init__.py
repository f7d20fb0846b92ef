"""
ctrlprop
========
RK4 time evolution and adjoint gradient signals for optimal control of
driven multi-level quantum devices.

Subpackages
-----------
core         device model, signals, grids, bases and linear algebra
propagation  RK4 engine, gradient signals and workspace
costfns      energy and penalty cost functions
simulation   params-file driven runs
"""

from .errors import (
    ConfigurationError,
    CtrlPropError,
    NumericalDivergenceError,
    ParameterBoundsError,
    WorkspaceError,
    configure_logging,
    get_logger,
)

__version__ = "0.1.0"

__all__ = [
    "ConfigurationError",
    "CtrlPropError",
    "NumericalDivergenceError",
    "ParameterBoundsError",
    "WorkspaceError",
    "configure_logging",
    "get_logger",
    "__version__",
]
