"""
ctrlprop: Error Taxonomy and Logging
------------------------------------
Exception types and a shared logger for the package.

Behavior
--------
- Every error raised by the package derives from ``CtrlPropError`` and also
  from the matching builtin (``ValueError``, ``IndexError``, ...), so callers
  may catch either.
- The shared logger is named "ctrlprop" and can be routed to console and file
  with optional JSON formatting.
"""

import logging
import os
from typing import Optional

__all__ = [
    "CtrlPropError",
    "ConfigurationError",
    "ParameterBoundsError",
    "NumericalDivergenceError",
    "WorkspaceError",
    "get_logger",
    "configure_logging",
]


# Exception hierarchy
class CtrlPropError(Exception):
    pass


class ConfigurationError(CtrlPropError, ValueError):
    """Inconsistent shapes, layouts or names, detected before any integration."""


class ParameterBoundsError(CtrlPropError, IndexError):
    """A parameter index points beyond the supplied parameter vector."""


class NumericalDivergenceError(CtrlPropError, FloatingPointError):
    """A propagated state acquired non-finite entries."""


class WorkspaceError(CtrlPropError, RuntimeError):
    """A workspace label was acquired while already in use."""


# Logger
_logger: Optional[logging.Logger] = None

_PLAIN_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
_JSON_FORMAT = '{"time":"%(asctime)s","level":"%(levelname)s","logger":"%(name)s","msg":"%(message)s"}'


def get_logger() -> logging.Logger:
    """Get the shared ctrlprop logger instance.

    Returns
    -------
    logging.Logger
        The singleton logger named ``"ctrlprop"``, at WARNING level by default
        with a console handler. Handlers are created lazily on first use.

    Examples
    --------
    >>> logger = get_logger()
    >>> logger.name
    'ctrlprop'
    """
    global _logger
    if _logger is None:
        _logger = logging.getLogger("ctrlprop")
        if _logger.level == logging.NOTSET:
            _logger.setLevel(logging.WARNING)
        if not _logger.handlers:
            h = logging.StreamHandler()
            h.setFormatter(logging.Formatter(_PLAIN_FORMAT))
            _logger.addHandler(h)
    return _logger


def configure_logging(verbose: bool = False,
                      log_file: Optional[str] = None,
                      as_json: bool = False) -> None:
    """Configure the shared logger outputs.

    Parameters
    ----------
    verbose : bool, default False
        When True, set logger level to DEBUG; otherwise INFO.
    log_file : str or None, default None
        Optional file path to append logs to.
    as_json : bool, default False
        Emit logs in a compact JSON line format when True; otherwise plain text.
    """
    logger = get_logger()
    for h in list(logger.handlers):
        logger.removeHandler(h)
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)

    fmt = logging.Formatter(_JSON_FORMAT if as_json else _PLAIN_FORMAT)
    ch = logging.StreamHandler()
    ch.setFormatter(fmt)
    logger.addHandler(ch)

    if log_file:
        fh = logging.FileHandler(os.fspath(log_file), encoding="utf-8")
        fh.setFormatter(fmt)
        logger.addHandler(fh)
