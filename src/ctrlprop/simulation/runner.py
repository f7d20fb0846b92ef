"""
ctrlprop/simulation/runner.py
=============================
Run one pulse from a params file and save the results.

* A params file is a plain Python module; its module-level names matching
  :class:`RunConfig` fields configure the run.
* Every drive acts on the qubit with the same index, with a complex constant
  envelope.
* Results land in ``results/<timestamp>_<description>/``.
"""

from __future__ import annotations

import importlib.util
import json
import os
import shutil
import time
from dataclasses import asdict, dataclass, field, fields
from datetime import datetime
from typing import Any, Dict, Optional, Sequence, Union

import numpy as np
import pandas as pd

from ..core.bases import OCCUPATION, validate_basis, validate_frame
from ..core.device import Drive, TransmonDevice
from ..core.operators import number_operator, qubitprojector
from ..core.signals import ComplexConstant
from ..costfns.energies import BareEnergy
from ..errors import ConfigurationError, get_logger
from ..propagation.base import get_evolution

logger = get_logger()

# ----------------------------------------------------------------------
# Helpers
# ----------------------------------------------------------------------


def load_params(path: str):
    """Import the params file at ``path`` as a module."""
    if not os.path.isfile(path):
        raise ConfigurationError(f"params file not found: {path}")
    spec = importlib.util.spec_from_file_location("params", path)
    if spec is None or spec.loader is None:
        raise ConfigurationError(f"cannot load params file: {path}")
    mod = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(mod)
    return mod


def _serializable_params(mod) -> Dict[str, Any]:
    keep = (str, int, float, bool, complex, list, dict, tuple,
            type(None), np.ndarray, np.generic)
    out: Dict[str, Any] = {}
    for k in dir(mod):
        if k.startswith("__"):
            continue
        v = getattr(mod, k)
        if isinstance(v, keep):
            out[k] = _convert(v)
    return out


def _convert(obj):
    if isinstance(obj, complex):
        return {"real": obj.real, "imag": obj.imag}
    elif isinstance(obj, np.ndarray):
        return [_convert(x) for x in obj.tolist()]
    elif isinstance(obj, (list, tuple)):
        return [_convert(x) for x in obj]
    elif isinstance(obj, dict):
        return {k: _convert(v) for k, v in obj.items()}
    elif isinstance(obj, np.generic):
        return _convert(obj.item())
    else:
        return obj


def _make_root(desc: str, base: str = "results") -> str:
    now = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
    root = os.path.join(base, f"{now}_{desc}")
    os.makedirs(root, exist_ok=True)
    return root


# ----------------------------------------------------------------------
# Configuration
# ----------------------------------------------------------------------


@dataclass
class RunConfig:
    """
    One pulse on a transmon device.

    Frequencies are angular, in rad/ns; times are in ns.
    """

    frequencies: Sequence[float]
    anharmonicities: Sequence[float]
    drive_frequencies: Sequence[float]
    amplitudes: Sequence[complex]
    nsteps: int
    dt: float
    levels: int = 2
    couplings: Sequence[Sequence[float]] = field(default_factory=list)
    basis: str = OCCUPATION
    frame: str = "rotating"
    evolution: str = "rk4"
    initial_state: Union[int, Sequence[complex]] = 0
    observable: Union[str, np.ndarray] = "number"
    description: str = "run"

    def __post_init__(self):
        n = len(self.frequencies)
        if n == 0:
            raise ConfigurationError("at least one qubit frequency is required")
        if len(self.anharmonicities) != n:
            raise ConfigurationError("anharmonicities must match frequencies in length")
        if len(self.drive_frequencies) != len(self.amplitudes):
            raise ConfigurationError("drive_frequencies and amplitudes must have the same length")
        if len(self.drive_frequencies) > n:
            raise ConfigurationError("at most one drive per qubit is supported")
        if int(self.nsteps) != self.nsteps or self.nsteps < 1:
            raise ConfigurationError("nsteps must be a positive integer")
        if self.dt <= 0:
            raise ConfigurationError("dt must be positive")
        if self.levels < 2:
            raise ConfigurationError("levels must be at least 2")
        validate_basis(self.basis)
        validate_frame(self.frame)
        if isinstance(self.observable, str) and self.observable not in ("number", "projector"):
            raise ConfigurationError(
                f"Unknown observable: {self.observable!r}. Use 'number', 'projector' or a matrix"
            )
        if isinstance(self.initial_state, (int, np.integer)):
            if not 0 <= self.initial_state < self.levels ** n:
                raise ConfigurationError(f"initial_state index {self.initial_state} out of range")

    @classmethod
    def from_module(cls, mod) -> "RunConfig":
        """Collect the module-level names of ``mod`` that are config fields."""
        names = {f.name for f in fields(cls)}
        kwargs = {k: getattr(mod, k) for k in names if hasattr(mod, k)}
        return cls(**kwargs)

    def to_dict(self) -> Dict[str, Any]:
        return _convert(asdict(self))


# ----------------------------------------------------------------------
# Single run
# ----------------------------------------------------------------------


def build_device(config: RunConfig) -> TransmonDevice:
    drives = [
        Drive(q, float(nu), ComplexConstant(complex(A).real, complex(A).imag))
        for q, (nu, A) in enumerate(zip(config.drive_frequencies, config.amplitudes))
    ]
    return TransmonDevice(
        config.frequencies,
        config.anharmonicities,
        couplings=[tuple(c) for c in config.couplings],
        drives=drives,
        m=config.levels,
    )


def _initial_state(config: RunConfig, nstates: int) -> np.ndarray:
    if isinstance(config.initial_state, (int, np.integer)):
        psi0 = np.zeros(nstates, dtype=np.complex128)
        psi0[config.initial_state] = 1.0
        return psi0
    psi0 = np.asarray(config.initial_state, dtype=np.complex128)
    if psi0.shape != (nstates,):
        raise ConfigurationError(f"initial_state must have shape ({nstates},), got {psi0.shape}")
    return psi0 / np.linalg.norm(psi0)


def _observable(config: RunConfig, device: TransmonDevice) -> np.ndarray:
    if isinstance(config.observable, str):
        if config.observable == "number":
            return number_operator(device, config.basis)
        return qubitprojector(device, config.basis)
    return np.asarray(config.observable, dtype=np.complex128)


def run_one(config: RunConfig) -> Dict[str, Any]:
    """
    Evolve the initial state, record its trajectory, and differentiate the
    final energy with respect to every device parameter.

    Returns
    -------
    dict
        ``energy`` (float), ``gradient`` (np.ndarray), ``names`` (list of
        parameter names) and ``trajectory`` (DataFrame with columns
        ``t``, ``energy``, ``norm``).
    """
    device = build_device(config)
    evolution = get_evolution(config.evolution)
    psi0 = _initial_state(config, device.nstates)
    O0 = _observable(config, device)
    logger.info("run %r: %r, %d steps of %.4g ns", config.description, device, config.nsteps, config.dt)

    fn = BareEnergy(evolution, device, config.basis, config.frame, config.nsteps, config.dt, psi0, O0)
    x = device.values()

    energies = np.empty(config.nsteps + 1)
    norms = np.empty(config.nsteps + 1)
    energies[0] = fn.evaluate(psi0, 0.0)
    norms[0] = np.real(np.vdot(psi0, psi0))

    def record_norm(i, t, psi):
        norms[i] = np.real(np.vdot(psi, psi))

    f = fn.cost_function(callback=fn.trajectory_callback(energies, callback=record_norm))
    g = fn.grad_function()

    t0 = time.perf_counter()
    energy = f(x)
    gradient = g(x)
    logger.info("run %r: energy=%.8g |grad|=%.4g (%.2fs)",
                config.description, energy, np.linalg.norm(gradient), time.perf_counter() - t0)

    trajectory = pd.DataFrame({
        "t": fn.grid.lattice(),
        "energy": energies,
        "norm": norms,
    })
    return {
        "energy": energy,
        "gradient": gradient,
        "names": device.names(),
        "trajectory": trajectory,
    }


def save_results(result: Dict[str, Any], config: RunConfig, root: Optional[str] = None) -> str:
    """Write ``trajectory.csv``, ``gradient.npy`` and ``params.json``; return the directory."""
    if root is None:
        root = _make_root(config.description)
    else:
        os.makedirs(root, exist_ok=True)

    result["trajectory"].to_csv(os.path.join(root, "trajectory.csv"), index=False)
    np.save(os.path.join(root, "gradient.npy"), result["gradient"])

    params: Dict[str, Any] = config.to_dict()
    params["energy"] = float(result["energy"])
    params["parameter_names"] = list(result["names"])
    with open(os.path.join(root, "params.json"), "w", encoding="utf-8") as f:
        json.dump(params, f, indent=2, ensure_ascii=False)

    logger.info("saved results to %s", root)
    return root


def run_from_file(param_path: str, save: bool = True, root: Optional[str] = None) -> Dict[str, Any]:
    """Load a params file, run it, and optionally save the results next to a copy of the file."""
    mod = load_params(param_path)
    config = RunConfig.from_module(mod)
    logger.debug("params: %s", _serializable_params(mod))

    result = run_one(config)
    if save:
        outdir = save_results(result, config, root)
        shutil.copy(param_path, os.path.join(outdir, "params.py"))
        result["outdir"] = outdir
    return result


# ----------------------------------------------------------------------
# Entry point
# ----------------------------------------------------------------------
if __name__ == "__main__":
    import argparse

    from ..errors import configure_logging

    ap = argparse.ArgumentParser()
    ap.add_argument("paramfile", help="params .py file")
    ap.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    ap.add_argument("--no-save", action="store_true", help="do not write results")
    args = ap.parse_args()

    configure_logging(verbose=args.verbose)
    t0 = time.perf_counter()
    res = run_from_file(args.paramfile, save=not args.no_save)
    print(f"energy = {res['energy']:.10g}")
    print(f"Finished in {(time.perf_counter()-t0):.1f}s")
