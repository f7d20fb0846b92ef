#!/usr/bin/env python
"""
Two-transmon pulse optimization example
=======================================

Minimize the normalized energy of a two-transmon register with a
windowed complex pulse, under a soft amplitude bound.

Usage:
    python examples/example_transmon_optimization.py
"""

import os
import sys
import time

import numpy as np
import pandas as pd
from scipy.optimize import minimize

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "../src")))

from ctrlprop import configure_logging
from ctrlprop.core import OCCUPATION, ComplexConstant, Drive, TransmonDevice, Windowed
from ctrlprop.core.operators import number_operator
from ctrlprop.costfns import GlobalAmplitudeBound, NormalizedEnergy
from ctrlprop.propagation import RK4

# %% Parameters
FREQUENCIES = [2 * np.pi * 4.80, 2 * np.pi * 4.95]  # [rad/ns]
ANHARMONICITIES = [2 * np.pi * 0.30, 2 * np.pi * 0.30]
COUPLING = 2 * np.pi * 0.02
LEVELS = 3

DURATION = 20.0  # [ns]
NSTEPS = 400
NWINDOWS = 4

OMEGA_MAX = 2 * np.pi * 0.05
BOUND_WEIGHT = 1.0
BOUND_STIFFNESS = 0.5

configure_logging(verbose=False)

# %% Device
starttimes = np.linspace(0.0, DURATION, NWINDOWS, endpoint=False)
drives = [
    Drive(q, FREQUENCIES[q], Windowed([ComplexConstant(0.05, 0.0) for _ in range(NWINDOWS)], starttimes))
    for q in range(2)
]
device = TransmonDevice(
    FREQUENCIES, ANHARMONICITIES, couplings=[(0, 1, COUPLING)], drives=drives, m=LEVELS
)
print(device)

# %% Cost functions
psi0 = np.zeros(device.nstates, dtype=np.complex128)
psi0[0] = 1.0
dt = DURATION / NSTEPS

energy = NormalizedEnergy(
    RK4, device, OCCUPATION, "rotating", NSTEPS, dt, psi0, -number_operator(device, OCCUPATION)
)
bound = GlobalAmplitudeBound(device, NSTEPS, dt, OMEGA_MAX, BOUND_WEIGHT, BOUND_STIFFNESS)

f_energy, g_energy = energy.cost_function(), energy.grad_function()
f_bound, g_bound = bound.cost_function(), bound.grad_function()


def f(x):
    return f_energy(x) + f_bound(x)


def g(x):
    return g_energy(x) + g_bound(x)


# %% Optimization
x0 = device.values()
history = []
t0 = time.perf_counter()
res = minimize(f, x0, jac=g, method="L-BFGS-B", options={"maxiter": 50},
               callback=lambda xk: history.append((f_energy(xk), f_bound(xk))))
print(f"L-BFGS-B finished in {time.perf_counter() - t0:.1f}s: {res.message}")

# %% Report
device.bind(res.x)
table = pd.DataFrame({"name": device.names(), "initial": x0, "optimized": res.x})
print(table.to_string(index=False))

trace = pd.DataFrame(history, columns=["energy", "bound"])
print(trace.tail())
os.makedirs("examples/results", exist_ok=True)
trace.to_csv("examples/results/transmon_optimization_trace.csv", index_label="iteration")
