#!/usr/bin/env python
"""
Params file for the single-pulse runner
=======================================

Usage:
    python -m ctrlprop.simulation.runner examples/params_example_two_qubit.py -v
"""
import numpy as np

# Used in the result directory name
description = "two_qubit_demo"

# === Device [rad/ns] ===
frequencies = [2 * np.pi * 4.80, 2 * np.pi * 4.95]
anharmonicities = [2 * np.pi * 0.30, 2 * np.pi * 0.30]
couplings = [(0, 1, 2 * np.pi * 0.02)]
levels = 3

# === Pulse: one complex constant drive per qubit ===
drive_frequencies = [2 * np.pi * 4.80, 2 * np.pi * 4.95]
amplitudes = [2 * np.pi * 0.02, 2 * np.pi * 0.01j]

# === Time grid [ns] ===
nsteps = 500
dt = 0.04

# === Measurement ===
basis = "occupation"
frame = "rotating"
initial_state = 0        # index into the occupation basis
observable = "number"    # "number", "projector" or a matrix
