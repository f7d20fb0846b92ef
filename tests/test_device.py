import sys
import os
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "../src")))
import numpy as np
import pytest

from ctrlprop.core.bases import DRESSED, OCCUPATION
from ctrlprop.core.device import DeviceProtocol, Drive, TransmonDevice
from ctrlprop.core.grid import UniformGrid
from ctrlprop.core.linalg import annihilator, embed
from ctrlprop.core.operators import localqubitprojectors, number_operator, qubitprojector
from ctrlprop.core.signals import ComplexConstant, Constant, Windowed
from ctrlprop.errors import ConfigurationError, ParameterBoundsError

from mock_objects import MockDevice


def make_device():
    drives = [
        Drive(0, 4.8, Windowed([ComplexConstant(0.1, 0.0), ComplexConstant(0.2, 0.1)], [0.0, 1.0])),
        Drive(1, 5.1, Constant(0.05)),
    ]
    return TransmonDevice([5.0, 5.2], [0.3, 0.3], couplings=[(0, 1, 0.03)], drives=drives, m=3)


def test_structure():
    dev = make_device()
    assert dev.nstates == 9
    assert dev.nqubits == 2
    assert dev.nlevels == 3
    assert dev.ndrives() == 2
    assert dev.ngrades() == 4
    assert dev.drivequbit(1) == 1
    assert dev.detuningfrequency(0, 0) == pytest.approx(-0.2)
    assert isinstance(dev, DeviceProtocol)
    assert isinstance(MockDevice(), DeviceProtocol)


def test_parameters_round_trip():
    dev = make_device()
    assert dev.count() == 7
    assert dev.names() == ["Ω0.A0", "Ω0.B0", "Ω0.A1", "Ω0.B1", "Ω1.A", "ν0", "ν1"]
    x = np.arange(7, dtype=float) / 10
    dev.bind(x)
    np.testing.assert_array_equal(dev.values(), x)
    assert dev.drivefrequency(1) == pytest.approx(0.6)
    with pytest.raises(ConfigurationError):
        dev.bind(np.zeros(6))


def test_static_hamiltonian_is_diagonal_in_dressed_basis():
    dev = make_device()
    W = dev.basisrotation(OCCUPATION, DRESSED)
    np.testing.assert_allclose(W.conj().T @ W, np.eye(9), atol=1e-12)
    D = W.conj().T @ dev.static.matrix @ W
    np.testing.assert_allclose(D, np.diag(dev.static.eigenvalues), atol=1e-10)
    # weak coupling: dressed states stay close to bare states
    assert np.all(np.abs(np.diag(W)) > 0.9)
    assert np.all(np.abs(np.imag(np.diag(W))) < 1e-12)
    assert np.all(np.real(np.diag(W)) > 0)


def test_basis_rotations_are_inverse():
    dev = make_device()
    R = dev.basisrotation(DRESSED, OCCUPATION) @ dev.basisrotation(OCCUPATION, DRESSED)
    np.testing.assert_allclose(R, np.eye(9), atol=1e-12)
    np.testing.assert_array_equal(dev.basisrotation(DRESSED, DRESSED), np.eye(9))


def test_evolver_is_diagonal_in_dressed_basis():
    dev = make_device()
    U = dev.evolver(DRESSED, 0.7)
    np.testing.assert_allclose(U, np.diag(np.diag(U)))
    Uo = dev.evolver(OCCUPATION, 0.7)
    W = dev.basisrotation(OCCUPATION, DRESSED)
    np.testing.assert_allclose(Uo, W @ U @ W.conj().T, atol=1e-12)


def test_operator_matches_explicit_drive():
    dev = make_device()
    t = 1.5
    a0 = embed(annihilator(3), 0, 2)
    a1 = embed(annihilator(3), 1, 2)
    term = (0.2 + 0.1j) * np.exp(1j * 4.8 * t) * a0 + 0.05 * np.exp(1j * 5.1 * t) * a1
    np.testing.assert_allclose(dev.operator(t, OCCUPATION), term + term.conj().T, atol=1e-14)


def test_gradient_operators_are_derivatives_of_drive():
    dev = make_device()
    t, h = 0.4, 1e-6
    x = dev.values()
    for j, k in ((0, 0), (1, 1)):  # Re and Im of the first window
        xp, xm = x.copy(), x.copy()
        xp[k] += h
        xm[k] -= h
        dev.bind(xp)
        Vp = dev.operator(t, OCCUPATION)
        dev.bind(xm)
        Vm = dev.operator(t, OCCUPATION)
        dev.bind(x)
        np.testing.assert_allclose(dev.gradient_operator(j, t, OCCUPATION), (Vp - Vm) / (2 * h), atol=1e-8)
    with pytest.raises(ParameterBoundsError):
        dev.gradient_operator(4, t, OCCUPATION)


def test_braket_in_interaction_picture():
    dev = make_device()
    rng = np.random.default_rng(0)
    bra = rng.normal(size=9) + 1j * rng.normal(size=9)
    ket = rng.normal(size=9) + 1j * rng.normal(size=9)
    t = 0.9
    U = dev.evolver(OCCUPATION, t)
    G = U.conj().T @ dev.gradient_operator(3, t, OCCUPATION) @ U
    assert dev.braket(3, t, OCCUPATION, bra, ket) == pytest.approx(np.vdot(bra, G @ ket))


def test_gradient_aggregation():
    dev = make_device()
    grid = UniformGrid(4, 0.5)
    phi = np.ones((5, 4))
    grad = dev.gradient(grid, phi)
    assert grad.shape == (7,)
    # window 0 covers t < 1.0 (samples 0, 0.5), window 1 the rest
    w = grid.weights()
    assert grad[0] == pytest.approx(w[0] + w[1])
    assert grad[1] == pytest.approx(w[0] + w[1])
    assert grad[2] == pytest.approx(w[2] + w[3] + w[4])
    with pytest.raises(ConfigurationError):
        dev.gradient(grid, np.ones((4, 4)))


def test_invalid_topology():
    with pytest.raises(ConfigurationError):
        TransmonDevice([5.0], [0.3, 0.2])
    with pytest.raises(ConfigurationError):
        TransmonDevice([5.0, 5.1], [0.3, 0.3], couplings=[(0, 0, 0.01)])
    with pytest.raises(ConfigurationError):
        TransmonDevice([5.0], [0.3], drives=[Drive(1, 5.0, Constant(0.1))])


def test_qubit_operators():
    dev = make_device()
    P = localqubitprojectors(dev)
    assert len(P) == 2
    np.testing.assert_array_equal(P[0], np.diag([1, 1, 0]))
    Π = qubitprojector(dev)
    assert np.trace(Π).real == pytest.approx(4)
    np.testing.assert_allclose(Π @ Π, Π)
    Πd = qubitprojector(dev, DRESSED)
    assert np.trace(Πd).real == pytest.approx(4)
    N = number_operator(dev)
    np.testing.assert_allclose(np.diag(N).real, [0, 1, 2, 1, 2, 3, 2, 3, 4])
