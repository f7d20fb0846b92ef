import sys
import os
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "../src")))
import numpy as np
import pytest

from ctrlprop.core.grid import TemporalLattice, UniformGrid, as_grid
from ctrlprop.core.signals import ComplexConstant, Constant, Gaussian, Windowed, gaussian_fwhm
from ctrlprop.errors import ConfigurationError, ParameterBoundsError


def test_uniform_grid():
    grid = UniformGrid(10, 0.1)
    assert grid.nsteps() == 10
    assert grid.stepsize() == 0.1
    assert grid.lattice().shape == (11,)
    assert grid.lattice()[0] == 0.0
    assert grid.lattice()[-1] == pytest.approx(1.0)
    assert grid.duration() == pytest.approx(1.0)
    w = grid.weights()
    assert w[0] == pytest.approx(0.05) and w[-1] == pytest.approx(0.05)
    assert w.sum() == pytest.approx(1.0)


def test_uniform_grid_is_frozen():
    grid = UniformGrid(10, 0.1)
    with pytest.raises(AttributeError):
        grid.dt = 0.2


@pytest.mark.parametrize("n, dt", [(0, 0.1), (5, 0.0), (5, -1.0), (2.5, 0.1), (5, np.inf)])
def test_uniform_grid_rejects(n, dt):
    with pytest.raises(ConfigurationError):
        UniformGrid(n, dt)


def test_lattice():
    times = np.array([0.0, 0.1, 0.3, 0.6])
    grid = TemporalLattice(times)
    assert grid.nsteps() == 3
    np.testing.assert_allclose(grid.stepsizes(), [0.1, 0.2, 0.3])
    np.testing.assert_allclose(grid.weights(), [0.05, 0.15, 0.25, 0.15])
    # integrates linear functions exactly
    assert grid.integrate(2 * times) == pytest.approx(0.36)
    times[1] = 5.0
    assert grid.lattice()[1] == pytest.approx(0.1)
    with pytest.raises(ValueError):
        grid.times[0] = 1.0


@pytest.mark.parametrize("times", [[0.0], [0.0, 0.0, 1.0], [0.0, 2.0, 1.0], [0.0, np.nan]])
def test_lattice_rejects(times):
    with pytest.raises(ConfigurationError):
        TemporalLattice(times)


def test_integrate_shape_checked():
    with pytest.raises(ConfigurationError):
        UniformGrid(4, 0.1).integrate(np.ones(4))


def test_as_grid():
    grid = UniformGrid(3, 0.2)
    assert as_grid(grid) is grid
    assert as_grid(3, 0.2) == grid
    with pytest.raises(ConfigurationError):
        as_grid(3)
    with pytest.raises(ConfigurationError):
        as_grid(grid, 0.2)
    with pytest.raises(ConfigurationError):
        as_grid("3", 0.2)


def test_constant_signals():
    s = Constant(0.3)
    assert s(1.0) == 0.3
    np.testing.assert_array_equal(s(np.zeros(4)), np.full(4, 0.3))
    c = ComplexConstant(0.1, 0.2)
    assert c(0.0) == 0.1 + 0.2j
    assert c.partial(1, 0.0) == 1j
    with pytest.raises(ParameterBoundsError):
        c.partial(2, 0.0)
    c.bind(np.array([1.0, -1.0]))
    np.testing.assert_array_equal(c.values(), [1.0, -1.0])
    with pytest.raises(ConfigurationError):
        c.bind(np.zeros(3))


def test_gaussian_signal():
    g = Gaussian(1.0, 0.5, sigma=2.0, center=3.0)
    assert g(3.0) == pytest.approx(1.0 + 0.5j)
    t = np.linspace(0, 6, 13)
    np.testing.assert_allclose(g.partial(0, t), np.exp(-((t - 3.0) ** 2) / 8.0))
    np.testing.assert_allclose(g.partial(1, t), 1j * np.exp(-((t - 3.0) ** 2) / 8.0))
    assert gaussian_fwhm(1.0, 0.0, 2.0) == pytest.approx(0.5)
    with pytest.raises(ConfigurationError):
        Gaussian(1.0, 0.0, sigma=0.0, center=0.0)


def test_windowed_signal():
    s = Windowed([Constant(1.0), ComplexConstant(2.0, 3.0)], [0.0, 0.5])
    assert s.count() == 3
    assert s.names() == ["A0", "A1", "B1"]
    t = np.array([0.0, 0.25, 0.5, 0.75])
    np.testing.assert_array_equal(s(t), [1.0, 1.0, 2.0 + 3.0j, 2.0 + 3.0j])
    np.testing.assert_array_equal(s.partial(2, t), [0, 0, 1j, 1j])
    assert s.partial(0, 0.75) == 0
    s.bind(np.array([4.0, 5.0, 6.0]))
    assert s(0.1) == 4.0
    assert s(0.9) == 5.0 + 6.0j
    with pytest.raises(ParameterBoundsError):
        s.partial(3, 0.0)
    with pytest.raises(ConfigurationError):
        Windowed([Constant(1.0), Constant(2.0)], [0.5, 0.5])
