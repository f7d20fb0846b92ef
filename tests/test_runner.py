import sys
import os
import json
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "../src")))
import numpy as np
import pandas as pd
import pytest

from ctrlprop.errors import ConfigurationError
from ctrlprop.simulation import runner
from ctrlprop.simulation import RunConfig, build_device, load_params, run_from_file, run_one

PARAMS = """\
import numpy as np

description = "two_qubit"
frequencies = [1.0, 1.3]
anharmonicities = [0.3, 0.25]
couplings = [(0, 1, 0.05)]
drive_frequencies = [0.95, 1.35]
amplitudes = [0.2 + 0.05j, 0.1]
levels = 3
nsteps = 50
dt = 0.05
unrelated = np.array([1.0, 2.0])
"""


def small_config(**kwargs):
    base = dict(
        frequencies=[1.0],
        anharmonicities=[0.3],
        drive_frequencies=[0.9],
        amplitudes=[0.3 + 0.1j],
        nsteps=20,
        dt=0.05,
    )
    base.update(kwargs)
    return RunConfig(**base)


def test_convert():
    assert runner._convert(1 + 2j) == {"real": 1.0, "imag": 2.0}
    assert runner._convert(np.array([1, 2, 3])) == [1, 2, 3]
    assert runner._convert({"a": (np.float64(0.5), 1j)}) == {"a": [0.5, {"real": 0.0, "imag": 1.0}]}


def test_config_validation():
    with pytest.raises(ConfigurationError):
        small_config(anharmonicities=[0.3, 0.2])
    with pytest.raises(ConfigurationError):
        small_config(amplitudes=[0.1, 0.2])
    with pytest.raises(ConfigurationError):
        small_config(nsteps=0)
    with pytest.raises(ConfigurationError):
        small_config(dt=-0.1)
    with pytest.raises(ConfigurationError):
        small_config(basis="energy")
    with pytest.raises(ConfigurationError):
        small_config(frame="sideways")
    with pytest.raises(ConfigurationError):
        small_config(observable="parity")
    with pytest.raises(ConfigurationError):
        small_config(initial_state=2)


def test_build_device():
    dev = build_device(small_config())
    assert dev.nstates == 2
    assert dev.names() == ["Ω0.A", "Ω0.B", "ν0"]
    np.testing.assert_allclose(dev.values(), [0.3, 0.1, 0.9])


def test_run_one_trajectory():
    config = small_config(observable="projector", initial_state=[1.0, 1.0])
    result = run_one(config)
    traj = result["trajectory"]
    assert isinstance(traj, pd.DataFrame)
    assert list(traj.columns) == ["t", "energy", "norm"]
    assert len(traj) == 21
    assert traj["t"].iloc[-1] == pytest.approx(1.0)
    assert traj["energy"].iloc[-1] == pytest.approx(result["energy"], rel=1e-10)
    # a two-level device is entirely in the qubit subspace
    np.testing.assert_allclose(traj["energy"], traj["norm"], atol=1e-12)
    np.testing.assert_allclose(traj["norm"], 1.0, atol=1e-6)
    assert result["gradient"].shape == (3,)


def test_run_one_rejects_bad_state():
    with pytest.raises(ConfigurationError):
        run_one(small_config(initial_state=[1.0, 0.0, 0.0]))


def test_load_params_missing(tmp_path):
    with pytest.raises(ConfigurationError):
        load_params(str(tmp_path / "nope.py"))


def test_from_module(tmp_path):
    path = tmp_path / "params.py"
    path.write_text(PARAMS, encoding="utf-8")
    config = RunConfig.from_module(load_params(str(path)))
    assert config.levels == 3
    assert config.description == "two_qubit"
    assert not hasattr(config, "unrelated")


def test_run_from_file_writes_results(tmp_path):
    path = tmp_path / "params.py"
    path.write_text(PARAMS, encoding="utf-8")
    outdir = tmp_path / "out"
    result = run_from_file(str(path), save=True, root=str(outdir))

    assert result["outdir"] == str(outdir)
    for name in ("trajectory.csv", "gradient.npy", "params.json", "params.py"):
        assert (outdir / name).exists()

    traj = pd.read_csv(outdir / "trajectory.csv")
    assert len(traj) == 51
    np.testing.assert_allclose(np.load(outdir / "gradient.npy"), result["gradient"])

    saved = json.loads((outdir / "params.json").read_text(encoding="utf-8"))
    assert saved["energy"] == pytest.approx(result["energy"])
    assert saved["amplitudes"][0] == {"real": 0.2, "imag": 0.05}
    assert saved["parameter_names"] == result["names"]
    assert len(saved["parameter_names"]) == 6


def test_run_from_file_without_saving(tmp_path):
    path = tmp_path / "params.py"
    path.write_text(PARAMS, encoding="utf-8")
    result = run_from_file(str(path), save=False)
    assert "outdir" not in result
    assert not (tmp_path / "results").exists()
