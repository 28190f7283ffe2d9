# test_config.py
import os

import numpy as np
import pytest
import yaml
from numpy.testing import assert_allclose
from pydantic import ValidationError
from typer.testing import CliRunner

from tbacalc.cli import app
from tbacalc.config_loader import build_system, load_model_config
from tbacalc.kinds import Statistics, SystemKind
from tbacalc.runner import run_calculation
from tbacalc.schema import TBAConfig
from tbacalc.utils.path_generator import generate_k_path, k_path_points, parameter_scan

KITAEV = {
    "lattice": {"vectors": [[1.0]], "sites": [[0.0]]},
    "basis": {"statistics": "fermionic"},
    "terms": [
        {"type": "hopping", "name": "t", "bonds": [{"site_i": 0, "site_j": 0, "offset": [1]}]},
        {"type": "onsite", "name": "mu", "amplitude": "-mu"},
        {"type": "pairing", "name": "Delta", "bonds": [{"site_i": 0, "site_j": 0, "offset": [1]}]},
    ],
    "parameters": {"t": 1.0, "mu": 0.5, "Delta": 0.3},
    "k_path": {"points": {"G": [0.0], "X": [0.5]}, "path": ["G", "X"], "points_per_segment": 5},
    "tasks": {"run_bands": True, "plot_bands": False},
}

PHONON_CHAIN = {
    "lattice": {"vectors": [[1.0]], "sites": [[0.0]]},
    "basis": {"statistics": "phononic"},
    "terms": [
        {"type": "phonon_kinetic", "name": "kin", "amplitude": 0.5},
        {"type": "phonon_potential", "name": "spring", "amplitude": "kappa",
         "bonds": [{"site_i": 0, "site_j": 0, "offset": [1]}]},
    ],
    "parameters": {"kappa": 1.0},
}


def _write_config(path, data):
    with open(path, "w") as f:
        yaml.safe_dump(data, f)
    return str(path)


# --- Path generation ---
def test_generate_k_path_segments():
    points = {"G": [0.0], "X": [1.0], "M": [2.0]}
    path = generate_k_path(["G", "X", "M"], 2, points)
    assert_allclose(path, [[0.0], [0.5], [1.0], [2.0]])


def test_generate_k_path_fractional_coordinates():
    path = generate_k_path(["G", "X"], 3, {"G": [0.0], "X": [0.5]}, np.array([[2 * np.pi]]))
    assert_allclose(path[:, 0], [0.0, np.pi / 2, np.pi])


def test_generate_k_path_errors():
    with pytest.raises(ValueError):
        generate_k_path(["G"], 3, {"G": [0.0]})
    with pytest.raises(ValueError):
        generate_k_path(["G", "Y"], 3, {"G": [0.0]})
    with pytest.raises(ValueError):
        generate_k_path(["G", "G"], 0, {"G": [0.0]})


def test_generate_k_path_needs_two_points_per_segment():
    with pytest.raises(ValueError, match="at least 2"):
        generate_k_path(["G", "X"], 1, {"G": [0.0], "X": [0.5]})
    data = dict(KITAEV, k_path={"points": {"G": [0.0], "X": [0.5]}, "path": ["G", "X"], "points_per_segment": 1})
    with pytest.raises(ValidationError):
        TBAConfig.model_validate(data)


def test_generate_k_path_keeps_every_high_symmetry_point():
    points = {"G": [0.0], "X": [1.0], "M": [2.0]}
    path = generate_k_path(["G", "X", "M"], 2, points)
    for name in ("G", "X", "M"):
        assert any(np.allclose(k, points[name]) for k in path)


def test_k_path_points():
    points, distances, ticks = k_path_points(["A", "B", "C"], 2, {"A": [0, 0], "B": [1, 0], "C": [1, 1]})
    assert len(points) == 4
    assert_allclose(points[1]["k"], [0.5, 0.0])
    assert_allclose(distances, [0.0, 0.5, 1.0, 2.0])
    assert ticks == [0.0, 1.0, 2.0]


def test_parameter_scan():
    assert parameter_scan("mu", 0.0, 1.0, 3) == [{"mu": 0.0}, {"mu": 0.5}, {"mu": 1.0}]
    with pytest.raises(ValueError):
        parameter_scan("mu", 0.0, 1.0, 0)


# --- Schema ---
def test_schema_defaults():
    config = TBAConfig.model_validate(KITAEV)
    assert config.basis.norbital == 1
    assert config.output.bands_data_filename == "bands_data.npz"
    assert config.calculation.processes is None
    assert config.terms[1].amplitude == "-mu"


def test_schema_rejects_phonon_terms_for_fermions():
    data = dict(PHONON_CHAIN, basis={"statistics": "fermionic"})
    with pytest.raises(ValidationError):
        TBAConfig.model_validate(data)


def test_schema_rejects_bond_outside_lattice():
    data = dict(KITAEV)
    data["terms"] = [{"type": "hopping", "name": "t", "bonds": [{"site_i": 0, "site_j": 2}]}]
    with pytest.raises(ValidationError):
        TBAConfig.model_validate(data)


def test_schema_rejects_unknown_scan_parameter():
    data = dict(KITAEV)
    data.pop("k_path")
    data["parameter_scan"] = {"name": "U", "start": 0.0, "stop": 1.0}
    with pytest.raises(ValidationError):
        TBAConfig.model_validate(data)


# --- Loading and building ---
def test_build_kitaev_chain():
    system = build_system(KITAEV)
    assert system.kind is SystemKind.PARTICLE_HOLE
    values, _ = system.eigen([np.pi / 2])
    assert_allclose(values, [-np.sqrt(0.25 + 0.36), np.sqrt(0.25 + 0.36)], atol=1e-12)


def test_build_phonon_chain():
    system = build_system(PHONON_CHAIN)
    assert system.statistics is Statistics.PHONONIC
    values, _ = system.eigen([np.pi])
    assert_allclose(values, [2.0, -2.0], atol=1e-10)


def test_load_model_config(tmp_path):
    config = load_model_config(_write_config(tmp_path / "model.yaml", KITAEV))
    assert config.parameters == {"t": 1.0, "mu": 0.5, "Delta": 0.3}


def test_load_invalid_yaml(tmp_path):
    path = tmp_path / "broken.yaml"
    path.write_text("lattice: [unclosed\n")
    with pytest.raises(ValueError):
        load_model_config(str(path))


def test_load_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_model_config(str(tmp_path / "missing.yaml"))


# --- Runner ---
def test_run_calculation_k_path(tmp_path):
    config_file = _write_config(tmp_path / "kitaev.yaml", KITAEV)
    data = run_calculation(config_file)
    assert data["energies"].shape == (5, 2)
    assert_allclose(data["energies"][0], [-1.5, 1.5], atol=1e-12)
    assert_allclose(data["energies"][-1], [-2.5, 2.5], atol=1e-12)
    assert_allclose(data["k_vectors"][:, 0], np.linspace(0, np.pi, 5))
    assert os.path.exists(tmp_path / "bands_data.npz")


def test_run_calculation_parameter_scan_and_plot(tmp_path):
    data = dict(KITAEV)
    data.pop("k_path")
    data["parameter_scan"] = {"name": "mu", "start": -1.0, "stop": 1.0, "num": 3, "k": [0.0]}
    data["tasks"] = {"run_bands": True, "plot_bands": True}
    config_file = _write_config(tmp_path / "scan.yaml", data)
    result = run_calculation(config_file)
    assert_allclose(result["x_values"], [-1.0, 0.0, 1.0])
    assert_allclose(result["k_vectors"], [[0.0], [0.0], [0.0]])
    assert_allclose(result["energies"][:, 1], [3.0, 2.0, 1.0], atol=1e-12)
    assert os.path.exists(tmp_path / "bands_plot.png")


def test_run_calculation_parameter_scan_without_momentum(tmp_path):
    data = dict(KITAEV)
    data.pop("k_path")
    data["parameter_scan"] = {"name": "Delta", "start": 0.0, "stop": 0.4, "num": 5}
    config_file = _write_config(tmp_path / "scan.yaml", data)
    result = run_calculation(config_file)
    assert_allclose(result["x_values"], [0.0, 0.1, 0.2, 0.3, 0.4])
    assert "k_vectors" not in result
    assert result["energies"].shape == (5, 2)


def test_run_calculation_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        run_calculation(str(tmp_path / "nothing.yaml"))


# --- CLI ---
def test_cli_init_validate_run(tmp_path):
    runner = CliRunner()
    config_file = str(tmp_path / "config.yaml")

    result = runner.invoke(app, ["init", config_file])
    assert result.exit_code == 0
    assert os.path.exists(config_file)

    result = runner.invoke(app, ["validate", config_file])
    assert result.exit_code == 0
    assert "is valid" in result.output

    result = runner.invoke(app, ["run", config_file])
    assert result.exit_code == 0
    assert os.path.exists(tmp_path / "bands_data.npz")
    assert os.path.exists(tmp_path / "bands_plot.png")


def test_cli_validate_rejects_bad_config(tmp_path):
    config_file = _write_config(tmp_path / "bad.yaml", {"lattice": {"sites": [[0.0]]}, "terms": []})
    result = CliRunner().invoke(app, ["validate", config_file])
    assert result.exit_code == 1
    assert "Validation Failed" in result.output


def test_cli_validate_missing_file(tmp_path):
    result = CliRunner().invoke(app, ["validate", str(tmp_path / "none.yaml")])
    assert result.exit_code == 1


def test_cli_run_failure(tmp_path):
    data = dict(KITAEV, basis={"statistics": "bosonic"}, parameters={"t": 1.0, "mu": 0.5, "Delta": 3.0})
    config_file = _write_config(tmp_path / "unstable.yaml", data)
    result = CliRunner().invoke(app, ["run", config_file])
    assert result.exit_code == 1
    assert "Calculation failed" in result.output
