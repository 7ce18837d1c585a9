import sys
import json
import math
from pathlib import Path

# Add src/ to the Python path
src_root = str(Path(__file__).resolve().parent.parent.parent / "src")
if src_root not in sys.path:
    sys.path.insert(0, src_root)

import dataclasses

import pytest

from oscillatory_cartpole.errors import InvalidParameterError
from oscillatory_cartpole.utils.parameters import (
    DEFAULT_PARAM_PATH,
    PhysicalParameters,
    load_cartpole_params,
    save_cartpole_params,
)


class TestPhysicalParameters:
    """Tests for parameter validation."""

    def test_defaults(self):
        p = PhysicalParameters()
        assert p.gravity == 9.8
        assert p.cart_mass == 1.0
        assert p.pole_mass == 0.1
        assert p.pole_length == 1.0
        assert p.max_force == 10.0
        assert p.dt == 0.01
        assert p.angle_threshold == pytest.approx(math.pi / 4)
        assert p.displacement_threshold == 3.5

    def test_ints_are_converted_to_float(self):
        p = PhysicalParameters(cart_mass=2)
        assert isinstance(p.cart_mass, float)

    @pytest.mark.parametrize("name", [f.name for f in dataclasses.fields(PhysicalParameters)])
    @pytest.mark.parametrize("value", [0.0, -1.0, math.inf, math.nan])
    def test_rejects_non_positive_or_non_finite(self, name, value):
        with pytest.raises(InvalidParameterError):
            PhysicalParameters(**{name: value})

    @pytest.mark.parametrize("value", ["1.0", None, True, [1.0]])
    def test_rejects_non_numbers(self, value):
        with pytest.raises(InvalidParameterError):
            PhysicalParameters(dt=value)

    def test_is_immutable(self):
        p = PhysicalParameters()
        with pytest.raises(dataclasses.FrozenInstanceError):
            p.dt = 0.1

    def test_dict_round_trip(self):
        p = PhysicalParameters(pole_length=0.5, dt=0.02)
        assert PhysicalParameters.from_dict(p.to_dict()) == p

    def test_from_dict_fills_defaults(self):
        p = PhysicalParameters.from_dict({"dt": 0.05})
        assert p.dt == 0.05
        assert p.gravity == 9.8

    def test_from_dict_rejects_unknown_keys(self):
        with pytest.raises(InvalidParameterError, match="pole_half_length"):
            PhysicalParameters.from_dict({"pole_half_length": 0.5})


class TestLoading:
    """Tests for JSON parameter files."""

    def test_packaged_file_matches_defaults(self):
        assert DEFAULT_PARAM_PATH.exists()
        assert load_cartpole_params(verbose=False) == PhysicalParameters()

    def test_save_and_load(self, tmp_path):
        p = PhysicalParameters(cart_mass=2.0, angle_threshold=0.5)
        path = save_cartpole_params(p, tmp_path / "nested" / "params.json")
        assert load_cartpole_params(path, verbose=False) == p

    def test_verbose_prints_values(self, tmp_path, capsys):
        path = save_cartpole_params(PhysicalParameters(), tmp_path / "params.json")
        load_cartpole_params(path)
        out = capsys.readouterr().out
        assert "Loaded cart-pole parameters" in out
        assert "max_force = 10.0" in out

    def test_invalid_values_in_file(self, tmp_path):
        path = tmp_path / "params.json"
        path.write_text(json.dumps({"cart_mass": -1.0}))
        with pytest.raises(InvalidParameterError):
            load_cartpole_params(path, verbose=False)

    def test_malformed_json(self, tmp_path):
        path = tmp_path / "params.json"
        path.write_text("{not json")
        with pytest.raises(InvalidParameterError):
            load_cartpole_params(path, verbose=False)

    def test_non_object_json(self, tmp_path):
        path = tmp_path / "params.json"
        path.write_text("[1, 2, 3]")
        with pytest.raises(InvalidParameterError):
            load_cartpole_params(path, verbose=False)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_cartpole_params(tmp_path / "missing.json", verbose=False)
