import pytest

from mpg_lca.exceptions import InvalidInputError
from mpg_lca.models import LCAProject
from mpg_lca.operational import calculate_operational_carbon


def _project(**kwargs):
    return LCAProject(id="p", name="Test", gross_floor_area=kwargs.pop("gross_floor_area", 100.0), **kwargs)


def test_energy_label_lookup():
    assert calculate_operational_carbon(_project(energy_label="A")) == 25.0
    assert calculate_operational_carbon(_project(energy_label=" a+ ")) == 18.0
    assert calculate_operational_carbon(_project(energy_label="A++++")) == 5.0


def test_unknown_energy_label_is_conservative():
    assert calculate_operational_carbon(_project(energy_label="G")) == 30.0


def test_label_takes_precedence_over_metered_use():
    project = _project(energy_label="B", annual_gas_use=1000.0, annual_electricity=3000.0)
    assert calculate_operational_carbon(project) == 35.0


def test_metered_energy_per_m2():
    # (1000 m3 * 1.884 + 3000 kWh * 0.475) / 100 m2
    project = _project(annual_gas_use=1000.0, annual_electricity=3000.0)
    assert calculate_operational_carbon(project) == pytest.approx(33.09)


def test_partial_metering_uses_default():
    assert calculate_operational_carbon(_project(annual_gas_use=1000.0)) == 25.0
    assert calculate_operational_carbon(_project()) == 25.0


def test_metered_energy_needs_floor_area():
    project = _project(gross_floor_area=0.0, annual_gas_use=1000.0, annual_electricity=3000.0)
    with pytest.raises(InvalidInputError):
        calculate_operational_carbon(project)
