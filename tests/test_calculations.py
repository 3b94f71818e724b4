import pytest

from mpg_lca.exceptions import InvalidInputError
from mpg_lca.models import Material, LCALayer, LCAElement
from mpg_lca.utils.calculations import (
    get_unit_handling, apply_unit_conversion, effective_density, calculate_layer_mass,
    calculate_replacements, resolve_transport_distance, resolve_lifespan, gwp, f2
)

from conftest import concrete, timber


def _element(quantity=100.0):
    return LCAElement(id="e", name="Wall", category="exterior_wall", quantity=quantity)


def test_volumetric_unit_detection():
    assert get_unit_handling(Material(id="a", name="a", declared_unit="1 m³")).is_volumetric
    assert get_unit_handling(Material(id="b", name="b", declared_unit="1 M3")).is_volumetric
    assert get_unit_handling(Material(id="c", name="c", declared_unit="1 m2")).is_volumetric
    assert not get_unit_handling(Material(id="d", name="d", declared_unit="1 kg")).is_volumetric
    # Missing declared unit reads as 1 kg
    handling = get_unit_handling(Material(id="e", name="e", declared_unit=None, conversion_to_kg=None))
    assert not handling.is_volumetric
    assert handling.conversion_factor == 1.0


def test_volumetric_conversion_returns_declared_value_for_one_unit():
    # 1 m3 of concrete weighs 2400 kg and carries exactly its declared 240 kg CO2e
    handling = get_unit_handling(concrete())
    assert apply_unit_conversion(2400.0, 240.0, handling) == pytest.approx(240.0)


def test_per_kg_conversion():
    handling = get_unit_handling(timber())
    assert apply_unit_conversion(10.0, 2.0, handling) == pytest.approx(20.0)


def test_conversion_factor_other_than_one():
    # Declared per tonne: 500 kg is half a declared unit
    material = Material(id="steel", name="Steel", declared_unit="1 t", conversion_to_kg=1000.0)
    assert apply_unit_conversion(500.0, 100.0, get_unit_handling(material)) == pytest.approx(50.0)


def test_volumetric_without_density_falls_back_to_mass_basis():
    material = Material(id="x", name="x", declared_unit="1 m3", density=None)
    assert apply_unit_conversion(10.0, 3.0, get_unit_handling(material)) == pytest.approx(30.0)


def test_conversion_preserves_sign():
    handling = get_unit_handling(timber())
    assert apply_unit_conversion(100.0, -1.5, handling) == pytest.approx(-150.0)
    assert apply_unit_conversion(0.0, -1.5, handling) == 0.0


def test_effective_density_fallbacks():
    assert effective_density(concrete()) == 2400.0
    assert effective_density(Material(id="a", name="loose fill", bulk_density=30.0)) == 30.0
    assert effective_density(Material(id="b", name="no density")) == 0.0
    assert effective_density(None) == 0.0


def test_layer_mass():
    # 100 m2 * 0.2 m * 0.5 coverage * 2400 kg/m3
    layer = LCALayer(id="l", material_id="m-concrete", thickness=0.2, coverage=0.5, material=concrete())
    assert calculate_layer_mass(_element(), layer) == pytest.approx(24000.0)


def test_layer_mass_missing_coverage_means_full():
    layer = LCALayer(id="l", material_id="m-timber", thickness=0.1, coverage=None, material=timber())
    assert calculate_layer_mass(_element(10.0), layer) == pytest.approx(500.0)


def test_layer_mass_without_material_or_density_is_zero():
    assert calculate_layer_mass(_element(), LCALayer(id="l", material_id="?", thickness=0.1)) == 0.0
    layer = LCALayer(id="l", material_id="x", thickness=0.1, material=Material(id="x", name="x"))
    assert calculate_layer_mass(_element(), layer) == 0.0


def test_layer_mass_rejects_invalid_geometry():
    with pytest.raises(InvalidInputError):
        calculate_layer_mass(_element(), LCALayer(id="l", material_id="m", thickness=-0.1, material=timber()))
    with pytest.raises(InvalidInputError):
        calculate_layer_mass(_element(), LCALayer(id="l", material_id="m", thickness=0.1, coverage=1.5,
                                                  material=timber()))


@pytest.mark.parametrize("lifespan, study_period, expected", [
    (30, 75, 1),
    (25, 75, 2),
    (75, 75, 0),
    (100, 75, 0),
    (10, 75, 6),
    (30, 0, 0),
])
def test_replacements(lifespan, study_period, expected):
    assert calculate_replacements(lifespan, study_period) == expected


def test_replacements_never_increase_with_longer_lifespan():
    counts = [calculate_replacements(lifespan, 75) for lifespan in range(1, 120)]
    assert all(a >= b for a, b in zip(counts, counts[1:]))
    assert min(counts) == 0


def test_replacements_reject_non_positive_lifespan():
    with pytest.raises(InvalidInputError):
        calculate_replacements(0, 75)
    with pytest.raises(InvalidInputError):
        calculate_replacements(-10, 75)


def test_transport_distance_priority():
    material = timber()
    assert resolve_transport_distance(material, 35.0) == 35.0
    # An explicit zero is a real distance, not a missing one
    assert resolve_transport_distance(material, 0.0) == 0.0
    assert resolve_transport_distance(material) == 200.0
    material.transport_distance = 120.0
    assert resolve_transport_distance(material) == 120.0
    assert resolve_transport_distance(Material(id="r", name="Bitumen", category="roofing")) == 300.0


def test_lifespan_priority():
    material = timber()
    assert resolve_lifespan(material, 40.0) == 40.0
    assert resolve_lifespan(material) == 30.0
    # Non-positive values count as missing
    assert resolve_lifespan(material, 0.0) == 30.0
    material.reference_service_life = None
    assert resolve_lifespan(material) == 75.0
    assert resolve_lifespan(Material(id="i", name="EPS", category="insulation")) == 50.0
    assert resolve_lifespan(Material(id="h", name="Heat pump", category="hvac")) == 50.0


def test_missing_gwp_is_zero():
    assert gwp(None) == 0.0
    assert gwp(-2) == -2.0


def test_f2_formatting():
    assert f2(12.5) == "12.50"
    assert f2(3) == "3.00"


def test_replacements_never_decrease_with_longer_study_period():
    counts = [calculate_replacements(30, study_period) for study_period in range(0, 200, 5)]
    assert all(a <= b for a, b in zip(counts, counts[1:]))
