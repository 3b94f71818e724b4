"""
EN 15804 phase calculators for a single material layer.

Every function is pure: it takes the layer mass (kg) and the material record and
returns kg CO2-eq. All per-declared-unit factors go through apply_unit_conversion
so each phase interprets the declared unit identically.
"""
import logging
from typing import Optional

from .constants import (
    TRANSPORT_EMISSION_FACTORS, DEFAULT_TRANSPORT_MODE, A5_FACTORS, A5_FACTOR_DEFAULT
)
from .models import Material
from .utils.calculations import (
    apply_unit_conversion, get_unit_handling, gwp, resolve_transport_distance,
    resolve_lifespan, calculate_replacements
)

logger = logging.getLogger(__name__)


def _per_declared_unit(mass_kg: float, material: Material, value: Optional[float]) -> float:
    return apply_unit_conversion(mass_kg, gwp(value), get_unit_handling(material))


def calculate_a1_a3(mass_kg: float, material: Material) -> float:
    """Production. Negative for materials storing biogenic carbon."""
    return _per_declared_unit(mass_kg, material, material.gwp_a1_a3)


def transport_emission_factor(mode: Optional[str]) -> float:
    """kg CO2-eq per tonne-km; unknown or missing modes use truck."""
    if mode and mode in TRANSPORT_EMISSION_FACTORS:
        return TRANSPORT_EMISSION_FACTORS[mode]
    if mode:
        logger.warning(f"Unknown transport mode '{mode}', using {DEFAULT_TRANSPORT_MODE}.")
    return TRANSPORT_EMISSION_FACTORS[DEFAULT_TRANSPORT_MODE]


def calculate_a4(mass_kg: float, material: Material, custom_transport_km: Optional[float] = None) -> float:
    """
    Transport to site: tonnes * km * emission factor of the transport mode.
    """
    distance_km = resolve_transport_distance(material, custom_transport_km)
    factor = transport_emission_factor(material.transport_mode)
    return (mass_kg / 1000.0) * distance_km * factor


def a5_factor(element_category: Optional[str]) -> float:
    return A5_FACTORS.get(element_category or "", A5_FACTOR_DEFAULT)


def calculate_a5(a1_a3_impact: float, element_category: Optional[str]) -> float:
    """
    Construction: a share of the A1-A3 impact, keyed by the element (not material) category.
    """
    return a1_a3_impact * a5_factor(element_category)


def calculate_b4(
    mass_kg: float,
    material: Material,
    custom_lifespan: Optional[float],
    study_period: float,
) -> float:
    """
    Replacement: one extra production impact per replacement within the study period.
    """
    lifespan = resolve_lifespan(material, custom_lifespan)
    replacements = calculate_replacements(lifespan, study_period)
    if replacements == 0:
        return 0.0
    return replacements * calculate_a1_a3(mass_kg, material)


def calculate_c1(mass_kg: float, material: Material) -> float:
    """Deconstruction / demolition."""
    return _per_declared_unit(mass_kg, material, material.gwp_c1)


def calculate_c2(mass_kg: float, material: Material) -> float:
    """Transport to waste processing."""
    return _per_declared_unit(mass_kg, material, material.gwp_c2)


def calculate_c3(mass_kg: float, material: Material) -> float:
    """Waste processing. Incineration releases stored biogenic carbon here."""
    return _per_declared_unit(mass_kg, material, material.gwp_c3)


def calculate_c4(mass_kg: float, material: Material) -> float:
    """Disposal."""
    return _per_declared_unit(mass_kg, material, material.gwp_c4)


def calculate_c(mass_kg: float, material: Material) -> float:
    """End of life, C1 + C2 + C3 + C4."""
    return (
        calculate_c1(mass_kg, material)
        + calculate_c2(mass_kg, material)
        + calculate_c3(mass_kg, material)
        + calculate_c4(mass_kg, material)
    )


def calculate_d(mass_kg: float, material: Material) -> float:
    """Benefits beyond the system boundary. Reported separately, never in the A-C total."""
    return _per_declared_unit(mass_kg, material, material.gwp_d)
