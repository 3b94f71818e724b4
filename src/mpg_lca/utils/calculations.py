from dataclasses import dataclass
from math import floor
from typing import Optional
from ..constants import (
    VOLUMETRIC_UNIT_MARKERS, DEFAULT_TRANSPORT_DISTANCES, TRANSPORT_DISTANCE_FALLBACK_KM,
    DEFAULT_SERVICE_LIVES, SERVICE_LIFE_FALLBACK_YEARS, DECIMALS
)
from ..exceptions import InvalidInputError
from ..models import Material, LCALayer, LCAElement
import logging

logger = logging.getLogger(__name__)


def f2(x: float) -> str:
    """
    Format a float with a fixed number of decimal places (DECIMALS).
    """
    return f"{x:.{DECIMALS}f}"


def gwp(value: Optional[float]) -> float:
    """Missing GWP figures count as zero."""
    return float(value) if value is not None else 0.0


@dataclass
class UnitHandling:
    """
    How a material's declared unit maps onto a mass in kg.
    """
    is_volumetric: bool
    conversion_factor: float
    density: float


def get_unit_handling(material: Material) -> UnitHandling:
    """
    Inspect the declared unit ("1 kg", "1 m³", "1 m2"...) of a material.
    A missing declared unit is read as "1 kg"; a missing or zero conversion factor as 1.
    """
    declared_unit = (material.declared_unit or "1 kg").lower()
    is_volumetric = any(marker in declared_unit for marker in VOLUMETRIC_UNIT_MARKERS)
    return UnitHandling(
        is_volumetric=is_volumetric,
        conversion_factor=float(material.conversion_to_kg or 1.0),
        density=float(material.density or 0.0),
    )


def apply_unit_conversion(mass_kg: float, gwp_per_declared_unit: float, unit_handling: UnitHandling) -> float:
    """
    Convert a per-declared-unit GWP figure into the impact of mass_kg of material.

    - volumetric declared unit with known density: GWP per kg = GWP / density
    - conversion factor of 1: the declared unit is 1 kg
    - otherwise: mass is expressed in declared units via the conversion factor
    Sign is preserved, so storage and credits stay negative.
    """
    if unit_handling.is_volumetric and unit_handling.density > 0:
        return mass_kg * (gwp_per_declared_unit / unit_handling.density)

    if unit_handling.conversion_factor == 1:
        return mass_kg * gwp_per_declared_unit

    return (mass_kg / unit_handling.conversion_factor) * gwp_per_declared_unit


def effective_density(material: Optional[Material]) -> float:
    """
    Density used for layer mass: density, then bulk density, then 0.
    """
    if material is None:
        return 0.0
    return float(material.density or material.bulk_density or 0.0)


def calculate_layer_mass(element: LCAElement, layer: LCALayer) -> float:
    """
    Mass (kg) of one layer: quantity * thickness * coverage * density.
    A layer without material or density weighs nothing.
    """
    if layer.thickness < 0:
        raise InvalidInputError(f"Layer {layer.id}: thickness must be >= 0, got {layer.thickness}")
    coverage = 1.0 if layer.coverage is None else layer.coverage
    if not 0.0 <= coverage <= 1.0:
        raise InvalidInputError(f"Layer {layer.id}: coverage must be within [0, 1], got {coverage}")

    volume_m3 = element.quantity * layer.thickness * coverage
    return volume_m3 * effective_density(layer.material)


def calculate_replacements(lifespan: float, study_period: float) -> int:
    """
    Number of replacements during the study period, excluding the initial
    installation (already counted in A1-A3): max(0, floor(study / lifespan) - 1).
    """
    if lifespan is None or lifespan <= 0:
        raise InvalidInputError(f"Lifespan must be > 0, got {lifespan}")
    if study_period <= 0:
        return 0
    return max(0, floor(study_period / lifespan) - 1)


def _positive(value: Optional[float]) -> Optional[float]:
    if value is None:
        return None
    value = float(value)
    return value if value > 0 else None


def resolve_transport_distance(material: Material, custom_km: Optional[float] = None) -> float:
    """
    Transport distance priority: layer override, material default,
    category default, global fallback.
    """
    if custom_km is not None and custom_km >= 0:
        return float(custom_km)
    if material.transport_distance is not None and material.transport_distance >= 0:
        return float(material.transport_distance)
    return DEFAULT_TRANSPORT_DISTANCES.get(material.category, TRANSPORT_DISTANCE_FALLBACK_KM)


def resolve_lifespan(material: Material, custom_lifespan: Optional[float] = None) -> float:
    """
    Service life priority: layer override, material RSL, category default, global fallback.
    Non-positive values are treated as missing.
    """
    for candidate in (custom_lifespan, material.reference_service_life):
        value = _positive(candidate)
        if value is not None:
            return value
    return DEFAULT_SERVICE_LIVES.get(material.category, SERVICE_LIFE_FALLBACK_YEARS)
