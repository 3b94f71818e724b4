from typing import Any, Dict, List, Literal
from .config import load_excel_config

# ============================================================================
# SETTINGS & CONSTANTS
# ============================================================================

# Built-in values follow EN 15804 / MPG Bepalingsmethode 2024 defaults.
# Any of them can be overridden by the parameter workbook (see config.py).
_config = load_excel_config()

_PARAMETERS: List[Dict[str, Any]] = []


def _get(key: str, default, unit: str = "-", section: str = "", description: str = ""):
    """
    Fetch a parameter from the workbook, falling back to the built-in default.
    The value is coerced to the type of the default.
    """
    value = _config.get(key, default)
    if isinstance(default, bool):
        value = str(value).strip().lower() in ("1", "true", "yes")
    elif isinstance(default, int):
        value = int(value)
    elif isinstance(default, float):
        value = float(value)

    _PARAMETERS.append({
        "Key": key,
        "Value": value,
        "Unit": unit,
        "Section": section,
        "Description": description,
    })
    return value


def _table(prefix: str, defaults: Dict[str, float], unit: str, section: str, description: str) -> Dict[str, float]:
    return {
        name: _get(f"{prefix}_{name.upper()}", value, unit, section, f"{description}: {name}")
        for name, value in defaults.items()
    }


def parameter_rows() -> List[Dict[str, Any]]:
    """Rows for the parameter workbook template (effective values)."""
    return [dict(row) for row in _PARAMETERS]


# Transport (A4)
TRANSPORT_EMISSION_FACTORS = _table(
    "TRANSPORT_EF",
    {"truck": 0.062, "train": 0.022, "ship": 0.008, "combined": 0.050},
    "kgCO2e/tkm", "1. Transport (A4)", "Emission factor per tonne-km",
)
DEFAULT_TRANSPORT_DISTANCES = _table(
    "TRANSPORT_KM",
    {
        "concrete": 50.0,
        "masonry": 50.0,
        "timber": 200.0,
        "metal": 500.0,
        "insulation": 500.0,
        "glass": 500.0,
        "finishes": 200.0,
    },
    "km", "1. Transport (A4)", "Default transport distance by material category",
)
TRANSPORT_DISTANCE_FALLBACK_KM = _get(
    "TRANSPORT_DISTANCE_FALLBACK_KM", 300.0, "km", "1. Transport (A4)",
    "Distance used when neither layer, material nor category provides one.",
)
DEFAULT_TRANSPORT_MODE = "truck"

# Construction (A5)
A5_FACTORS = _table(
    "A5_FACTOR",
    {
        "exterior_wall": 0.05,
        "interior_wall": 0.03,
        "floor": 0.04,
        "roof": 0.06,
        "foundation": 0.08,
        "windows": 0.02,
        "doors": 0.02,
        "mep": 0.10,
        "finishes": 0.03,
        "other": 0.05,
    },
    "fraction of A1-A3", "2. Construction (A5)", "Construction impact share by element category",
)
A5_FACTOR_DEFAULT = _get(
    "A5_FACTOR_DEFAULT", 0.05, "fraction of A1-A3", "2. Construction (A5)",
    "Share used for unrecognised element categories.",
)

# Replacement (B4)
DEFAULT_SERVICE_LIVES = _table(
    "SERVICE_LIFE",
    {
        "concrete": 100.0,
        "timber": 75.0,
        "masonry": 100.0,
        "metal": 75.0,
        "insulation": 50.0,
        "glass": 30.0,
        "finishes": 25.0,
    },
    "years", "3. Replacement (B4)", "Default reference service life by material category",
)
SERVICE_LIFE_FALLBACK_YEARS = _get(
    "SERVICE_LIFE_FALLBACK_YEARS", 50.0, "years", "3. Replacement (B4)",
    "Service life used when neither layer, material nor category provides one.",
)

# Operational carbon (B6)
OPERATIONAL_CARBON_BY_LABEL = _table(
    "OPERATIONAL_CARBON",
    {
        "A++++": 5.0,
        "A+++": 8.0,
        "A++": 12.0,
        "A+": 18.0,
        "A": 25.0,
        "B": 35.0,
        "C": 45.0,
        "D": 55.0,
    },
    "kgCO2e/m2/year", "4. Operational (B6)", "Operational carbon by energy label",
)
OPERATIONAL_CARBON_UNKNOWN_LABEL = _get(
    "OPERATIONAL_CARBON_UNKNOWN_LABEL", 30.0, "kgCO2e/m2/year", "4. Operational (B6)",
    "Operational carbon for an energy label missing from the table.",
)
OPERATIONAL_CARBON_DEFAULT = _get(
    "OPERATIONAL_CARBON_DEFAULT", 25.0, "kgCO2e/m2/year", "4. Operational (B6)",
    "Operational carbon when neither label nor metered use is known.",
)
GAS_EMISSION_FACTOR = _get(
    "GAS_EMISSION_FACTOR", 1.884, "kgCO2e/m3", "4. Operational (B6)",
    "Natural gas combustion emission factor.",
)
ELECTRICITY_EMISSION_FACTOR = _get(
    "ELECTRICITY_EMISSION_FACTOR", 0.475, "kgCO2e/kWh", "4. Operational (B6)",
    "Grid electricity emission factor.",
)

# Compliance (MPG)
MPG_REFERENCE_VALUES = _table(
    "MPG_LIMIT",
    {
        "woningbouw": 0.8,
        "vrijstaand": 0.8,
        "rijwoning": 0.8,
        "appartement": 0.8,
        "utiliteitsbouw": 0.5,
    },
    "kgCO2e/m2/year", "5. Compliance (MPG)", "MPG limit by building type",
)
DEFAULT_STUDY_PERIOD = _get(
    "DEFAULT_STUDY_PERIOD", 75, "years", "5. Compliance (MPG)",
    "Study period applied to new projects.",
)

# Reporting
DECIMALS = _get("DECIMALS", 2, "Integer", "6. Reporting", "Decimal places used in printed summaries.")

VOLUMETRIC_UNIT_MARKERS = ("m3", "m³", "m2", "m²")

# ============================================================================
# TYPES (Code constructs, not workbook parameters)
# ============================================================================

ElementCategory = Literal[
    "exterior_wall", "interior_wall", "floor", "roof", "foundation",
    "windows", "doors", "mep", "finishes", "other",
]
MaterialCategory = Literal[
    "insulation", "concrete", "timber", "masonry", "metal",
    "glass", "finishes", "roofing", "hvac", "other",
]
TransportMode = Literal["truck", "train", "ship", "combined"]
EnergyLabel = Literal["A++++", "A+++", "A++", "A+", "A", "B", "C", "D"]
BuildingType = Literal[
    "woningbouw", "vrijstaand", "twee_onder_een_kap", "rijwoning", "appartement", "utiliteitsbouw", "custom",
]
EOLScenario = Literal["recycling", "incineration", "landfill", "reuse"]
ScoreDirection = Literal["positive", "negative"]
ComparisonType = Literal["relatief", "absoluut"]
