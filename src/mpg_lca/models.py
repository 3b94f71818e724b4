from dataclasses import dataclass, field, asdict
from datetime import datetime
from typing import List, Optional, Dict, Any
from .constants import (
    ScoreDirection, ComparisonType, ElementCategory, MaterialCategory, TransportMode,
    EnergyLabel, BuildingType, EOLScenario, DEFAULT_STUDY_PERIOD
)


@dataclass
class Material:
    """
    EPD reference data for a construction material.
    All gwp_* figures are kg CO2-eq per declared unit and may be negative
    (biogenic storage, recycling credit).
    """
    id: str
    name: str
    category: MaterialCategory = "other"
    subcategory: Optional[str] = None
    declared_unit: str = "1 kg"
    conversion_to_kg: float = 1.0
    density: Optional[float] = None          # kg/m3
    bulk_density: Optional[float] = None     # kg/m3, loose fill
    gwp_a1_a3: Optional[float] = 0.0
    gwp_a4: Optional[float] = None
    gwp_a5: Optional[float] = None
    gwp_c1: Optional[float] = None
    gwp_c2: Optional[float] = None
    gwp_c3: Optional[float] = None
    gwp_c4: Optional[float] = None
    gwp_d: Optional[float] = None
    biogenic_carbon: Optional[float] = None
    reference_service_life: Optional[float] = None   # years
    transport_distance: Optional[float] = None       # km
    transport_mode: Optional[TransportMode] = None
    quality_rating: int = 3
    oekobaudat_uuid: Optional[str] = None
    oekobaudat_version: Optional[str] = None


@dataclass
class LCALayer:
    """
    One material layer of a building element. Custom values override the material defaults.
    """
    id: str
    material_id: Optional[str]
    thickness: float                  # m
    position: int = 0
    coverage: float = 1.0             # fraction 0-1
    element_id: Optional[str] = None
    custom_lifespan: Optional[float] = None
    custom_transport_km: Optional[float] = None
    custom_eol_scenario: Optional[EOLScenario] = None
    material: Optional[Material] = None


@dataclass
class LCAElement:
    """
    A building element (wall, floor, roof...). The category drives the A5 factor;
    quantity (area or length) times layer thickness and coverage gives layer volume.
    """
    id: str
    name: str
    category: ElementCategory
    quantity: float
    quantity_unit: str = "m2"
    project_id: Optional[str] = None
    sfb_code: Optional[str] = None
    layers: List[LCALayer] = field(default_factory=list)


@dataclass
class CachedResults:
    """
    Derived totals stored on the project record by the last calculation.
    """
    total_gwp_a1_a3: float
    total_gwp_a4: float
    total_gwp_a5: float
    total_gwp_b4: float
    total_gwp_c: float
    total_gwp_d: float
    total_gwp_sum: float
    total_gwp_per_m2_year: float
    operational_carbon: float
    total_carbon: float
    mpg_reference_value: float
    is_compliant: bool

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class LCAProject:
    """
    Aggregate root: building parameters, element tree and cached calculation outputs.
    """
    id: str
    name: str
    gross_floor_area: float          # m2 GFA
    study_period: int = DEFAULT_STUDY_PERIOD   # years
    building_type: BuildingType = "vrijstaand"
    construction_system: Optional[str] = None
    energy_label: Optional[EnergyLabel] = None
    annual_gas_use: Optional[float] = None          # m3/year
    annual_electricity: Optional[float] = None      # kWh/year
    elements: List[LCAElement] = field(default_factory=list)
    cached: Optional[CachedResults] = None
    updated_at: Optional[datetime] = None


@dataclass
class ImpactTotals:
    """
    Phase impacts (kg CO2-eq) for a layer or an accumulated element.
    C is kept as its four sub-stages; D is never part of total.
    """
    mass_kg: float = 0.0
    a1_a3: float = 0.0
    a4: float = 0.0
    a5: float = 0.0
    b4: float = 0.0
    c1: float = 0.0
    c2: float = 0.0
    c3: float = 0.0
    c4: float = 0.0
    d: float = 0.0

    @property
    def c(self) -> float:
        return self.c1 + self.c2 + self.c3 + self.c4

    @property
    def total(self) -> float:
        return self.a1_a3 + self.a4 + self.a5 + self.b4 + self.c

    def add(self, other: "ImpactTotals") -> None:
        self.mass_kg += other.mass_kg
        self.a1_a3 += other.a1_a3
        self.a4 += other.a4
        self.a5 += other.a5
        self.b4 += other.b4
        self.c1 += other.c1
        self.c2 += other.c2
        self.c3 += other.c3
        self.c4 += other.c4
        self.d += other.d


@dataclass
class ElementBreakdown:
    element_id: str
    element_name: str
    total_impact: float
    percentage: float = 0.0


@dataclass
class PhaseBreakdown:
    production: float         # A1-A3
    transport: float          # A4
    construction: float       # A5
    use_replacement: float    # B4
    end_of_life: float        # C1-C4
    benefits: float           # D


@dataclass
class LCAResult:
    """
    Project-level result. total_a_to_c excludes module D; total_with_d adds it back.
    """
    a1_a3: float
    a4: float
    a5: float
    b4: float
    c1_c2: float
    c3: float
    c4: float
    d: float
    total_a_to_c: float
    total_with_d: float
    breakdown_by_element: List[ElementBreakdown]
    breakdown_by_phase: PhaseBreakdown

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class NormalizedResult(LCAResult):
    per_m2: float
    per_m2_per_year: float


@dataclass
class ScoringConfig:
    """
    Comparison settings for calculate_score.
    direction 'negative' means lower is better.
    """
    base_value: Optional[float]
    direction: ScoreDirection = "negative"
    margin: float = 0.2
    comparison_type: ComparisonType = "absoluut"


@dataclass
class CalculationSettings:
    """
    Options for a calculation run:
    - verbose: log per-layer and per-element intermediate values at DEBUG level
    - audit_log_path: write a formula-level audit report to this file
    - mpg_reference_default: MPG limit used when no reference exists for the building type
    """
    verbose: bool = False
    audit_log_path: Optional[str] = None
    mpg_reference_default: float = 0.0


@dataclass
class BenchmarkStats:
    count: int
    min_gwp: float
    max_gwp: float
    avg_gwp: float
    median_gwp: float
    p25: float
    p75: float
    p90: float


@dataclass
class MaterialBenchmark:
    """
    A1-A3 statistics for one material category plus lower-carbon alternatives.
    """
    category: MaterialCategory
    stats: BenchmarkStats
    current_material_gwp: Optional[float]
    alternatives: List[Material]
