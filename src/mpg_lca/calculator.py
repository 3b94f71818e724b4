"""
LCA calculation engine: layer -> element -> project aggregation.

compute_project_lca is pure (no I/O). calculate_project_lca composes it with a
ProjectRepository: load the tree, compute, look up the MPG limit and write the
cached totals back. A failed write is logged and the fresh result still returned.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from .audit import CalculationAudit
from .constants import MPG_REFERENCE_VALUES
from .exceptions import InvalidInputError, NotFoundError, PersistenceError
from .models import (
    CachedResults, CalculationSettings, ElementBreakdown, ImpactTotals, LCAElement,
    LCALayer, LCAProject, LCAResult, NormalizedResult, PhaseBreakdown
)
from .operational import calculate_operational_carbon
from .phases import (
    calculate_a1_a3, calculate_a4, calculate_a5, calculate_b4,
    calculate_c1, calculate_c2, calculate_c3, calculate_c4, calculate_d, a5_factor
)
from .repository import ProjectRepository
from .scoring import normalize_results
from .utils.calculations import calculate_layer_mass, effective_density, f2, resolve_transport_distance

logger = logging.getLogger(__name__)


def calculate_layer(
    layer: LCALayer,
    element: LCAElement,
    study_period: float,
    audit: Optional[CalculationAudit] = None,
    verbose: bool = False,
) -> ImpactTotals:
    """
    All phase impacts of one layer. A layer without material contributes nothing.
    """
    material = layer.material
    if material is None:
        logger.warning(f"Layer {layer.id} in element '{element.name}' has no material; counted as zero impact.")
        return ImpactTotals()

    mass = calculate_layer_mass(element, layer)
    if mass == 0 and effective_density(material) == 0:
        logger.warning(f"Material '{material.name}' has no density; layer {layer.id} counted as zero mass.")

    a1_a3 = calculate_a1_a3(mass, material)
    result = ImpactTotals(
        mass_kg=mass,
        a1_a3=a1_a3,
        a4=calculate_a4(mass, material, layer.custom_transport_km),
        a5=calculate_a5(a1_a3, element.category),
        b4=calculate_b4(mass, material, layer.custom_lifespan, study_period),
        c1=calculate_c1(mass, material),
        c2=calculate_c2(mass, material),
        c3=calculate_c3(mass, material),
        c4=calculate_c4(mass, material),
        d=calculate_d(mass, material),
    )

    if verbose:
        logger.debug(f"Layer {layer.position}: {material.name}")
        logger.debug(f"  Mass: {f2(mass)} kg (density {effective_density(material)})")
        logger.debug(
            f"  A1-A3: {f2(result.a1_a3)}, A4: {f2(result.a4)}, A5: {f2(result.a5)}, B4: {f2(result.b4)}"
        )
        logger.debug(
            f"  C1: {f2(result.c1)}, C2: {f2(result.c2)}, C3: {f2(result.c3)}, C4: {f2(result.c4)}, D: {f2(result.d)}"
        )

    if audit is not None:
        context = f"{element.name} / layer {layer.position} ({material.name})"
        audit.log_calculation(
            context=f"{context}: Mass",
            formula="Quantity * Thickness * Coverage * Density",
            variables={
                "Quantity": element.quantity,
                "Thickness_m": layer.thickness,
                "Coverage": layer.coverage,
                "Density": effective_density(material),
            },
            result=mass,
            unit="kg",
        )
        audit.log_calculation(
            context=f"{context}: A4",
            formula="Mass(t) * Distance(km) * EF(mode)",
            variables={
                "Mass_t": round(mass / 1000.0, 6),
                "Distance_km": resolve_transport_distance(material, layer.custom_transport_km),
                "Mode": material.transport_mode or "truck",
            },
            result=result.a4,
            unit="kgCO2e",
        )
        audit.log_calculation(
            context=f"{context}: A5",
            formula="A1-A3 * A5 factor(element category)",
            variables={"A1_A3": a1_a3, "Category": element.category, "Factor": a5_factor(element.category)},
            result=result.a5,
            unit="kgCO2e",
        )
        audit.log_calculation(
            context=f"{context}: Total A-C",
            formula="A1-A3 + A4 + A5 + B4 + C1 + C2 + C3 + C4",
            variables={
                "A1_A3": result.a1_a3, "A4": result.a4, "A5": result.a5, "B4": result.b4,
                "C": result.c, "D_excluded": result.d,
            },
            result=result.total,
            unit="kgCO2e",
        )

    return result


def calculate_element(
    element: LCAElement,
    study_period: float,
    settings: Optional[CalculationSettings] = None,
    audit: Optional[CalculationAudit] = None,
) -> ImpactTotals:
    """
    Sum the layer impacts of one element. The element total excludes module D.
    """
    verbose = settings.verbose if settings else False
    totals = ImpactTotals()
    for layer in sorted(element.layers, key=lambda l: l.position):
        totals.add(calculate_layer(layer, element, study_period, audit=audit, verbose=verbose))

    if verbose:
        logger.debug(f"=== Element: {element.name} ({element.category}) ===")
        logger.debug(
            f"  A1-A3: {f2(totals.a1_a3)}, A4: {f2(totals.a4)}, A5: {f2(totals.a5)}, "
            f"B4: {f2(totals.b4)}, C: {f2(totals.c)}, D: {f2(totals.d)}, Total: {f2(totals.total)}"
        )
    return totals


def validate_project(project: LCAProject) -> None:
    if project.gross_floor_area is None or project.gross_floor_area <= 0:
        raise InvalidInputError(f"Project {project.id}: gross_floor_area must be > 0, got {project.gross_floor_area}")
    if project.study_period is None or project.study_period <= 0:
        raise InvalidInputError(f"Project {project.id}: study_period must be > 0, got {project.study_period}")


def compute_project_lca(
    project: LCAProject,
    settings: Optional[CalculationSettings] = None,
    audit: Optional[CalculationAudit] = None,
) -> NormalizedResult:
    """
    Aggregate all elements of a project into phase totals, an element breakdown
    with percentages of the A-C total, and per-m2 / per-m2-per-year figures.
    """
    settings = settings or CalculationSettings()
    validate_project(project)

    totals = ImpactTotals()
    breakdown = []
    for element in project.elements:
        element_totals = calculate_element(element, project.study_period, settings, audit)
        totals.add(element_totals)
        breakdown.append(ElementBreakdown(
            element_id=element.id,
            element_name=element.name,
            total_impact=element_totals.total,
        ))

    total_a_to_c = totals.total
    for entry in breakdown:
        entry.percentage = entry.total_impact / total_a_to_c * 100.0 if total_a_to_c > 0 else 0.0

    result = LCAResult(
        a1_a3=totals.a1_a3,
        a4=totals.a4,
        a5=totals.a5,
        b4=totals.b4,
        c1_c2=totals.c1 + totals.c2,
        c3=totals.c3,
        c4=totals.c4,
        d=totals.d,
        total_a_to_c=total_a_to_c,
        total_with_d=total_a_to_c + totals.d,
        breakdown_by_element=breakdown,
        breakdown_by_phase=PhaseBreakdown(
            production=totals.a1_a3,
            transport=totals.a4,
            construction=totals.a5,
            use_replacement=totals.b4,
            end_of_life=totals.c,
            benefits=totals.d,
        ),
    )
    normalized = normalize_results(result, project.gross_floor_area, project.study_period)

    if settings.verbose:
        logger.debug(
            f"=== Project {project.id}: A-C {f2(total_a_to_c)} kgCO2e, "
            f"{f2(normalized.per_m2_per_year)} kgCO2e/m2/year ==="
        )
    return normalized


def resolve_mpg_reference(
    building_type: str,
    repository: Optional[ProjectRepository] = None,
    settings: Optional[CalculationSettings] = None,
) -> float:
    """
    MPG limit for a building type: store value, then built-in table, then settings default.
    """
    settings = settings or CalculationSettings()
    value = repository.get_mpg_reference_value(building_type) if repository is not None else None
    if value is None:
        value = MPG_REFERENCE_VALUES.get(building_type)
    if value is None:
        logger.warning(
            f"No MPG reference value for building type '{building_type}'; "
            f"using {settings.mpg_reference_default}."
        )
        value = settings.mpg_reference_default
    return float(value)


def build_cached_results(
    result: NormalizedResult,
    project: LCAProject,
    mpg_reference_value: float,
) -> CachedResults:
    """
    Project fields derived from a result. total_gwp_c is the exact C1-C4 sum.
    """
    operational = calculate_operational_carbon(project)
    return CachedResults(
        total_gwp_a1_a3=result.a1_a3,
        total_gwp_a4=result.a4,
        total_gwp_a5=result.a5,
        total_gwp_b4=result.b4,
        total_gwp_c=result.breakdown_by_phase.end_of_life,
        total_gwp_d=result.d,
        total_gwp_sum=result.total_a_to_c,
        total_gwp_per_m2_year=result.per_m2_per_year,
        operational_carbon=operational,
        total_carbon=result.per_m2_per_year + operational / project.study_period,
        mpg_reference_value=mpg_reference_value,
        is_compliant=result.per_m2_per_year <= mpg_reference_value,
    )


@dataclass
class ProjectCalculation:
    project: LCAProject
    result: NormalizedResult
    cached: CachedResults
    persisted: bool


def run_project_calculation(
    project_id: str,
    repository: ProjectRepository,
    settings: Optional[CalculationSettings] = None,
    persist: bool = True,
) -> ProjectCalculation:
    """
    Load, compute and (optionally) cache the results of one project.
    Raises NotFoundError for an unknown id and InvalidInputError for a
    non-computable project; a failed cache write is logged, not raised.
    """
    settings = settings or CalculationSettings()
    project = repository.load_project(project_id)
    logger.info(f"Calculating LCA for project '{project.name}' ({len(project.elements)} elements)")

    audit = CalculationAudit(settings.audit_log_path) if settings.audit_log_path else None
    result = compute_project_lca(project, settings, audit)
    mpg_reference = resolve_mpg_reference(project.building_type, repository, settings)
    cached = build_cached_results(result, project, mpg_reference)

    persisted = False
    if persist:
        try:
            repository.save_results(project_id, cached)
            persisted = True
        except (PersistenceError, NotFoundError):
            logger.exception(f"Could not cache LCA results for project {project_id}")

    return ProjectCalculation(project=project, result=result, cached=cached, persisted=persisted)


def calculate_project_lca(
    project_id: str,
    repository: ProjectRepository,
    settings: Optional[CalculationSettings] = None,
) -> NormalizedResult:
    """
    Calculate a project and cache its totals on the project record.
    """
    return run_project_calculation(project_id, repository, settings).result
