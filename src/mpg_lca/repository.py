"""
Project stores used by calculate_project_lca.

The engine only needs four operations from a store: load a project tree, write
the cached results back, look up an MPG reference value and list materials.
"""
import copy
import logging
import math
from dataclasses import fields
from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional

import pandas as pd
from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from . import constants
from .exceptions import InvalidInputError, NotFoundError, PersistenceError, RepositoryError
from .models import CachedResults, LCAElement, LCALayer, LCAProject, Material

logger = logging.getLogger(__name__)


class ProjectRepository:
    """Interface of a project store."""

    def load_project(self, project_id: str) -> LCAProject:
        """Return the full project -> elements -> layers -> material tree or raise NotFoundError."""
        raise NotImplementedError

    def save_results(self, project_id: str, results: CachedResults) -> None:
        raise NotImplementedError

    def get_mpg_reference_value(self, building_type: str) -> Optional[float]:
        raise NotImplementedError

    def list_materials(self) -> List[Material]:
        raise NotImplementedError


# ---------------------------------------------------------------------------
# In-memory store
# ---------------------------------------------------------------------------

class InMemoryProjectRepository(ProjectRepository):
    """
    Dict-backed store. Layers are linked to materials by material_id when loaded;
    an unknown material_id leaves layer.material as None.
    """

    def __init__(
        self,
        projects: Iterable[LCAProject] = (),
        materials: Iterable[Material] = (),
        reference_values: Optional[Mapping[str, float]] = None,
    ):
        self.projects: Dict[str, LCAProject] = {p.id: p for p in projects}
        self.materials: Dict[str, Material] = {m.id: m for m in materials}
        self.reference_values: Dict[str, float] = dict(reference_values or {})

    def add_project(self, project: LCAProject) -> None:
        self.projects[project.id] = project

    def add_material(self, material: Material) -> None:
        self.materials[material.id] = material

    def load_project(self, project_id: str) -> LCAProject:
        if project_id not in self.projects:
            raise NotFoundError("Project", project_id)

        # Work on a snapshot so the calculation sees one consistent tree.
        project = copy.deepcopy(self.projects[project_id])
        for element in project.elements:
            element.project_id = project.id
            for layer in element.layers:
                layer.element_id = element.id
                if layer.material is None:
                    layer.material = copy.deepcopy(self.materials.get(layer.material_id))
            element.layers.sort(key=lambda l: l.position)
        return project

    def save_results(self, project_id: str, results: CachedResults) -> None:
        if project_id not in self.projects:
            raise NotFoundError("Project", project_id)
        stored = self.projects[project_id]
        stored.cached = results
        stored.updated_at = datetime.now()

    def get_mpg_reference_value(self, building_type: str) -> Optional[float]:
        return self.reference_values.get(building_type)

    def list_materials(self) -> List[Material]:
        return list(self.materials.values())


# ---------------------------------------------------------------------------
# Excel workbook store
# ---------------------------------------------------------------------------

def _clean(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, float) and math.isnan(value):
        return None
    if hasattr(value, "item"):  # numpy scalar
        value = value.item()
    return value


def _as_id(value: Any) -> Optional[str]:
    value = _clean(value)
    if value is None:
        return None
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def _records(df: pd.DataFrame) -> List[Dict[str, Any]]:
    return [{k: _clean(v) for k, v in row.items()} for row in df.to_dict(orient="records")]


def _build(cls, record: Dict[str, Any], id_fields: Iterable[str] = (), keep: Iterable[str] = ()):
    """Dataclass from a sheet record; blank cells fall back to field defaults unless listed in keep."""
    names = {f.name for f in fields(cls)}
    kwargs = {k: v for k, v in record.items() if k in names and (v is not None or k in keep)}
    for name in id_fields:
        if name in kwargs:
            kwargs[name] = _as_id(kwargs[name])
    return cls(**kwargs)


def _require(record: Dict[str, Any], sheet: str, row_number: int, names: Iterable[str]) -> None:
    blank = [name for name in names if record.get(name) is None]
    if blank:
        raise InvalidInputError(f"Sheet '{sheet}' row {row_number}: missing {', '.join(blank)}")


class WorkbookProjectRepository(InMemoryProjectRepository):
    """
    Store read from an Excel workbook with sheets 'projects', 'elements', 'layers',
    'materials' and optionally 'reference_values' (building_type, mpg_limit).
    Column names follow the dataclass field names. Results are cached in memory only.

    Blank identifying fields (and a blank floor area or element quantity) raise
    InvalidInputError with the sheet and Excel row. A blank layer material_id keeps
    the layer without material; a blank thickness counts as 0 m; a blank
    study_period takes DEFAULT_STUDY_PERIOD.
    """

    REQUIRED_SHEETS = ("projects", "elements", "layers", "materials")
    REQUIRED_FIELDS = {
        "materials": ("id", "name"),
        "projects": ("id", "name", "gross_floor_area"),
        "elements": ("id", "project_id", "name", "category", "quantity"),
        "layers": ("id", "element_id"),
    }

    def __init__(self, path: str):
        super().__init__()
        self.path = path
        sheets = pd.read_excel(path, sheet_name=None)
        missing = [s for s in self.REQUIRED_SHEETS if s not in sheets]
        if missing:
            raise InvalidInputError(f"Workbook {path} is missing sheet(s): {', '.join(missing)}")

        for row_number, record in self._rows(sheets, "materials"):
            self.add_material(_build(Material, record, id_fields=("id",)))

        for row_number, record in self._rows(sheets, "projects"):
            project = _build(LCAProject, record, id_fields=("id",))
            study_period = record.get("study_period")
            project.study_period = int(constants.DEFAULT_STUDY_PERIOD if study_period is None else study_period)
            self.add_project(project)

        elements: Dict[str, LCAElement] = {}
        for row_number, record in self._rows(sheets, "elements"):
            element = _build(LCAElement, record, id_fields=("id", "project_id"))
            if element.project_id not in self.projects:
                logger.warning(f"Element {element.id} references unknown project {element.project_id}; skipped.")
                continue
            self.projects[element.project_id].elements.append(element)
            elements[element.id] = element

        for row_number, record in self._rows(sheets, "layers"):
            layer = _build(
                LCALayer,
                dict(
                    record,
                    material_id=_as_id(record.get("material_id")),
                    thickness=record.get("thickness") or 0.0,
                    position=int(record.get("position") or 0),
                ),
                id_fields=("id", "element_id"),
                keep=("material_id",),
            )
            if layer.element_id not in elements:
                logger.warning(f"Layer {layer.id} references unknown element {layer.element_id}; skipped.")
                continue
            if layer.material_id is None:
                logger.warning(f"Layer {layer.id} (sheet 'layers' row {row_number}) has no material_id.")
            elements[layer.element_id].layers.append(layer)

        if "reference_values" in sheets:
            for record in _records(sheets["reference_values"]):
                if record.get("building_type") and record.get("mpg_limit") is not None:
                    self.reference_values[str(record["building_type"])] = float(record["mpg_limit"])

        logger.info(
            f"Loaded {len(self.projects)} project(s), {len(elements)} element(s) and "
            f"{len(self.materials)} material(s) from {path}"
        )

    def _rows(self, sheets: Dict[str, pd.DataFrame], sheet: str):
        """(Excel row number, record) pairs of a sheet, with required fields checked."""
        for row_number, record in enumerate(_records(sheets[sheet]), start=2):
            _require(record, sheet, row_number, self.REQUIRED_FIELDS[sheet])
            yield row_number, record


# ---------------------------------------------------------------------------
# SQL store
# ---------------------------------------------------------------------------

PROJECT_TREE_QUERY = """
    SELECT
      p.id, p.name, p.gross_floor_area, p.study_period, p.building_type,
      p.construction_system, p.energy_label, p.annual_gas_use, p.annual_electricity,
      e.id AS element_id, e.name AS element_name, e.category AS element_category,
      e.sfb_code AS element_sfb_code, e.quantity AS element_quantity,
      e.quantity_unit AS element_quantity_unit,
      l.id AS layer_id, l.position AS layer_position, l.material_id AS layer_material_id,
      l.thickness AS layer_thickness, l.coverage AS layer_coverage,
      l.custom_lifespan AS layer_custom_lifespan,
      l.custom_transport_km AS layer_custom_transport_km,
      l.custom_eol_scenario AS layer_custom_eol_scenario,
      m.id AS material_id, m.oekobaudat_uuid, m.oekobaudat_version,
      m.name_de, m.name_en, m.name_nl, m.category, m.subcategory,
      m.density, m.bulk_density, m.declared_unit, m.conversion_to_kg,
      m.gwp_a1_a3, m.gwp_a4, m.gwp_a5, m.gwp_c1, m.gwp_c2, m.gwp_c3, m.gwp_c4, m.gwp_d,
      m.biogenic_carbon, m.reference_service_life, m.transport_distance, m.transport_mode,
      m.quality_rating
    FROM lca_projects p
    LEFT JOIN lca_elements e ON e.project_id = p.id
    LEFT JOIN lca_layers l ON l.element_id = e.id
    LEFT JOIN lca_materials m ON m.id = l.material_id
    WHERE p.id = :project_id
    ORDER BY e.id, l.position
"""

SAVE_RESULTS_QUERY = """
    UPDATE lca_projects
    SET
      total_gwp_a1_a3 = :total_gwp_a1_a3,
      total_gwp_a4 = :total_gwp_a4,
      total_gwp_a5 = :total_gwp_a5,
      total_gwp_b4 = :total_gwp_b4,
      total_gwp_c = :total_gwp_c,
      total_gwp_d = :total_gwp_d,
      total_gwp_sum = :total_gwp_sum,
      total_gwp_per_m2_year = :total_gwp_per_m2_year,
      operational_carbon = :operational_carbon,
      total_carbon = :total_carbon,
      mpg_reference_value = :mpg_reference_value,
      is_compliant = :is_compliant,
      updated_at = CURRENT_TIMESTAMP
    WHERE id = :project_id
"""

MATERIALS_QUERY = """
    SELECT
      id AS material_id, oekobaudat_uuid, oekobaudat_version, name_de, name_en, name_nl,
      category, subcategory, density, bulk_density, declared_unit, conversion_to_kg,
      gwp_a1_a3, gwp_a4, gwp_a5, gwp_c1, gwp_c2, gwp_c3, gwp_c4, gwp_d,
      biogenic_carbon, reference_service_life, transport_distance, transport_mode,
      quality_rating
    FROM lca_materials
    ORDER BY id
"""

_MATERIAL_NUMERIC = (
    "density", "bulk_density", "gwp_a1_a3", "gwp_a4", "gwp_a5", "gwp_c1", "gwp_c2",
    "gwp_c3", "gwp_c4", "gwp_d", "biogenic_carbon", "reference_service_life",
    "transport_distance",
)


def _num(value: Any) -> Optional[float]:
    """DECIMAL / int / None -> float / None."""
    return float(value) if value is not None else None


def _material_from_row(row: Mapping[str, Any]) -> Material:
    kwargs = {name: _num(row[name]) for name in _MATERIAL_NUMERIC}
    return Material(
        id=str(row["material_id"]),
        name=row["name_en"] or row["name_de"] or row["name_nl"] or str(row["material_id"]),
        category=row["category"] or "other",
        subcategory=row["subcategory"],
        declared_unit=row["declared_unit"] or "1 kg",
        conversion_to_kg=_num(row["conversion_to_kg"]) or 1.0,
        transport_mode=row["transport_mode"],
        quality_rating=int(row["quality_rating"]) if row["quality_rating"] is not None else 3,
        oekobaudat_uuid=row["oekobaudat_uuid"],
        oekobaudat_version=row["oekobaudat_version"],
        **kwargs,
    )


def rows_to_project(rows: List[Mapping[str, Any]]) -> LCAProject:
    """
    Turn the flat LEFT JOIN rows (one per layer) into the nested project tree.
    Layers whose material row is missing keep material=None.
    """
    first = rows[0]
    project = LCAProject(
        id=str(first["id"]),
        name=first["name"],
        gross_floor_area=_num(first["gross_floor_area"]),
        study_period=int(
            constants.DEFAULT_STUDY_PERIOD if first["study_period"] is None else first["study_period"]
        ),
        building_type=first["building_type"],
        construction_system=first["construction_system"],
        energy_label=first["energy_label"],
        annual_gas_use=_num(first["annual_gas_use"]),
        annual_electricity=_num(first["annual_electricity"]),
    )

    elements: Dict[str, LCAElement] = {}
    for row in rows:
        if row["element_id"] is None:
            continue
        element_id = str(row["element_id"])
        element = elements.get(element_id)
        if element is None:
            element = LCAElement(
                id=element_id,
                project_id=project.id,
                name=row["element_name"],
                category=row["element_category"],
                quantity=_num(row["element_quantity"]) or 0.0,
                quantity_unit=row["element_quantity_unit"] or "m2",
                sfb_code=row["element_sfb_code"],
            )
            elements[element_id] = element
            project.elements.append(element)

        if row["layer_id"] is None:
            continue
        material = _material_from_row(row) if row["material_id"] is not None else None
        if material is None:
            logger.warning(
                f"Layer {row['layer_id']} of element {element.name} references missing material "
                f"{row['layer_material_id']}; it contributes no impact."
            )
        coverage = _num(row["layer_coverage"])
        element.layers.append(LCALayer(
            id=str(row["layer_id"]),
            element_id=element_id,
            position=int(row["layer_position"]),
            material_id=str(row["layer_material_id"]) if row["layer_material_id"] is not None else None,
            thickness=_num(row["layer_thickness"]) or 0.0,
            coverage=1.0 if coverage is None else coverage,
            custom_lifespan=_num(row["layer_custom_lifespan"]),
            custom_transport_km=_num(row["layer_custom_transport_km"]),
            custom_eol_scenario=row["layer_custom_eol_scenario"],
            material=material,
        ))
    return project


class SqlProjectRepository(ProjectRepository):
    """
    Store backed by the lca_* tables through SQLAlchemy.
    """

    def __init__(self, engine: Engine):
        self.engine = engine

    def load_project(self, project_id: str) -> LCAProject:
        try:
            with self.engine.connect() as conn:
                rows = conn.execute(text(PROJECT_TREE_QUERY), {"project_id": project_id}).mappings().fetchall()
        except SQLAlchemyError as e:
            raise RepositoryError(f"Failed to load project {project_id}: {e}") from e
        if not rows:
            raise NotFoundError("Project", project_id)
        return rows_to_project(list(rows))

    def save_results(self, project_id: str, results: CachedResults) -> None:
        params = results.to_dict()
        params["project_id"] = project_id
        try:
            with self.engine.begin() as conn:
                updated = conn.execute(text(SAVE_RESULTS_QUERY), params).rowcount
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to cache results for project {project_id}: {e}") from e
        if updated == 0:
            raise NotFoundError("Project", project_id)

    def get_mpg_reference_value(self, building_type: str) -> Optional[float]:
        query = "SELECT mpg_limit FROM lca_reference_values WHERE building_type = :building_type LIMIT 1"
        try:
            with self.engine.connect() as conn:
                row = conn.execute(text(query), {"building_type": building_type}).mappings().fetchone()
        except SQLAlchemyError as e:
            raise RepositoryError(f"Failed to read MPG reference value for {building_type}: {e}") from e
        return _num(row["mpg_limit"]) if row else None

    def list_materials(self) -> List[Material]:
        try:
            with self.engine.connect() as conn:
                rows = conn.execute(text(MATERIALS_QUERY)).mappings().fetchall()
        except SQLAlchemyError as e:
            raise RepositoryError(f"Failed to list materials: {e}") from e
        return [_material_from_row(row) for row in rows]
