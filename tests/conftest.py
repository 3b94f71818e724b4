import sys
from pathlib import Path

import pandas as pd
import pytest

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from mpg_lca.models import Material, LCALayer, LCAElement, LCAProject
from mpg_lca.repository import InMemoryProjectRepository


def concrete() -> Material:
    # Declared per m3: 240 kg CO2e per m3 at 2400 kg/m3 -> 0.1 per kg
    return Material(
        id="m-concrete",
        name="Concrete C30/37",
        category="concrete",
        declared_unit="1 m³",
        density=2400.0,
        gwp_a1_a3=240.0,
        gwp_c1=2.4,
        gwp_c2=4.8,
        gwp_c3=7.2,
        gwp_c4=1.2,
        gwp_d=-12.0,
    )


def timber() -> Material:
    return Material(
        id="m-timber",
        name="Spruce CLT",
        category="timber",
        declared_unit="1 kg",
        density=500.0,
        gwp_a1_a3=0.5,
        gwp_c3=0.2,
        gwp_c4=0.05,
        gwp_d=-0.3,
        reference_service_life=30.0,
    )


def sample_project() -> LCAProject:
    """
    Two elements:
      Floor  100 m2 x 0.20 m concrete -> 48 000 kg, total A-C 5452.8
      Wall    50 m2 x 0.10 m timber   ->  2 500 kg, total A-C 3218.5 (one replacement)
    """
    return LCAProject(
        id="p1",
        name="Woning Dorpsstraat",
        gross_floor_area=200.0,
        study_period=75,
        building_type="vrijstaand",
        energy_label="A",
        elements=[
            LCAElement(
                id="e1", name="Floor", category="floor", quantity=100.0,
                layers=[LCALayer(id="l1", material_id="m-concrete", thickness=0.2, position=1)],
            ),
            LCAElement(
                id="e2", name="Wall", category="exterior_wall", quantity=50.0,
                layers=[LCALayer(id="l2", material_id="m-timber", thickness=0.1, position=1)],
            ),
        ],
    )


@pytest.fixture
def materials():
    return [concrete(), timber()]


@pytest.fixture
def repository(materials):
    return InMemoryProjectRepository(projects=[sample_project()], materials=materials)


@pytest.fixture
def project(repository):
    """The sample project with materials linked to its layers."""
    return repository.load_project("p1")


@pytest.fixture
def workbook_path(tmp_path):
    """The sample project written as a projects/elements/layers/materials workbook."""
    path = tmp_path / "projects.xlsx"
    projects = pd.DataFrame([{
        "id": "p1", "name": "Woning Dorpsstraat", "gross_floor_area": 200.0,
        "study_period": 75, "building_type": "vrijstaand", "energy_label": "A",
    }])
    elements = pd.DataFrame([
        {"id": "e1", "project_id": "p1", "name": "Floor", "category": "floor", "quantity": 100.0},
        {"id": "e2", "project_id": "p1", "name": "Wall", "category": "exterior_wall", "quantity": 50.0},
    ])
    layers = pd.DataFrame([
        {"id": "l1", "element_id": "e1", "material_id": "m-concrete", "thickness": 0.2, "position": 1},
        {"id": "l2", "element_id": "e2", "material_id": "m-timber", "thickness": 0.1, "position": 1},
    ])
    materials = pd.DataFrame([
        {
            "id": "m-concrete", "name": "Concrete C30/37", "category": "concrete",
            "declared_unit": "1 m³", "density": 2400.0, "gwp_a1_a3": 240.0,
            "gwp_c1": 2.4, "gwp_c2": 4.8, "gwp_c3": 7.2, "gwp_c4": 1.2, "gwp_d": -12.0,
            "reference_service_life": None,
        },
        {
            "id": "m-timber", "name": "Spruce CLT", "category": "timber",
            "declared_unit": "1 kg", "density": 500.0, "gwp_a1_a3": 0.5,
            "gwp_c1": None, "gwp_c2": None, "gwp_c3": 0.2, "gwp_c4": 0.05, "gwp_d": -0.3,
            "reference_service_life": 30.0,
        },
    ])
    reference_values = pd.DataFrame([{"building_type": "vrijstaand", "mpg_limit": 0.8}])

    with pd.ExcelWriter(path) as writer:
        projects.to_excel(writer, sheet_name="projects", index=False)
        elements.to_excel(writer, sheet_name="elements", index=False)
        layers.to_excel(writer, sheet_name="layers", index=False)
        materials.to_excel(writer, sheet_name="materials", index=False)
        reference_values.to_excel(writer, sheet_name="reference_values", index=False)
    return str(path)
