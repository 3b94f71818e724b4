import logging

from .constants import (
    OPERATIONAL_CARBON_BY_LABEL, OPERATIONAL_CARBON_UNKNOWN_LABEL, OPERATIONAL_CARBON_DEFAULT,
    GAS_EMISSION_FACTOR, ELECTRICITY_EMISSION_FACTOR
)
from .exceptions import InvalidInputError
from .models import LCAProject

logger = logging.getLogger(__name__)


def calculate_operational_carbon(project: LCAProject) -> float:
    """
    Estimate in-use energy emissions (B6) in kg CO2-eq/m2/year.

    Strategy, in order:
      1. energy label table (unknown labels get a conservative fixed value)
      2. metered gas (m3) and electricity (kWh) divided by gross floor area
      3. fixed default
    Independent of the A-D modules and never added to total_a_to_c.
    """
    if project.energy_label:
        label = project.energy_label.strip().upper()
        if label not in OPERATIONAL_CARBON_BY_LABEL:
            logger.warning(f"Unknown energy label '{project.energy_label}' on project {project.id}.")
        return OPERATIONAL_CARBON_BY_LABEL.get(label, OPERATIONAL_CARBON_UNKNOWN_LABEL)

    if project.annual_gas_use is not None and project.annual_electricity is not None:
        if project.gross_floor_area is None or project.gross_floor_area <= 0:
            raise InvalidInputError(
                f"Project {project.id}: gross_floor_area must be > 0 to normalise energy use"
            )
        annual_kg = (
            project.annual_gas_use * GAS_EMISSION_FACTOR
            + project.annual_electricity * ELECTRICITY_EMISSION_FACTOR
        )
        return annual_kg / project.gross_floor_area

    return OPERATIONAL_CARBON_DEFAULT
