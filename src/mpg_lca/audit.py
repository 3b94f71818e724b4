import os
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Any, List, Optional

logger = logging.getLogger(__name__)


@dataclass
class AuditEntry:
    context: str
    formula: str
    variables: Dict[str, Any]
    result: float
    unit: str = ""
    timestamp: datetime = field(default_factory=datetime.now)

    def to_text(self) -> str:
        inputs = ", ".join(f"{name}={value}" for name, value in self.variables.items())
        return (
            f"[{self.timestamp.strftime('%H:%M:%S')}] {self.context}\n"
            f"  Formula: {self.formula}\n"
            f"  Inputs:  {inputs}\n"
            f"  Result:  {self.result:.4f} {self.unit}\n"
            + "-" * 40 + "\n"
        )


class CalculationAudit:
    """
    Formula-level trail of one calculation run. Entries are kept in memory and,
    when log_file is set, appended to a plain-text report.
    """

    def __init__(self, log_file: Optional[str] = None, enabled: bool = True):
        self.enabled = enabled
        self.session_id = datetime.now().strftime("%Y%m%d_%H%M%S")
        self.log_file = log_file
        self.entries: List[AuditEntry] = []

        if self.enabled and self.log_file:
            self._start_report()

    def _start_report(self):
        try:
            os.makedirs(os.path.dirname(os.path.abspath(self.log_file)), exist_ok=True)
            with open(self.log_file, "w", encoding="utf-8") as f:
                f.write("=== LCA CALCULATION AUDIT LOG ===\n")
                f.write(f"Session: {self.session_id}\n")
                f.write("=================================\n\n")
        except OSError as e:
            logger.error(f"Failed to create audit log {self.log_file}: {e}")
            self.log_file = None

    def log_calculation(self, context: str, formula: str, variables: Dict[str, Any], result: float, unit: str = ""):
        """
        Record a calculation step.

        Args:
            context: What is being calculated (e.g., "Gevel noord / layer 2 (Mineral wool): A4")
            formula: Text representation of the equation (e.g., "Mass(t) * Distance(km) * EF(mode)")
            variables: Actual values used (e.g., {"Mass_t": 1.5, "Distance_km": 500})
            result: The final result
            unit: Unit of the result (e.g., "kgCO2e")
        """
        if not self.enabled:
            return

        entry = AuditEntry(context, formula, dict(variables), result, unit)
        self.entries.append(entry)
        if not self.log_file:
            return
        try:
            with open(self.log_file, "a", encoding="utf-8") as f:
                f.write(entry.to_text())
        except OSError as e:
            logger.error(f"Failed to write to audit log: {e}")
