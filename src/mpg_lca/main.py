import argparse
import logging
import os
import sys
from typing import List, Optional

from colorama import Fore, Style
from sqlalchemy import create_engine

from .calculator import ProjectCalculation, run_project_calculation
from .config import export_parameter_template
from .exceptions import InvalidInputError, LCAError
from .logging_conf import setup_logging
from .models import CalculationSettings
from .repository import ProjectRepository, SqlProjectRepository, WorkbookProjectRepository

logger = logging.getLogger(__name__)

C_HEADER = Fore.CYAN + Style.BRIGHT
C_SUCCESS = Fore.GREEN + Style.BRIGHT
C_FAIL = Fore.RED + Style.BRIGHT
C_RESET = Style.RESET_ALL


def print_header(text: str):
    """Print a styled header."""
    print(f"\n{C_HEADER}{'=' * 60}")
    print(f"{text.center(60)}")
    print(f"{'=' * 60}{C_RESET}")


def print_result_overview(calc: ProjectCalculation):
    """
    Phase, element and compliance summary of a calculation.
    """
    result = calc.result
    cached = calc.cached
    project = calc.project

    print_header(f"LCA RESULT: {project.name.upper()}")
    print(f"  Gross floor area: {project.gross_floor_area:.1f} m²   Study period: {project.study_period} years")

    print(f"\n{C_HEADER}Phase Breakdown (kg CO2e):{C_RESET}")
    rows = [
        ("A1-A3 (Production)", result.a1_a3),
        ("A4 (Transport)", result.a4),
        ("A5 (Construction)", result.a5),
        ("B4 (Replacement)", result.b4),
        ("C1-C2 (Deconstruction)", result.c1_c2),
        ("C3 (Processing)", result.c3),
        ("C4 (Disposal)", result.c4),
        ("D (Benefits)", result.d),
    ]
    for label, value in rows:
        print(f"  {label:<26} : {value:>14.2f}")
    print(f"{'-' * 60}")
    print(f"  {'Total A-C':<26} : {result.total_a_to_c:>14.2f}")
    print(f"  {'Total incl. D':<26} : {result.total_with_d:>14.2f}")

    print(f"\n{C_HEADER}Element Breakdown:{C_RESET}")
    for entry in result.breakdown_by_element:
        print(f"  {entry.element_name:<30} {entry.total_impact:>14.2f} kg ({entry.percentage:.1f}%)")

    print(f"\n{C_HEADER}MPG:{C_RESET}")
    print(f"  Embodied        : {result.per_m2_per_year:.4f} kg CO2e/m²/year")
    print(f"  Operational (B6): {cached.operational_carbon:.2f} kg CO2e/m²/year")
    print(f"  Total carbon    : {cached.total_carbon:.4f}")
    print(f"  Reference limit : {cached.mpg_reference_value:.4f} kg CO2e/m²/year")
    verdict = f"{C_SUCCESS}YES{C_RESET}" if cached.is_compliant else f"{C_FAIL}NO{C_RESET}"
    print(f"  Compliant       : {verdict}")
    if not calc.persisted:
        print("  (results not cached on the project record)")
    print(f"{'=' * 60}\n")


def build_repository(args: argparse.Namespace) -> ProjectRepository:
    if args.workbook:
        return WorkbookProjectRepository(args.workbook)
    database_url = args.database_url or os.environ.get("DATABASE_URL", "")
    if not database_url:
        raise InvalidInputError("Either --workbook or --database-url (or DATABASE_URL) is required")
    # Some hosts hand out postgres:// but SQLAlchemy requires postgresql://
    if database_url.startswith("postgres://"):
        database_url = database_url.replace("postgres://", "postgresql://", 1)
    return SqlProjectRepository(create_engine(database_url))


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Building LCA / MPG calculator (EN 15804)")
    parser.add_argument("--project-id", help="Project to calculate")
    source = parser.add_mutually_exclusive_group()
    source.add_argument("--database-url", help="SQLAlchemy database URL (default: $DATABASE_URL)")
    source.add_argument("--workbook", help="Excel workbook with projects/elements/layers/materials sheets")
    parser.add_argument("--verbose", "-v", action="store_true", help="Log per-layer intermediate values")
    parser.add_argument("--audit-log", help="Write a formula-level audit report to this file")
    parser.add_argument("--log-file", help="Also write the log to this file")
    parser.add_argument("--no-color", action="store_true", help="Disable colored console output")
    parser.add_argument("--no-persist", action="store_true", help="Do not cache results on the project")
    parser.add_argument("--write-parameter-template", metavar="PATH",
                        help="Write the parameter workbook with current values and exit")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    setup_logging(
        console_level=logging.DEBUG if args.verbose else logging.INFO,
        file_path=args.log_file,
        no_color=args.no_color,
    )

    if args.write_parameter_template:
        export_parameter_template(args.write_parameter_template)
        return 0

    if not args.project_id:
        logger.error("--project-id is required")
        return 2

    settings = CalculationSettings(verbose=args.verbose, audit_log_path=args.audit_log)
    try:
        repository = build_repository(args)
        calc = run_project_calculation(args.project_id, repository, settings, persist=not args.no_persist)
    except LCAError as e:
        logger.error(str(e))
        return 1

    print_result_overview(calc)
    return 0


if __name__ == "__main__":
    sys.exit(main())
