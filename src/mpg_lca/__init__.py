from .models import (
    Material,
    LCALayer,
    LCAElement,
    LCAProject,
    CachedResults,
    LCAResult,
    NormalizedResult,
    ScoringConfig,
    CalculationSettings,
    MaterialBenchmark
)
from .exceptions import (
    LCAError,
    NotFoundError,
    RepositoryError,
    InvalidInputError,
    PersistenceError
)
from .calculator import (
    calculate_project_lca,
    compute_project_lca,
    run_project_calculation
)
from .scoring import normalize_results, calculate_score
from .benchmark import benchmark_category

__all__ = [
    "Material",
    "LCALayer",
    "LCAElement",
    "LCAProject",
    "CachedResults",
    "LCAResult",
    "NormalizedResult",
    "ScoringConfig",
    "CalculationSettings",
    "MaterialBenchmark",
    "LCAError",
    "NotFoundError",
    "RepositoryError",
    "InvalidInputError",
    "PersistenceError",
    "calculate_project_lca",
    "compute_project_lca",
    "run_project_calculation",
    "normalize_results",
    "calculate_score",
    "benchmark_category"
]
