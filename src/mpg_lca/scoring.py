from dataclasses import fields

from .exceptions import InvalidInputError
from .models import LCAResult, NormalizedResult, ScoringConfig


def normalize_results(result: LCAResult, gfa: float, study_period: float) -> NormalizedResult:
    """
    Add per-m2 and per-m2-per-year figures (of total_a_to_c) to a result.
    Zero or negative floor area / study period are rejected instead of producing inf/nan.
    """
    if gfa is None or gfa <= 0:
        raise InvalidInputError(f"gross_floor_area must be > 0, got {gfa}")
    if study_period is None or study_period <= 0:
        raise InvalidInputError(f"study_period must be > 0, got {study_period}")

    values = {f.name: getattr(result, f.name) for f in fields(LCAResult)}
    per_m2 = result.total_a_to_c / gfa
    return NormalizedResult(per_m2=per_m2, per_m2_per_year=per_m2 / study_period, **values)


def calculate_score(actual_value: float, config: ScoringConfig) -> float:
    """
    Score a value against a base value, clamped to [-1, 1].
    A difference of one margin scores +/-1; 'negative' direction flips the sign
    (lower is better). Returns 0 when there is no base value.
    """
    if config.base_value is None:
        return 0.0
    if config.margin is None or config.margin <= 0:
        raise InvalidInputError(f"Scoring margin must be > 0, got {config.margin}")

    normalized_diff = (actual_value - config.base_value) / config.margin
    score = -normalized_diff if config.direction == "negative" else normalized_diff
    return max(-1.0, min(1.0, score))
