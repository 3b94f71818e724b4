import pytest

from mpg_lca.exceptions import InvalidInputError
from mpg_lca.models import LCAResult, ElementBreakdown, PhaseBreakdown, ScoringConfig
from mpg_lca.scoring import normalize_results, calculate_score


def _result(total=15000.0):
    return LCAResult(
        a1_a3=total, a4=0.0, a5=0.0, b4=0.0, c1_c2=0.0, c3=0.0, c4=0.0, d=-500.0,
        total_a_to_c=total, total_with_d=total - 500.0,
        breakdown_by_element=[ElementBreakdown("e1", "Floor", total, 100.0)],
        breakdown_by_phase=PhaseBreakdown(total, 0.0, 0.0, 0.0, 0.0, -500.0),
    )


def test_normalize():
    normalized = normalize_results(_result(), 100.0, 75)
    assert normalized.per_m2 == pytest.approx(150.0)
    assert normalized.per_m2_per_year == pytest.approx(2.0)
    # Absolute figures are carried over unchanged
    assert normalized.total_a_to_c == 15000.0
    assert normalized.d == -500.0
    assert normalized.breakdown_by_element[0].element_name == "Floor"


def test_normalize_rejects_zero_divisors():
    with pytest.raises(InvalidInputError):
        normalize_results(_result(), 0.0, 75)
    with pytest.raises(InvalidInputError):
        normalize_results(_result(), 100.0, 0)
    with pytest.raises(InvalidInputError):
        normalize_results(_result(), -5.0, 75)


def test_score_lower_is_better():
    config = ScoringConfig(base_value=1.0, direction="negative", margin=0.2)
    assert calculate_score(0.9, config) == pytest.approx(0.5)
    assert calculate_score(1.1, config) == pytest.approx(-0.5)
    assert calculate_score(1.0, config) == pytest.approx(0.0)


def test_score_higher_is_better():
    config = ScoringConfig(base_value=1.0, direction="positive", margin=0.2)
    assert calculate_score(1.1, config) == pytest.approx(0.5)


def test_score_is_clamped():
    config = ScoringConfig(base_value=1.0, margin=0.2)
    assert calculate_score(5.0, config) == -1.0
    assert calculate_score(-5.0, config) == 1.0


def test_score_without_base_value():
    assert calculate_score(3.0, ScoringConfig(base_value=None)) == 0.0


def test_score_rejects_zero_margin():
    with pytest.raises(InvalidInputError):
        calculate_score(1.0, ScoringConfig(base_value=1.0, margin=0.0))
