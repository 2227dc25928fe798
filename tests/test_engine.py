"""
Tests for the scoring engine: normalization, weighting, rounding, classification,
external factors, and batch selection.
"""

from __future__ import annotations

import pytest

from shiprisk.config import DEFAULT_SUPPLIERS, ScoringConfig
from shiprisk.errors import EmptyBatch, InvalidInput
from shiprisk.models import RiskInput, RiskLevel, RiskResult, SignalScale, Supplier
from shiprisk.scoring.engine import (
    adjust_batch,
    apply_external_factor,
    apply_external_factors,
    classify_risk,
    normalize_cost,
    normalize_rating,
    normalize_reviews,
    normalize_signal,
    round_half_up,
    score_batch,
    score_candidate,
)


def supplier_inputs() -> list[RiskInput]:
    return [Supplier(**s).to_input() for s in DEFAULT_SUPPLIERS]


# ---- normalization ----


@pytest.mark.parametrize("rating,expected", [(0, 100.0), (2.5, 75.0), (7.0, 30.0), (10, 0.0)])
def test_normalize_rating_is_inverted(rating, expected):
    assert normalize_rating(rating) == pytest.approx(expected)


@pytest.mark.parametrize("reviews,expected", [(0, 100.0), (1, 50.0), (3, 25.0), (99, 1.0)])
def test_normalize_reviews_inverse_count(reviews, expected):
    assert normalize_reviews(reviews) == pytest.approx(expected)


def test_normalize_cost_interpolates_and_clamps():
    assert normalize_cost(48_000, 40_000, 60_000) == pytest.approx(40.0)
    assert normalize_cost(30_000, 40_000, 60_000) == 0.0
    assert normalize_cost(90_000, 40_000, 60_000) == 100.0


def test_normalize_signal_scales():
    assert normalize_signal(42.0, SignalScale.PERCENT) == 42.0
    assert normalize_signal(-100.0, SignalScale.SIGNED) == 0.0
    assert normalize_signal(0.0, SignalScale.SIGNED) == 50.0
    assert normalize_signal(100.0, SignalScale.SIGNED) == 100.0


def test_round_half_up_not_bankers():
    assert round_half_up(0.125) == 0.13
    assert round_half_up(2.675) == 2.68
    assert round_half_up(34.0) == 34.0
    assert round_half_up(round_half_up(55.335)) == round_half_up(55.335)


# ---- classification ----


@pytest.mark.parametrize(
    "pct,level",
    [
        (0.0, RiskLevel.NO_RISK),
        (19.99, RiskLevel.NO_RISK),
        (20.0, RiskLevel.LOW),
        (39.99, RiskLevel.LOW),
        (40.0, RiskLevel.MODERATE),
        (60.0, RiskLevel.HIGH),
        (79.99, RiskLevel.HIGH),
        (80.0, RiskLevel.CRITICAL),
        (100.0, RiskLevel.CRITICAL),
    ],
)
def test_classify_risk_boundaries_belong_to_upper_level(pct, level):
    assert classify_risk(pct) is level


# ---- score_candidate ----


def test_scenario_quick_haulers_is_low_risk():
    """cost 48000, rating 7, reviews 3 → 20 + 9 + 5 = 34.00."""
    result = score_candidate(RiskInput(label="Quick Haulers", cost=48_000, rating=7.0, review_count=3))
    assert result.risk_percentage == 34.0
    assert result.risk_level is RiskLevel.LOW
    assert result.contributions == {"cost": 40.0, "rating": 30.0, "reviews": 25.0}
    assert result.score == 66.0
    assert result.color == "lightgreen"


def test_rationale_format():
    result = score_candidate(RiskInput(label="Quick Haulers", cost=48_000, rating=7.0, review_count=3))
    assert result.rationale == "Low Risk — cost=48000, rating=7/10, reviews=3"


def test_rationale_marks_missing_attributes():
    result = score_candidate(RiskInput(label="x", rating=8.5, review_count=4))
    assert result.rationale.endswith("cost=n/a, rating=8.5/10, reviews=4")


def test_score_candidate_is_deterministic():
    candidate = RiskInput(label="a", cost=51_234, rating=6.3, review_count=7)
    assert score_candidate(candidate) == score_candidate(candidate)


def test_rating_out_of_range_is_invalid():
    with pytest.raises(InvalidInput):
        score_candidate(RiskInput(label="bad", cost=50_000, rating=11, review_count=2))


def test_negative_rating_cost_and_reviews_are_invalid():
    with pytest.raises(InvalidInput):
        score_candidate(RiskInput(label="r", cost=50_000, rating=-0.5, review_count=2))
    with pytest.raises(InvalidInput):
        score_candidate(RiskInput(label="c", cost=-1, rating=5, review_count=2))
    with pytest.raises(InvalidInput):
        score_candidate(RiskInput(label="n", cost=50_000, rating=5, review_count=-1))


def test_no_scorable_attribute_is_invalid():
    with pytest.raises(InvalidInput, match="No scorable attribute"):
        score_candidate(RiskInput(label="empty"))


def test_signal_outside_declared_scale_is_invalid():
    with pytest.raises(InvalidInput):
        score_candidate(RiskInput(label="p", raw_signal=120.0))
    with pytest.raises(InvalidInput):
        score_candidate(RiskInput(label="s", raw_signal=-101.0, signal_scale=SignalScale.SIGNED))


def test_undeclared_signal_combination_is_invalid():
    with pytest.raises(InvalidInput, match="No weight set"):
        score_candidate(RiskInput(label="cost only", cost=45_000))


def test_location_weight_set_uses_signal_directly():
    result = score_candidate(RiskInput(label="Rotterdam", raw_signal=-40.0, signal_scale=SignalScale.SIGNED))
    assert result.risk_percentage == 30.0
    assert result.risk_level is RiskLevel.LOW
    assert "signal=-40" in result.rationale


def test_reputation_weight_set():
    # 0.6 * 20 + 0.4 * 50
    result = score_candidate(RiskInput(label="rep", rating=8.0, review_count=1))
    assert result.risk_percentage == 32.0


def test_custom_config_is_honoured():
    config = ScoringConfig(min_cost=0, max_cost=100_000)
    result = score_candidate(RiskInput(label="q", cost=48_000, rating=7.0, review_count=3), config)
    # 0.5 * 48 + 9 + 5
    assert result.risk_percentage == 38.0


def test_excluded_fields_are_not_serialized():
    data = score_candidate(RiskInput(label="a", rating=5, review_count=1)).model_dump()
    assert "unrounded_risk" not in data
    assert "source" not in data
    assert data["risk_level"] is RiskLevel.MODERATE
    assert data["score"] == 50.0


# ---- external factors ----


def test_factor_of_one_is_a_no_op():
    base = score_candidate(RiskInput(label="a", cost=50_000, rating=1.0, review_count=5))
    adjusted = apply_external_factor(base, 1.0)
    assert adjusted.risk_percentage == base.risk_percentage
    assert adjusted.risk_level is base.risk_level


def test_factor_reclassifies_and_clamps():
    base = score_candidate(RiskInput(label="q", cost=48_000, rating=7.0, review_count=3))
    higher = apply_external_factor(base, 1.5)
    assert higher.risk_percentage == 51.0
    assert higher.risk_level is RiskLevel.MODERATE
    assert higher.rationale.startswith("Moderate Risk — ")
    assert higher.factors == [1.5]

    capped = apply_external_factor(base, 10.0)
    assert capped.risk_percentage == 100.0
    assert capped.risk_level is RiskLevel.CRITICAL


def test_chained_factors_round_once():
    base = score_candidate(RiskInput(label="a", cost=50_000, rating=1.0, review_count=5))
    chained = apply_external_factor(apply_external_factor(base, 1.13), 0.87)
    combined = apply_external_factors(base, [1.13, 0.87])
    reversed_order = apply_external_factors(base, [0.87, 1.13])
    assert chained.risk_percentage == combined.risk_percentage == reversed_order.risk_percentage
    assert chained.factors == [1.13, 0.87]


def test_factor_continues_from_clamped_value():
    base = score_candidate(RiskInput(label="q", cost=48_000, rating=7.0, review_count=3))
    capped = apply_external_factor(base, 5.0)
    assert capped.risk_percentage == 100.0
    assert apply_external_factor(capped, 0.5).risk_percentage == 50.0
    assert apply_external_factors(base, [5.0, 0.5]).risk_percentage == 50.0


def test_equal_visible_results_adjust_identically():
    worst = score_candidate(RiskInput(label="w", cost=60_000, rating=0.0, review_count=0))
    base = score_candidate(RiskInput(label="q", cost=48_000, rating=7.0, review_count=3))
    capped = apply_external_factor(base, 5.0)
    assert worst.risk_percentage == capped.risk_percentage == 100.0
    assert apply_external_factor(worst, 0.7).risk_percentage == apply_external_factor(capped, 0.7).risk_percentage == 70.0


@pytest.mark.parametrize("factor", [0.0, -1.0, float("nan"), float("inf")])
def test_non_positive_factor_is_invalid(factor):
    base = score_candidate(RiskInput(label="a", rating=5, review_count=1))
    with pytest.raises(InvalidInput):
        apply_external_factor(base, factor)


# ---- batches ----


def test_scenario_default_suppliers_batch():
    batch = score_batch(supplier_inputs())
    assert [r.label for r in batch.results] == [s["name"] for s in DEFAULT_SUPPLIERS]
    assert [r.risk_percentage for r in batch.results] == [55.33, 68.5, 34.0, 39.67]
    assert batch.best_candidate.label == "Quick Haulers"
    assert batch.best_candidate == min(batch.results, key=lambda r: r.risk_percentage)


def test_batch_tie_goes_to_first_occurrence():
    inputs = [
        RiskInput(label="first", cost=48_000, rating=7.0, review_count=3),
        RiskInput(label="second", cost=48_000, rating=7.0, review_count=3),
    ]
    assert score_batch(inputs).best_candidate.label == "first"


def test_empty_batch():
    with pytest.raises(EmptyBatch):
        score_batch([])


def test_batch_fails_whole_and_names_offender():
    inputs = supplier_inputs()
    inputs.insert(2, RiskInput(label="Broken", cost=50_000, rating=11, review_count=1))
    with pytest.raises(InvalidInput) as info:
        score_batch(inputs)
    assert info.value.index == 2
    assert info.value.label == "Broken"
    assert "Broken" in str(info.value)


def test_adjust_batch_reselects_best():
    batch = score_batch(supplier_inputs())
    adjusted = adjust_batch(batch, [1.2, 0.9])
    assert [r.factors for r in adjusted.results] == [[1.2, 0.9]] * 4
    assert adjusted.best_candidate.label == "Quick Haulers"
    assert adjusted.best_candidate.risk_percentage == 36.72


def test_score_rounds_half_up():
    candidate = RiskInput(label="h", rating=5, review_count=1)
    result = RiskResult(
        label="h", risk_percentage=99.875, risk_level=RiskLevel.CRITICAL, rationale="",
        unrounded_risk=99.875, source=candidate,
    )
    assert result.score == 0.13
    assert score_batch(supplier_inputs()).results[0].score == 44.67
