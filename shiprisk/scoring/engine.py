"""Weighted risk scorer — normalizes signals, combines them, and classifies the result.

Pure computation: no I/O, no logging, no shared state.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence

from shiprisk.config import SCORING, ScoringConfig
from shiprisk.errors import EmptyBatch, InvalidInput
from shiprisk.models import RiskInput, RiskLevel, RiskResult, ScoringBatch, SignalScale
from shiprisk.scoring.rounding import round_half_up

# Lower bounds of each level, highest first. Intervals are [low, next_low),
# the last one closed at 100.
RISK_THRESHOLDS: list[tuple[float, RiskLevel]] = [
    (80.0, RiskLevel.CRITICAL),
    (60.0, RiskLevel.HIGH),
    (40.0, RiskLevel.MODERATE),
    (20.0, RiskLevel.LOW),
    (0.0, RiskLevel.NO_RISK),
]

SIGNAL_BOUNDS = {
    SignalScale.PERCENT: (0.0, 100.0),
    SignalScale.SIGNED: (-100.0, 100.0),
}


def _clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return min(high, max(low, value))


# ---- normalization ----


def normalize_cost(cost: float, min_cost: float, max_cost: float) -> float:
    """Linear position of cost between the bounds, as a [0, 100] contribution."""
    return _clamp((cost - min_cost) / (max_cost - min_cost) * 100.0)


def normalize_rating(rating: float) -> float:
    """Inverted rating: 10 → 0 risk, 0 → 100 risk."""
    return (10.0 - rating) * 10.0


def normalize_reviews(review_count: int) -> float:
    """Inverse-count heuristic: no reviews is maximal risk."""
    return _clamp(100.0 / (review_count + 1))


def normalize_signal(value: float, scale: SignalScale) -> float:
    if scale is SignalScale.SIGNED:
        return (value + 100.0) / 2.0
    return value


def classify_risk(risk_percentage: float) -> RiskLevel:
    for low, level in RISK_THRESHOLDS:
        if risk_percentage >= low:
            return level
    return RiskLevel.NO_RISK


# ---- validation ----


def _finite(name: str, value: float) -> None:
    if not math.isfinite(value):
        raise InvalidInput(f"{name} must be a finite number, got {value}")


def validate_input(candidate: RiskInput) -> None:
    """Raise InvalidInput if any attribute is out of range or none is present."""
    if candidate.cost is not None:
        _finite("cost", candidate.cost)
        if candidate.cost < 0:
            raise InvalidInput(f"Invalid cost: {candidate.cost}. Must be non-negative")
    if candidate.rating is not None:
        _finite("rating", candidate.rating)
        if not 0.0 <= candidate.rating <= 10.0:
            raise InvalidInput(f"Invalid rating: {candidate.rating}. Must be between 0 and 10")
    if candidate.review_count is not None and candidate.review_count < 0:
        raise InvalidInput(
            f"Invalid review count: {candidate.review_count}. Must be non-negative"
        )
    if candidate.raw_signal is not None:
        _finite("raw signal", candidate.raw_signal)
        low, high = SIGNAL_BOUNDS[candidate.signal_scale]
        if not low <= candidate.raw_signal <= high:
            raise InvalidInput(
                f"Invalid raw signal: {candidate.raw_signal}. "
                f"Must be between {low:g} and {high:g} on the {candidate.signal_scale.value} scale"
            )
    if all(
        v is None
        for v in (candidate.cost, candidate.rating, candidate.review_count, candidate.raw_signal)
    ):
        raise InvalidInput("No scorable attribute: need cost, rating, review_count, or raw_signal")


# ---- scoring ----


def _contributions(candidate: RiskInput, config: ScoringConfig) -> dict[str, float]:
    contributions: dict[str, float] = {}
    if candidate.cost is not None:
        contributions["cost"] = normalize_cost(candidate.cost, config.min_cost, config.max_cost)
    if candidate.rating is not None:
        contributions["rating"] = normalize_rating(candidate.rating)
    if candidate.review_count is not None:
        contributions["reviews"] = normalize_reviews(candidate.review_count)
    if candidate.raw_signal is not None:
        contributions["signal"] = normalize_signal(candidate.raw_signal, candidate.signal_scale)
    return contributions


def _fmt(value: float | None) -> str:
    if value is None:
        return "n/a"
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


def build_rationale(level: RiskLevel, candidate: RiskInput, factors: Sequence[float] = ()) -> str:
    text = (
        f"{level.value} — cost={_fmt(candidate.cost)}, "
        f"rating={_fmt(candidate.rating)}/10, "
        f"reviews={_fmt(candidate.review_count)}"
    )
    if candidate.raw_signal is not None:
        text += f", signal={_fmt(candidate.raw_signal)}"
    if factors:
        text += ", factors=" + "×".join(f"{f:.2f}" for f in factors)
    return text


def _finish(
    candidate: RiskInput,
    unrounded: float,
    contributions: dict[str, float],
    factors: list[float],
) -> RiskResult:
    risk_percentage = round_half_up(unrounded)
    level = classify_risk(risk_percentage)
    return RiskResult(
        label=candidate.label,
        risk_percentage=risk_percentage,
        risk_level=level,
        rationale=build_rationale(level, candidate, factors),
        contributions=contributions,
        factors=factors,
        unrounded_risk=unrounded,
        source=candidate,
    )


def score_candidate(candidate: RiskInput, config: ScoringConfig = SCORING) -> RiskResult:
    """Score one candidate with the weight set declared for its signals."""
    validate_input(candidate)
    contributions = _contributions(candidate, config)

    match = config.weights_for(frozenset(contributions))
    if match is None:
        raise InvalidInput(
            "No weight set declared for signals: " + ", ".join(sorted(contributions)),
            label=candidate.label,
        )
    _, weights = match

    weighted = sum(weights[name] * value for name, value in contributions.items())
    rounded = {name: round_half_up(value) for name, value in contributions.items()}
    return _finish(candidate, _clamp(weighted), rounded, [])


def apply_external_factors(result: RiskResult, factors: Iterable[float]) -> RiskResult:
    """Multiply the score by each factor in order, clamping after every step.

    Rounding and classification happen once, on the final value.
    """
    new_factors = [float(f) for f in factors]
    for f in new_factors:
        if not math.isfinite(f) or f <= 0:
            raise InvalidInput(f"External factor must be a positive number, got {f}", label=result.label)

    value = result.unrounded_risk
    for f in new_factors:
        value = _clamp(value * f)
    return _finish(
        result.source,
        value,
        dict(result.contributions),
        list(result.factors) + new_factors,
    )


def apply_external_factor(result: RiskResult, factor: float) -> RiskResult:
    """Apply a single multiplier to the clamped, unrounded score."""
    return apply_external_factors(result, [factor])


def select_best(results: list[RiskResult]) -> RiskResult:
    """Least risky result; the first one wins on ties."""
    return min(results, key=lambda r: r.risk_percentage)


def score_batch(inputs: Sequence[RiskInput], config: ScoringConfig = SCORING) -> ScoringBatch:
    """Score every candidate in order and pick the least risky one."""
    if not inputs:
        raise EmptyBatch("Cannot score an empty batch")

    results: list[RiskResult] = []
    for i, candidate in enumerate(inputs):
        try:
            results.append(score_candidate(candidate, config))
        except InvalidInput as exc:
            raise InvalidInput(
                f"Candidate #{i} ({candidate.label!r}): {exc}", index=i, label=candidate.label
            ) from exc

    return ScoringBatch(results=results, best_candidate=select_best(results))


def adjust_batch(batch: ScoringBatch, factors: Iterable[float]) -> ScoringBatch:
    """Apply the same factors to every result and re-select the best candidate."""
    factors = list(factors)
    results = [apply_external_factors(r, factors) for r in batch.results]
    return ScoringBatch(results=results, best_candidate=select_best(results))
