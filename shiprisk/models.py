"""Pydantic v2 models for scoring inputs/results and collaborator payloads."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field, computed_field

from shiprisk.scoring.rounding import round_half_up


class RiskLevel(str, Enum):
    NO_RISK = "No Risk"
    LOW = "Low Risk"
    MODERATE = "Moderate Risk"
    HIGH = "High Risk"
    CRITICAL = "Critical Risk"

    @property
    def color(self) -> str:
        return RISK_COLORS[self]


RISK_COLORS = {
    RiskLevel.NO_RISK: "green",
    RiskLevel.LOW: "lightgreen",
    RiskLevel.MODERATE: "yellow",
    RiskLevel.HIGH: "orange",
    RiskLevel.CRITICAL: "red",
}


class SignalScale(str, Enum):
    """How a caller-supplied raw signal is expressed."""

    PERCENT = "percent"  # [0, 100], used as-is
    SIGNED = "signed"  # [-100, 100], -100 = no risk, +100 = maximal risk


class RiskInput(BaseModel):
    label: str
    cost: float | None = None
    rating: float | None = None  # out of 10
    review_count: int | None = None
    raw_signal: float | None = None
    signal_scale: SignalScale = SignalScale.PERCENT


class RiskResult(BaseModel):
    label: str
    risk_percentage: float  # 0.00 - 100.00
    risk_level: RiskLevel
    rationale: str
    contributions: dict[str, float] = {}
    factors: list[float] = []

    # Clamped, unrounded risk and the input it came from; external factors
    # continue from this value rather than the rounded percentage.
    unrounded_risk: float = Field(exclude=True, repr=False)
    source: RiskInput = Field(exclude=True, repr=False)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def score(self) -> float:
        """Overall score: the complement of the risk percentage."""
        return round_half_up(100.0 - self.risk_percentage)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def color(self) -> str:
        return self.risk_level.color


class ScoringBatch(BaseModel):
    results: list[RiskResult]
    best_candidate: RiskResult


# --- Collaborator models ---


class Supplier(BaseModel):
    name: str
    cost: float
    rating: float
    reviews: int
    location: str = ""

    def to_input(self) -> RiskInput:
        return RiskInput(
            label=self.name,
            cost=self.cost,
            rating=self.rating,
            review_count=self.reviews,
        )


class GeoLocation(BaseModel):
    name: str
    lat: float
    lon: float
    country: str = ""
    state: str = ""


class WeatherReport(BaseModel):
    place: str
    condition: str  # OpenWeather "main", e.g. "Rain"
    description: str = ""
    temperature_c: float
    wind_speed_ms: float = 0.0
    visibility_m: float | None = None
    humidity: float | None = None
    raw: dict[str, object] = Field(default={}, repr=False)


class SeaAssessment(BaseModel):
    place: str
    assessment: list[str]
    risk_score: float  # -10 (very risky) .. +10 (very safe)
    recommendation: str
    sentiment: str
    color: str
    weather: WeatherReport
    result: RiskResult | None = None


class InsuranceRecommendation(BaseModel):
    type: str
    risks_covered: list[str] = []
    uniqueness: str = ""
    facilities: list[str] = []
    why_asset: str = ""
    description: str = ""


class Assessment(BaseModel):
    id: int | None = None
    created_at: datetime
    kind: str
    subject: str
    risk_percentage: float | None = None
    risk_level: RiskLevel | None = None
    payload: dict[str, object] = {}
