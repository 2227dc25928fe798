"""Orchestrator — feeds catalogue data and external signals through the scoring engine."""

from __future__ import annotations

import logging
from collections.abc import Callable

from shiprisk.clients import gemini, geocoding, news, weather
from shiprisk.config import SCORING, ScoringConfig
from shiprisk.db import Repository
from shiprisk.errors import EmptyBatch, ExternalServiceError, InvalidInput
from shiprisk.models import (
    GeoLocation,
    InsuranceRecommendation,
    RiskInput,
    RiskResult,
    ScoringBatch,
    SeaAssessment,
    SignalScale,
    WeatherReport,
)
from shiprisk.scoring.engine import (
    adjust_batch,
    apply_external_factors,
    score_batch,
    score_candidate,
    select_best,
)

logger = logging.getLogger(__name__)


class RiskAnalyzer:
    """Run supplier, route, and insurance analyses and record them."""

    def __init__(
        self,
        repo: Repository,
        config: ScoringConfig = SCORING,
        *,
        fetch_weather: Callable[..., WeatherReport] = weather.fetch_weather,
        geocode: Callable[[str], GeoLocation | None] = geocoding.geocode,
        fetch_headlines: Callable[[str], list[str]] = news.fetch_headlines,
        score_sentiment: Callable[[list[str]], float] = gemini.score_sentiment,
        assess_sea: Callable[[str, WeatherReport], SeaAssessment] = gemini.assess_sea_route,
        recommend_insurance: Callable[[str], list[InsuranceRecommendation]] = gemini.insurance_recommendations,
    ) -> None:
        self.repo = repo
        self.config = config
        self._fetch_weather = fetch_weather
        self._geocode = geocode
        self._fetch_headlines = fetch_headlines
        self._score_sentiment = score_sentiment
        self._assess_sea = assess_sea
        self._recommend_insurance = recommend_insurance

    # ---- supplier analyses ----

    def analyze_suppliers(self) -> ScoringBatch:
        """Score the whole catalogue on cost, rating, and reviews."""
        suppliers = self.repo.list_suppliers()
        batch = score_batch([s.to_input() for s in suppliers], self.config)
        self._record_batch("suppliers", "catalogue", batch)
        return batch

    def analyze_supplier(self, name: str) -> RiskResult:
        supplier = self.repo.get_supplier(name)
        if supplier is None:
            raise InvalidInput(f"Supplier not found: {name}", label=name)
        result = score_candidate(supplier.to_input(), self.config)
        self.repo.record_assessment(
            "supplier", supplier.name, result.risk_percentage, result.risk_level,
            result.model_dump(mode="json"),
        )
        return result

    def weather_factor(self, place: str) -> tuple[float, WeatherReport]:
        report = self._fetch_weather(place=place)
        return weather.weather_risk_factor(report), report

    def sentiment_factor(self, query: str) -> tuple[float, float]:
        """Returns (factor, sentiment) for news matching the query."""
        headlines = self._fetch_headlines(query)
        sentiment = self._score_sentiment(headlines)
        return gemini.sentiment_risk_factor(sentiment), sentiment

    def adjusted_supplier_analysis(self, place: str, news_query: str = "logistics") -> dict:
        """Catalogue scores adjusted by weather at `place` and news sentiment.

        Factors are applied weather first, then sentiment; the engine clamps
        after each and rounds once at the end.
        """
        suppliers = self.repo.list_suppliers()
        base = score_batch([s.to_input() for s in suppliers], self.config)

        w_factor, report = self.weather_factor(place)
        s_factor, sentiment = self.sentiment_factor(news_query)
        logger.info("weather factor %.2f (%s), sentiment factor %.2f", w_factor, report.condition, s_factor)

        batch = adjust_batch(base, [w_factor, s_factor])
        summary = {
            "batch": batch,
            "weather": report,
            "weather_risk_factor": w_factor,
            "sentiment": sentiment,
            "sentiment_risk_factor": s_factor,
        }
        self._record_batch(
            "adjusted_suppliers", place, batch,
            weather_risk_factor=w_factor, sentiment_risk_factor=s_factor,
        )
        return summary

    # ---- routes ----

    def _locate_weather(self, place: str) -> WeatherReport:
        location = self._geocode(place)
        if location is None:
            raise ExternalServiceError(f"Unknown location: {place}")
        return self._fetch_weather(place=location.name or place, lat=location.lat, lon=location.lon)

    def assess_land_route(self, origin: str, destination: str) -> dict:
        """Pick the safest supplier for a land route.

        Each supplier's score is multiplied by the weather factor at its own
        location, then by the worse of the origin/destination weather factors.
        Suppliers without a location are left out.
        """
        suppliers = [s for s in self.repo.list_suppliers() if s.location]
        if not suppliers:
            raise EmptyBatch("No suppliers with a location to assess")

        origin_factor = weather.weather_risk_factor(self._locate_weather(origin))
        destination_factor = weather.weather_risk_factor(self._locate_weather(destination))
        route_factor = max(origin_factor, destination_factor)

        base = score_batch([s.to_input() for s in suppliers], self.config)
        adjusted: list[RiskResult] = []
        for supplier, result in zip(suppliers, base.results):
            local = weather.weather_risk_factor(self._locate_weather(supplier.location))
            logger.info("%s: local factor %.2f, route factor %.2f", supplier.name, local, route_factor)
            adjusted.append(apply_external_factors(result, [local, route_factor]))

        batch = ScoringBatch(results=adjusted, best_candidate=select_best(adjusted))
        self._record_batch("land_route", f"{origin} → {destination}", batch, route_risk_factor=route_factor)
        return {
            "origin": origin,
            "destination": destination,
            "route_risk_factor": route_factor,
            "batch": batch,
        }

    def assess_sea_route(self, place: str) -> SeaAssessment:
        """Weather at the port, the model's assessment, and an engine score of it.

        The model's -10 (very risky) .. +10 (very safe) score is turned into a
        signed risk signal: -10 → +100, +10 → -100.
        """
        report = self._fetch_weather(place=place)
        assessment = self._assess_sea(place, report)

        candidate = RiskInput(
            label=place,
            raw_signal=-assessment.risk_score * 10.0,
            signal_scale=SignalScale.SIGNED,
        )
        assessment = assessment.model_copy(update={"result": score_candidate(candidate, self.config)})
        self.repo.record_assessment(
            "sea_route", place, assessment.result.risk_percentage, assessment.result.risk_level,
            assessment.model_dump(mode="json", exclude={"weather": {"raw"}}),
        )
        return assessment

    def insurance_recommendations(self, location: str) -> list[InsuranceRecommendation]:
        recs = self._recommend_insurance(location)
        self.repo.record_assessment(
            "insurance", location, payload={"recommendations": [r.model_dump() for r in recs]},
        )
        return recs

    # ---- helpers ----

    def _record_batch(self, kind: str, subject: str, batch: ScoringBatch, **extra: float) -> None:
        best = batch.best_candidate
        self.repo.record_assessment(
            kind, subject, best.risk_percentage, best.risk_level,
            {
                "best_candidate": best.label,
                "results": [r.model_dump(mode="json") for r in batch.results],
                **extra,
            },
        )
