"""Gemini generateContent client and the prompts built on top of it."""

from __future__ import annotations

import json
import logging
import re

import httpx

from shiprisk.config import GEMINI_API_KEY, GEMINI_API_URL, GEMINI_MODEL, HTTP_TIMEOUT
from shiprisk.errors import ExternalServiceError
from shiprisk.models import InsuranceRecommendation, SeaAssessment, WeatherReport

logger = logging.getLogger(__name__)

_FENCE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)

SEA_PROMPT = """
Analyze this weather forecast data and return ONLY a JSON object with the following fields:
- assessment: 4-5 crisp, very specific points (array of strings).
- riskScore: a number between -10 (very risky) to +10 (very safe).
- riskLevel: one of ["Very Risky", "Risky", "Moderate", "Safe", "Very Safe"].
- recommendation: "Send the package" or "Do not send the package".

Weather data: {weather}
"""

SENTIMENT_PROMPT = """
Rate the overall sentiment of these logistics news headlines for freight transport safety.
Return ONLY a JSON object: {{"sentiment": <number between -10 (very negative) and +10 (very positive)>}}

Headlines:
{headlines}
"""

INSURANCE_PROMPT = """
For the location '{location}', provide an array of 3 insurance recommendations.
Return ONLY a JSON object {{"recommendations": [...]}} where each recommendation has:
- type: type of insurance that can minimize risks,
- risksCovered: array of risks covered,
- uniqueness: uniqueness of the insurance,
- facilities: array of facilities provided,
- whyAsset: why it is an asset,
- description: a brief and precise description.
Ensure that each recommendation is specific, precise, and not vague.
"""


def generate(prompt: str, api_key: str | None = None, model: str | None = None) -> str:
    """Send one prompt and return the first candidate's text."""
    key = api_key or GEMINI_API_KEY
    if not key:
        raise ExternalServiceError("Missing GEMINI_API_KEY")

    url = f"{GEMINI_API_URL}/models/{model or GEMINI_MODEL}:generateContent"
    payload = {"contents": [{"parts": [{"text": prompt}]}]}
    logger.debug("gemini request (%d chars)", len(prompt))
    try:
        resp = httpx.post(url, params={"key": key}, json=payload, timeout=HTTP_TIMEOUT)
        data = resp.json()
    except (httpx.HTTPError, ValueError) as exc:
        logger.warning("gemini request failed: %s", exc)
        raise ExternalServiceError(f"Gemini API Error: {exc}") from exc

    if resp.is_error:
        message = (data.get("error") or {}).get("message", "Unknown error") if isinstance(data, dict) else "Unknown error"
        logger.warning("gemini returned %s: %s", resp.status_code, message)
        raise ExternalServiceError(f"Gemini API Error: {message}")

    try:
        return data["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError) as exc:
        raise ExternalServiceError("Gemini response has no candidate text") from exc


def parse_json(text: str) -> dict:
    """Parse a JSON object out of model text, tolerating Markdown code fences."""
    cleaned = _FENCE.sub("", text.strip())
    try:
        data = json.loads(cleaned)
    except ValueError as exc:
        raise ExternalServiceError("Failed to parse Gemini response as JSON") from exc
    if not isinstance(data, dict):
        raise ExternalServiceError("Gemini response JSON is not an object")
    return data


def sentiment_label(risk_score: float) -> tuple[str, str]:
    """Map a -10..+10 safety score to (label, color)."""
    if risk_score > 5:
        return "Positive Sentiment", "green"
    elif risk_score > 0:
        return "Slightly Positive", "lightgreen"
    elif risk_score < -5:
        return "Negative Sentiment", "red"
    elif risk_score < 0:
        return "Slightly Negative", "orange"
    else:
        return "Neutral", "gray"


def assess_sea_route(place: str, weather: WeatherReport, **kwargs) -> SeaAssessment:
    text = generate(SEA_PROMPT.format(weather=json.dumps(weather.raw or weather.model_dump())), **kwargs)
    data = parse_json(text)

    try:
        risk_score = max(-10.0, min(10.0, float(data["riskScore"])))
    except (KeyError, TypeError, ValueError) as exc:
        raise ExternalServiceError("Gemini response is missing a numeric riskScore") from exc

    label, color = sentiment_label(risk_score)
    assessment = data.get("assessment") or []
    if isinstance(assessment, str):
        assessment = [assessment]

    return SeaAssessment(
        place=place,
        assessment=[str(a) for a in assessment],
        risk_score=risk_score,
        recommendation=str(data.get("recommendation", "")),
        sentiment=label,
        color=color,
        weather=weather,
    )


def score_sentiment(texts: list[str], **kwargs) -> float:
    """Model-derived sentiment of the given texts, in [-10, +10]. Neutral when empty."""
    if not texts:
        return 0.0
    headlines = "\n".join(f"- {t}" for t in texts)
    data = parse_json(generate(SENTIMENT_PROMPT.format(headlines=headlines), **kwargs))
    try:
        score = float(data["sentiment"])
    except (KeyError, TypeError, ValueError) as exc:
        raise ExternalServiceError("Gemini response is missing a numeric sentiment") from exc
    return max(-10.0, min(10.0, score))


def sentiment_risk_factor(sentiment: float) -> float:
    """Negative news raises risk: -10 → 1.5, 0 → 1.0, +10 → 0.5."""
    return round(1.0 - sentiment / 20.0, 4)


def _as_list(value: object) -> list[str]:
    if value is None:
        return []
    if isinstance(value, list):
        return [str(v) for v in value]
    return [str(value)]


def insurance_recommendations(location: str, **kwargs) -> list[InsuranceRecommendation]:
    data = parse_json(generate(INSURANCE_PROMPT.format(location=location), **kwargs))
    items = data.get("recommendations") or []
    if not isinstance(items, list) or not items:
        raise ExternalServiceError("No recommendations received from Gemini API.")

    recs: list[InsuranceRecommendation] = []
    for item in items:
        if not isinstance(item, dict):
            continue
        recs.append(InsuranceRecommendation(
            type=str(item.get("type", "")),
            risks_covered=_as_list(item.get("risksCovered")),
            uniqueness=str(item.get("uniqueness", "")),
            facilities=_as_list(item.get("facilities")),
            why_asset=str(item.get("whyAsset", "")),
            description=str(item.get("description", "")),
        ))
    if not recs:
        raise ExternalServiceError("No recommendations received from Gemini API.")
    return recs
