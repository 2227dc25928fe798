"""Environment, API endpoints, seed data, and scoring configuration."""

from __future__ import annotations

import math
import os

from dotenv import load_dotenv
from pydantic import BaseModel, model_validator

from shiprisk.errors import ConfigurationError

load_dotenv()

# --- API keys ---
OPENWEATHER_API_KEY = os.getenv("OPENWEATHER_API_KEY", "")
GEMINI_API_KEY = os.getenv("GEMINI_API_KEY", "")
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")
NEWS_API_KEY = os.getenv("NEWS_API_KEY", "")

# --- APIs ---
OPENWEATHER_API_URL = "https://api.openweathermap.org"
GEMINI_API_URL = "https://generativelanguage.googleapis.com/v1beta"
NEWS_API_URL = "https://newsapi.org/v2"
HTTP_TIMEOUT = float(os.getenv("HTTP_TIMEOUT", "30"))

# --- Database ---
DB_PATH = os.getenv("SHIPRISK_DB_PATH", "shiprisk.db")

# --- Logging ---
LOG_LEVEL = os.getenv("SHIPRISK_LOG_LEVEL", "WARNING")

# --- Seed catalogue (copied into the repository, never mutated here) ---
DEFAULT_SUPPLIERS = [
    {"name": "Reliable Transports", "cost": 50_000, "rating": 1.0, "reviews": 5, "location": "Mumbai"},
    {"name": "Speedy Logistics", "cost": 55_000, "rating": 3.0, "reviews": 1, "location": "Delhi"},
    {"name": "Quick Haulers", "cost": 48_000, "rating": 7.0, "reviews": 3, "location": "Chennai"},
    {"name": "Safe cargo Movers", "cost": 52_000, "rating": 9.0, "reviews": 2, "location": "Kolkata"},
]

# Signals the engine knows how to normalize
SIGNALS = ("cost", "rating", "reviews", "signal")

WEIGHT_TOLERANCE = 1e-9


# --- Scoring Configuration ---
class ScoringConfig(BaseModel):
    """All weights and bounds in one place. Validated once, at construction."""

    # Cost interpolation bounds: <= min_cost → 0 risk, >= max_cost → 100 risk
    min_cost: float = 40_000.0
    max_cost: float = 60_000.0

    # One weight set per signal combination (each must sum to 1.0)
    weight_sets: dict[str, dict[str, float]] = {
        "supplier": {"cost": 0.5, "rating": 0.3, "reviews": 0.2},
        "reputation": {"rating": 0.6, "reviews": 0.4},
        "location": {"signal": 1.0},
        "supplier_signal": {"cost": 0.4, "rating": 0.25, "reviews": 0.15, "signal": 0.2},
    }

    @model_validator(mode="after")
    def check_weights(self) -> ScoringConfig:
        if not self.max_cost > self.min_cost:
            raise ConfigurationError(
                f"max_cost ({self.max_cost}) must be greater than min_cost ({self.min_cost})"
            )

        seen: dict[frozenset[str], str] = {}
        for name, weights in self.weight_sets.items():
            if not weights:
                raise ConfigurationError(f"weight set '{name}' is empty")
            unknown = set(weights) - set(SIGNALS)
            if unknown:
                raise ConfigurationError(
                    f"weight set '{name}' names unknown signals: {', '.join(sorted(unknown))}"
                )
            if any(w < 0 for w in weights.values()):
                raise ConfigurationError(f"weight set '{name}' has a negative weight")
            total = sum(weights.values())
            if not math.isclose(total, 1.0, rel_tol=0.0, abs_tol=WEIGHT_TOLERANCE):
                raise ConfigurationError(f"weight set '{name}' sums to {total}, expected 1.0")

            key = frozenset(weights)
            if key in seen:
                raise ConfigurationError(
                    f"weight sets '{seen[key]}' and '{name}' cover the same signals"
                )
            seen[key] = name
        return self

    def weights_for(self, signals: frozenset[str]) -> tuple[str, dict[str, float]] | None:
        """Return (name, weights) of the set declared for exactly these signals."""
        for name, weights in self.weight_sets.items():
            if frozenset(weights) == signals:
                return name, weights
        return None


SCORING = ScoringConfig()
