"""Exception taxonomy shared by the engine, clients, and CLI."""

from __future__ import annotations


class ShipRiskError(Exception):
    """Base class for every error raised by shiprisk."""


class InvalidInput(ShipRiskError):
    """A candidate failed validation (out-of-range or nothing to score)."""

    def __init__(self, message: str, index: int | None = None, label: str | None = None) -> None:
        super().__init__(message)
        self.index = index
        self.label = label


class EmptyBatch(ShipRiskError):
    """Batch scoring was called with zero candidates."""


class ConfigurationError(ShipRiskError):
    """Weight sets or bounds are inconsistent. Raised when config is built."""


class ExternalServiceError(ShipRiskError):
    """A weather, geocoding, news, or generative-AI call failed."""
