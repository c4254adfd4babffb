"""Custom exceptions for the signal radar.

Scoring outcomes (no match, below threshold) are not errors and are reported
through ``Evaluation`` instead. Only transport and input-shape failures live here.
"""


class RadarError(Exception):
    """Base exception for all radar errors."""


class DataUnavailable(RadarError):
    """Raised when market data cannot be obtained after retries and mirror rotation."""

    def __init__(self, message: str, path: str | None = None, last_error: str | None = None) -> None:
        super().__init__(message)
        self.path = path
        self.last_error = last_error


class InsufficientSeries(RadarError):
    """Raised when an indicator that has no neutral default receives an empty series."""
