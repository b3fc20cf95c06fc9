"""Exception types shared by the engine, the index services and the API."""

from __future__ import annotations

from datetime import date
from typing import List, Optional


class CalculadoraError(Exception):
    """Base class for every error raised by this package."""


class InvalidDateRange(CalculadoraError):
    """A start date falls after the calculation date.

    The engine never lets this escape: it logs a warning and uses a neutral
    factor (1) or percentage (0) instead.
    """

    def __init__(self, start: date, end: date, label: str = "período"):
        self.start = start
        self.end = end
        self.label = label
        super().__init__(
            f"{label}: data inicial {start.strftime('%d/%m/%Y')} "
            f"posterior à data final {end.strftime('%d/%m/%Y')}"
        )


class DataSourceUnavailable(CalculadoraError):
    """The index data source could not be reached or answered with an error."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ClaimValidationError(CalculadoraError, ValueError):
    """Claimant input is incomplete; carries user-facing messages."""

    def __init__(self, errors: List[str]):
        super().__init__("; ".join(errors))
        self.errors = errors


class ExtractionFormatError(CalculadoraError, ValueError):
    """The extraction step returned something that is not a JSON object."""
