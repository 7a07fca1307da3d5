"""Error taxonomy for qaza debt calculation and tracking."""

from datetime import date


class QazaError(Exception):
    """Base class for qaza tracker errors."""


class ConfigurationError(QazaError):
    """Raised when no usable period-start reference was supplied."""


class ValidationError(QazaError):
    """Raised when request inputs or exclusion periods are invalid."""

    def __init__(self, violations: list[str]) -> None:
        self.violations = list(violations)
        super().__init__("; ".join(self.violations) or "Invalid input")


class ExternalServiceError(QazaError):
    """Raised when the calendar authority is unreachable or answers badly."""


class NotFoundError(QazaError):
    """Raised when an operation needs a debt record that was never calculated."""


class MaterializationError(QazaError):
    """Raised when a calendar chunk could not be written."""

    def __init__(self, message: str, resume_from: date) -> None:
        self.resume_from = resume_from
        super().__init__(message)
