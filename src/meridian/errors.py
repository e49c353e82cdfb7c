"""Local error taxonomy for request normalization."""
from __future__ import annotations


class ValidationError(ValueError):
    """Raised when a required field is missing or malformed."""

    status_code = 400

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class NotFoundError(LookupError):
    """Raised when the vendor reports a specific resource does not exist."""

    status_code = 404


class FeatureDisabledError(RuntimeError):
    """Raised for paths that are deliberately switched off."""

    status_code = 422


def require(value: object, field: str, message: str | None = None) -> None:
    """Raise ValidationError naming `field` when `value` is empty."""
    if value is None or value == "":
        raise ValidationError(message or f"{field} is required", field=field)
