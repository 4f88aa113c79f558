"""Domain error taxonomy shared by services, dispatchers and routes."""
from __future__ import annotations


class LMSError(Exception):
    """Base class; ``status_code`` is what the API layer responds with."""

    status_code = 500

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(LMSError):
    """Malformed input, rejected before any dispatch attempt."""

    status_code = 400


class NotFoundError(LMSError):
    status_code = 404


class StateConflictError(LMSError):
    """The requested transition is not allowed from the record's current state."""

    status_code = 409


class ConfigurationError(LMSError):
    """Inactive template, missing recipients, missing simulation config."""

    status_code = 422


class TransportError(LMSError):
    """An outbound side effect (SES, GoPhish) failed."""

    status_code = 502


class DiscountError(StateConflictError):
    status_code = 400


class DiscountInactive(DiscountError):
    def __init__(self) -> None:
        super().__init__("Discount is not active")


class DiscountExpired(DiscountError):
    def __init__(self) -> None:
        super().__init__("Discount has expired")


class SeatsThresholdNotMet(DiscountError):
    def __init__(self, threshold: int) -> None:
        super().__init__(f"Seats purchased must be at least {threshold} to apply this discount")
        self.threshold = threshold


class DiscountBundleMismatch(DiscountError):
    def __init__(self) -> None:
        super().__init__("Discount is not applicable to this bundle")


class InvalidDiscountConfiguration(DiscountError):
    def __init__(self) -> None:
        super().__init__("Invalid discount configuration")
