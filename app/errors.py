"""Error taxonomy and result types shared across the request pipeline."""

from dataclasses import dataclass
from typing import Any, Optional, Union


class ServiceError(Exception):
    """Base error carrying the HTTP status it maps to."""

    status_code = 500

    def __init__(self, message: Any, status_code: Optional[int] = None):
        # Upstream SDKs occasionally hand us non-string messages
        self.message = str(message)
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


class ConfigurationError(ServiceError):
    """A required secret is absent at time of use."""

    status_code = 500


class ValidationError(ServiceError):
    """Malformed portfolio payload."""

    status_code = 400


class AuthError(ServiceError):
    """Missing or incorrect shared secret."""

    status_code = 401

    def __init__(self, message: Any = "Unauthorized"):
        super().__init__(message)


class PayloadTooLargeError(ServiceError):
    status_code = 413

    def __init__(self, message: Any = "Request body too large"):
        super().__init__(message)


class CorsError(ServiceError):
    """Origin not in the allow-list. Reported as a generic server error."""

    status_code = 500

    def __init__(self, message: Any = "Not allowed by CORS"):
        super().__init__(message)


class UpstreamPriceError(ServiceError):
    """A single quote lookup failed. Logged, never surfaced to the caller."""


class UpstreamAnalysisError(ServiceError):
    """The completion provider failed; keeps the provider status when known."""

    def __init__(self, message: Any, status_code: Optional[int] = None):
        super().__init__(message or "AI analysis failed", status_code or 500)


@dataclass(frozen=True)
class Ok:
    value: Any


@dataclass(frozen=True)
class Err:
    error: ServiceError


Result = Union[Ok, Err]
