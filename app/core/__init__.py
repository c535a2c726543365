"""Core exceptions and middleware."""

from app.core.exceptions import (
    AppException,
    BadRequestError,
    ExternalServiceError,
    InvalidBookingStatus,
    ListingNotAvailable,
    NotFoundError,
    UnresolvableReferenceError,
    ValidationError,
)

__all__ = [
    "AppException",
    "BadRequestError",
    "ExternalServiceError",
    "InvalidBookingStatus",
    "ListingNotAvailable",
    "NotFoundError",
    "UnresolvableReferenceError",
    "ValidationError",
]
