"""Exception types raised by the supplier engine."""
from __future__ import annotations

import enum


class AuthFailure(enum.Enum):
    INVALID_CREDENTIALS = "invalid_credentials"
    PROTOCOL_SHAPE_CHANGED = "protocol_shape_changed"
    UNKNOWN = "unknown"


class AuthError(RuntimeError):
    """Raised when a login attempt fails; fatal for that attempt."""

    def __init__(self, reason: AuthFailure, message: str | None = None) -> None:
        super().__init__(message or reason.value.replace("_", " "))
        self.reason = reason


class ProtocolShapeError(RuntimeError):
    """Raised when a structural token or marker is missing from an upstream document."""


class ParseError(ValueError):
    """Raised when a single record cannot be parsed; never escapes the extraction engine."""


class VendorSearchError(RuntimeError):
    """Describes why one vendor's search produced no usable result."""

    def __init__(self, vendor_code: str, message: str) -> None:
        super().__init__(f"{vendor_code}: {message}")
        self.vendor_code = vendor_code


class CacheError(RuntimeError):
    """Raised by the result cache backend; always degraded by the cache facade."""


class NotLoggedInError(RuntimeError):
    """Raised when an operation needs an authenticated session that does not exist yet."""


class SearchTimeoutError(TimeoutError):
    """Raised when a multi-vendor search exceeds its wall-clock bound."""
