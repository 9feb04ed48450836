"""
Core types and protocols used across modules.

This module provides base types, enums, and protocol definitions that are
shared across the core library to ensure consistency and type safety.
"""

from enum import Enum
from typing import Protocol, runtime_checkable


class ErrorCategory(Enum):
    """
    Classification of error types for handling decisions.

    Callers use the category to decide whether an operation is worth
    attempting again. The SDK itself never retries.

    Categories:
        TRANSIENT: Temporary failures that may succeed if attempted again
                   (e.g., network timeouts, 429/503 errors)
        AUTH: Authentication failures requiring new credentials
              (e.g., 401 errors, expired SAS tokens)
        PERMANENT: Failures that won't succeed if attempted again
                   (e.g., 404, validation errors, precondition failures)
        UNKNOWN: Unclassified errors
    """

    TRANSIENT = "transient"
    AUTH = "auth"
    PERMANENT = "permanent"
    UNKNOWN = "unknown"


class AuthorizationHeaderProvider(Protocol):
    """
    Protocol for authorization header providers.

    Implementations produce the current value of the ``Authorization``
    header (SAS token, bearer token, ...). The transport asks for a fresh
    value on every request.
    """

    def get_authorization_header(self) -> str:
        """
        Get the authorization header value for the next request.

        Returns:
            Header value, e.g. "SharedAccessSignature sr=...&sig=..."
        """
        ...


@runtime_checkable
class ETagHolder(Protocol):
    """Entity carrying an ETag used for optimistic concurrency."""

    etag: str | None


__all__ = [
    "ErrorCategory",
    "AuthorizationHeaderProvider",
    "ETagHolder",
]
