"""
Error classification and exception hierarchy.

Provides:
- ErrorCategory enum for classifying errors
- SdkError base for typed exceptions
- Classification utilities for error handling
"""

from core.errors.exceptions import (
    # Enums
    ErrorCategory,
    # Base classes
    SdkError,
    # Classification utilities
    classify_exception,
    classify_http_status,
    is_transient_error,
)

__all__ = [
    # Enums
    "ErrorCategory",
    # Base classes
    "SdkError",
    # Classification utilities
    "is_transient_error",
    "classify_http_status",
    "classify_exception",
]
