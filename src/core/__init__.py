"""
Core library: Reusable, service-agnostic components.

This package contains the infrastructure shared by the provisioning service
SDK. Nothing in here knows about enrollments or the provisioning REST API.

Modules:
    errors      - Error classification and exception hierarchy
    logging     - Structured JSON logging with context propagation
    utils       - JSON serialization helpers

Design Principles:
    - No dependencies on the provisioning service package
    - All modules are independently testable
    - Async-first where applicable
    - Type hints throughout
"""

from .types import AuthorizationHeaderProvider, ErrorCategory, ETagHolder

__version__ = "0.1.0"

__all__ = [
    "ErrorCategory",
    "AuthorizationHeaderProvider",
    "ETagHolder",
]
