"""
REST transport for the provisioning service.

Architecture:
- api_http.py: ContractApiHttp, the request/response pipeline
- error_mapping.py: status code -> exception factories, merge-on-call
- constants.py: header names, content types, error codes
"""

from provisioning_service.contract.api_http import (
    DEFAULT_TIMEOUT_SECONDS,
    ContractApiHttp,
    PreparedRequest,
    RawResponse,
    is_mapped_to_exception,
    is_success_status,
    quote_etag,
)
from provisioning_service.contract.error_mapping import (
    DEFAULT_ERROR_STATUSES,
    ErrorFactory,
    ErrorMapping,
    build_default_error_mapping,
    get_exception_message,
    map_http_error,
    merge_error_mapping,
    parse_error_body,
)

__all__ = [
    # Transport
    "ContractApiHttp",
    "RawResponse",
    "PreparedRequest",
    "DEFAULT_TIMEOUT_SECONDS",
    "is_mapped_to_exception",
    "is_success_status",
    "quote_etag",
    # Error mapping
    "ErrorFactory",
    "ErrorMapping",
    "DEFAULT_ERROR_STATUSES",
    "build_default_error_mapping",
    "merge_error_mapping",
    "map_http_error",
    "get_exception_message",
    "parse_error_body",
]
