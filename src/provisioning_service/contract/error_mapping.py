"""
Mapping of HTTP status codes to typed exceptions.

An error mapping is a read-only ``{status: factory}`` table where each
factory is an async callable turning the (still open) error response into
an exception. Per-call overrides are merged over the defaults for each
request; the defaults are never modified.
"""

import json
import logging
from collections.abc import Awaitable, Callable, Mapping
from types import MappingProxyType
from typing import Any

import aiohttp

from core.errors.exceptions import classify_http_status
from provisioning_service.exceptions import ProvisioningServiceHttpError

logger = logging.getLogger(__name__)

ErrorFactory = Callable[[aiohttp.ClientResponse], Awaitable[Exception]]
ErrorMapping = Mapping[int, ErrorFactory]

DEFAULT_ERROR_STATUSES = (400, 401, 403, 404, 409, 412, 429, 500, 502, 503, 504)


def parse_error_body(body: str) -> tuple[str, str | None, str | None]:
    """
    Extract (message, error_code, tracking_id) from an error response body.

    The service answers with ``{"errorCode": ..., "trackingId": ...,
    "message": ...}``; anything else is used verbatim as the message.
    """
    try:
        data: Any = json.loads(body)
    except ValueError:
        return body, None, None

    if not isinstance(data, dict):
        return body, None, None

    message = data.get("message") or data.get("Message") or body
    error_code = data.get("errorCode")
    tracking_id = data.get("trackingId")
    return (
        str(message),
        str(error_code) if error_code is not None else None,
        str(tracking_id) if tracking_id is not None else None,
    )


async def read_error_body(response: aiohttp.ClientResponse) -> str:
    """Read an error response body, falling back to the status line."""
    try:
        body = await response.text()
    except (aiohttp.ClientError, UnicodeDecodeError) as e:
        logger.debug("Unable to read error response body", extra={"error": str(e)})
        body = ""
    if not body:
        return f"HTTP {response.status} {response.reason or ''}".strip()
    return body


async def get_exception_message(response: aiohttp.ClientResponse) -> str:
    """Message to report for an error response."""
    message, _, _ = parse_error_body(await read_error_body(response))
    return message


async def map_http_error(response: aiohttp.ClientResponse) -> Exception:
    """Default factory: ProvisioningServiceHttpError categorized by status."""
    message, error_code, tracking_id = parse_error_body(await read_error_body(response))
    return ProvisioningServiceHttpError(
        status_code=response.status,
        message=message,
        error_code=error_code,
        tracking_id=tracking_id,
        category=classify_http_status(response.status),
    )


def build_default_error_mapping() -> ErrorMapping:
    """Read-only mapping of the service's usual error statuses."""
    return MappingProxyType({status: map_http_error for status in DEFAULT_ERROR_STATUSES})


def merge_error_mapping(
    defaults: ErrorMapping,
    overrides: ErrorMapping | None = None,
) -> dict[int, ErrorFactory]:
    """Layer call-specific overrides over the default mapping."""
    merged = dict(defaults)
    if overrides:
        merged.update(overrides)
    return merged


__all__ = [
    "ErrorFactory",
    "ErrorMapping",
    "DEFAULT_ERROR_STATUSES",
    "parse_error_body",
    "read_error_body",
    "get_exception_message",
    "map_http_error",
    "build_default_error_mapping",
    "merge_error_mapping",
]
