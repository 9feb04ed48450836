"""HTTP transport for the provisioning service REST API."""

import asyncio
import json
import logging
import time
import uuid
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from http import HTTPStatus
from types import MappingProxyType
from typing import Any, TypeVar

import aiohttp
from pydantic import BaseModel

from core.errors.exceptions import classify_exception, is_transient_error
from core.logging.context import get_log_context
from core.logging.context_managers import LogContext
from core.logging.utilities import log_exception
from core.types import AuthorizationHeaderProvider, ETagHolder
from core.utils.json_serializers import strict_json_serializer
from provisioning_service.contract.constants import (
    AUTHORIZATION_HEADER,
    BATCHED_MESSAGE_CONTENT_TYPE,
    BULK_REGISTRY_OPERATION_FAILURE,
    CONTENT_ENCODING_HEADER,
    CONTENT_TYPE_HEADER,
    ETAG_HEADER,
    IF_MATCH_HEADER,
    IOTHUB_ERROR_CODE_HEADER,
    JSON_CONTENT_TYPE,
    MEDIA_TYPE_FOR_DEVICE_MANAGEMENT_APIS,
    USER_AGENT_HEADER,
    get_client_version,
)
from provisioning_service.contract.error_mapping import (
    ErrorMapping,
    build_default_error_mapping,
    get_exception_message,
    merge_error_mapping,
)
from provisioning_service.exceptions import (
    ProvisioningServiceClientError,
    ProvisioningServiceTransportError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_TIMEOUT_SECONDS = 100.0
DEFAULT_SLOW_REQUEST_SECONDS = 2.0


@dataclass(frozen=True)
class RawResponse:
    """Undecoded response, for callers that want status, headers and body as-is."""

    status: int
    headers: Mapping[str, str]
    body: bytes

    def json(self) -> Any:
        return json.loads(self.body) if self.body else None


@dataclass
class PreparedRequest:
    """Request being assembled before it is sent."""

    method: str
    url: str
    headers: dict[str, str] = field(default_factory=dict)
    data: bytes | str | None = None


@dataclass
class _Outcome:
    status: int
    result: Any = None
    error: Exception | None = None


class _CallerCancelled(Exception):
    """The caller's cancel event fired while the request was in flight."""


def is_success_status(status: int) -> bool:
    return 200 <= status < 300


def is_mapped_to_exception(response: aiohttp.ClientResponse) -> bool:
    """
    Whether a response must be turned into an exception.

    Any non-2xx response is, except one flagged with the bulk registry
    operation failure error code: its body holds per-item results.
    """
    if response.headers.get(IOTHUB_ERROR_CODE_HEADER) == BULK_REGISTRY_OPERATION_FAILURE:
        return False
    return not is_success_status(response.status)


def quote_etag(etag: str) -> str:
    """Wrap an ETag in double quotes unless it already has them."""
    if not etag.startswith('"'):
        etag = f'"{etag}'
    if not etag.endswith('"') or len(etag) == 1:
        etag = f'{etag}"'
    return etag


class ContractApiHttp:
    """
    Async transport issuing authenticated REST calls to the provisioning service.

    Each call makes exactly one attempt. Responses are decoded into the
    requested result type; non-success statuses are turned into exceptions
    through the error mapping (call-specific overrides layered over the
    defaults given at construction).

    Two HTTP sessions are kept for the lifetime of the transport: one with
    the default operation timeout and one without a session timeout, used
    when a call asks for its own timeout. Both are created lazily inside
    the running event loop and released by :meth:`close`.

    Usage:
        async with ContractApiHttp(url, auth_provider, build_default_error_mapping()) as api:
            enrollment = await api.get(
                "enrollments/my-device", IndividualEnrollment
            )
    """

    def __init__(
        self,
        base_address: str,
        auth_header_provider: AuthorizationHeaderProvider,
        default_error_mapping: ErrorMapping | None = None,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        pre_request_action: Callable[[aiohttp.ClientSession], None] | None = None,
        slow_request_seconds: float = DEFAULT_SLOW_REQUEST_SECONDS,
    ):
        self.base_address = base_address.rstrip("/") if base_address else ""

        if not self.base_address:
            raise ValueError("ContractApiHttp requires 'base_address'")

        if not self.base_address.startswith(("http://", "https://")):
            raise ValueError(
                f"ContractApiHttp base_address must start with http:// or https://, got: {self.base_address!r}"
            )

        if auth_header_provider is None:
            raise ValueError("ContractApiHttp requires 'auth_header_provider'")

        if timeout_seconds <= 0:
            raise ValueError(f"timeout_seconds must be > 0, got {timeout_seconds}")

        self._auth_header_provider = auth_header_provider
        self._default_error_mapping: ErrorMapping = MappingProxyType(
            dict(default_error_mapping or {})
        )
        self.timeout_seconds = timeout_seconds
        self.slow_request_seconds = slow_request_seconds
        self._pre_request_action = pre_request_action

        self._session: aiohttp.ClientSession | None = None
        self._session_with_per_request_timeout: aiohttp.ClientSession | None = None
        self._closed = False

        logger.info(
            "ContractApiHttp initialized",
            extra={
                "base_url": self.base_address,
                "timeout_seconds": self.timeout_seconds,
            },
        )

    @classmethod
    def from_config(
        cls,
        config: Any,
        auth_header_provider: AuthorizationHeaderProvider,
        default_error_mapping: ErrorMapping | None = None,
        pre_request_action: Callable[[aiohttp.ClientSession], None] | None = None,
    ) -> "ContractApiHttp":
        """Create a transport from a ProvisioningConfig."""
        if default_error_mapping is None:
            default_error_mapping = build_default_error_mapping()
        return cls(
            base_address=config.service_url,
            auth_header_provider=auth_header_provider,
            default_error_mapping=default_error_mapping,
            timeout_seconds=config.timeout_seconds,
            pre_request_action=pre_request_action,
            slow_request_seconds=config.slow_request_seconds,
        )

    async def __aenter__(self) -> "ContractApiHttp":
        self._get_session(per_request_timeout=False)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def default_error_mapping(self) -> ErrorMapping:
        return self._default_error_mapping

    def _create_session(self, timeout: aiohttp.ClientTimeout) -> aiohttp.ClientSession:
        session = aiohttp.ClientSession(
            timeout=timeout,
            headers={"Accept": MEDIA_TYPE_FOR_DEVICE_MANAGEMENT_APIS},
        )
        if self._pre_request_action is not None:
            self._pre_request_action(session)
        return session

    def _get_session(self, per_request_timeout: bool) -> aiohttp.ClientSession:
        if self._closed:
            raise RuntimeError("ContractApiHttp is closed, cannot send requests")

        if per_request_timeout:
            if (
                self._session_with_per_request_timeout is None
                or self._session_with_per_request_timeout.closed
            ):
                self._session_with_per_request_timeout = self._create_session(
                    aiohttp.ClientTimeout(total=None)
                )
            return self._session_with_per_request_timeout

        if self._session is None or self._session.closed:
            self._session = self._create_session(
                aiohttp.ClientTimeout(total=self.timeout_seconds)
            )
        return self._session

    async def close(self) -> None:
        """Release both HTTP sessions. Closing twice is a no-op."""
        if self._closed:
            return
        self._closed = True

        for session in (self._session, self._session_with_per_request_timeout):
            if session is not None and not session.closed:
                await session.close()
        self._session = None
        self._session_with_per_request_timeout = None
        await asyncio.sleep(0)
        logger.debug("ContractApiHttp closed", extra={"base_url": self.base_address})

    # =========================================================================
    # Operations
    # =========================================================================

    async def get(
        self,
        path: str,
        result_type: type[T] | None = dict,
        *,
        error_mapping_overrides: ErrorMapping | None = None,
        custom_headers: Mapping[str, str] | None = None,
        cancel_event: asyncio.Event | None = None,
        operation_timeout: float | None = None,
    ) -> T | None:
        """
        GET a resource.

        A 404 response is not an error: it yields ``None``.
        """

        async def process(response: aiohttp.ClientResponse) -> Any:
            if response.status == HTTPStatus.NOT_FOUND:
                return None
            return await self._read_response(response, result_type)

        return await self._execute(
            "GET",
            path,
            modify_request=lambda request: self._add_custom_headers(request, custom_headers),
            is_error_response=lambda response: not (
                is_success_status(response.status) or response.status == HTTPStatus.NOT_FOUND
            ),
            process_response=process,
            error_mapping_overrides=error_mapping_overrides,
            cancel_event=cancel_event,
            operation_timeout=operation_timeout,
        )

    async def put(
        self,
        path: str,
        entity: Any,
        *,
        result_type: type | None = None,
        error_mapping_overrides: ErrorMapping | None = None,
        custom_headers: Mapping[str, str] | None = None,
        cancel_event: asyncio.Event | None = None,
        operation_timeout: float | None = None,
    ) -> Any:
        """
        PUT an entity as JSON.

        The entity's ETag becomes a quoted ``If-Match`` precondition. The
        response is decoded into ``result_type`` (default: the entity's type).
        """
        if result_type is None:
            result_type = type(entity)

        def modify(request: PreparedRequest) -> None:
            self._insert_if_match(request, getattr(entity, "etag", None))
            self._add_custom_headers(request, custom_headers)
            self._set_json_body(request, entity)

        return await self._execute(
            "PUT",
            path,
            modify_request=modify,
            process_response=lambda response: self._read_response(response, result_type),
            error_mapping_overrides=error_mapping_overrides,
            cancel_event=cancel_event,
            operation_timeout=operation_timeout,
        )

    async def post(
        self,
        path: str,
        entity: Any = None,
        result_type: type[T] | None = dict,
        *,
        operation_timeout: float | None = None,
        custom_content_type: str | None = None,
        custom_content_encoding: list[str] | None = None,
        error_mapping_overrides: ErrorMapping | None = None,
        custom_headers: Mapping[str, str] | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> T | None:
        """
        POST a payload.

        ``bytes`` are sent raw, ``str`` is sent raw with the batched message
        content type, anything else is serialized to JSON. A positive
        ``operation_timeout`` different from the default timeout applies to
        this call only.
        """

        def modify(request: PreparedRequest) -> None:
            self._add_custom_headers(request, custom_headers)
            if isinstance(entity, (bytes, bytearray)):
                request.data = bytes(entity)
            elif isinstance(entity, str):
                request.data = entity
                request.headers[CONTENT_TYPE_HEADER] = BATCHED_MESSAGE_CONTENT_TYPE
            elif entity is not None:
                self._set_json_body(request, entity)

            if custom_content_type is not None:
                request.headers[CONTENT_TYPE_HEADER] = custom_content_type
            if custom_content_encoding:
                request.headers[CONTENT_ENCODING_HEADER] = ", ".join(custom_content_encoding)

        return await self._execute(
            "POST",
            path,
            modify_request=modify,
            process_response=lambda response: self._read_response(response, result_type),
            error_mapping_overrides=error_mapping_overrides,
            cancel_event=cancel_event,
            operation_timeout=operation_timeout,
        )

    async def delete(
        self,
        path: str,
        if_match: str | None = None,
        *,
        error_mapping_overrides: ErrorMapping | None = None,
        custom_headers: Mapping[str, str] | None = None,
        cancel_event: asyncio.Event | None = None,
        operation_timeout: float | None = None,
    ) -> None:
        """DELETE a resource, conditionally on ``if_match`` when given."""

        def modify(request: PreparedRequest) -> None:
            self._insert_if_match(request, if_match)
            self._add_custom_headers(request, custom_headers)

        await self._execute(
            "DELETE",
            path,
            modify_request=modify,
            process_response=None,
            error_mapping_overrides=error_mapping_overrides,
            cancel_event=cancel_event,
            operation_timeout=operation_timeout,
        )

    # =========================================================================
    # Request helpers
    # =========================================================================

    def _build_url(self, path: str) -> str:
        return f"{self.base_address}/{path.lstrip('/')}"

    @staticmethod
    def _add_custom_headers(
        request: PreparedRequest, custom_headers: Mapping[str, str] | None
    ) -> None:
        if custom_headers:
            request.headers.update(custom_headers)

    @staticmethod
    def _insert_if_match(request: PreparedRequest, if_match: str | None) -> None:
        if not if_match or not if_match.strip():
            return
        request.headers[IF_MATCH_HEADER] = quote_etag(if_match)

    @staticmethod
    def _set_json_body(request: PreparedRequest, entity: Any) -> None:
        if isinstance(entity, BaseModel):
            payload = entity.model_dump(mode="json", by_alias=True, exclude_none=True)
        else:
            payload = entity
        request.data = json.dumps(payload, default=strict_json_serializer).encode("utf-8")
        request.headers[CONTENT_TYPE_HEADER] = JSON_CONTENT_TYPE

    @staticmethod
    async def _read_response(response: aiohttp.ClientResponse, result_type: type | None) -> Any:
        """
        Decode a response body into ``result_type``.

        Supported result types: ``RawResponse``, ``bytes``, ``str``,
        ``dict``/``list``/``None`` (decoded JSON) and pydantic models
        (through ``from_service`` when the model defines it). An ETag
        response header overrides the ETag of the decoded entity.
        """
        body = await response.read()

        if result_type is RawResponse:
            return RawResponse(status=response.status, headers=dict(response.headers), body=body)
        if result_type is bytes:
            return body

        text = body.decode("utf-8") if body else ""
        if result_type is str:
            return text
        if not text.strip():
            return None

        payload = json.loads(text)
        if result_type is None or result_type in (dict, list):
            return payload

        if not (isinstance(result_type, type) and issubclass(result_type, BaseModel)):
            raise TypeError(f"Unsupported result type: {result_type!r}")

        from_service = getattr(result_type, "from_service", None)
        entity = from_service(payload) if from_service else result_type.model_validate(payload)

        etag = response.headers.get(ETAG_HEADER)
        if etag and etag.strip() and isinstance(entity, ETagHolder):
            entity.etag = etag
        return entity

    # =========================================================================
    # Execution pipeline
    # =========================================================================

    async def _execute(
        self,
        method: str,
        path: str,
        *,
        modify_request: Callable[[PreparedRequest], None] | None,
        process_response: Callable[[aiohttp.ClientResponse], Awaitable[Any]] | None,
        is_error_response: Callable[[aiohttp.ClientResponse], bool] = is_mapped_to_exception,
        error_mapping_overrides: ErrorMapping | None = None,
        cancel_event: asyncio.Event | None = None,
        operation_timeout: float | None = None,
    ) -> Any:
        """Run one request with a fresh request_id in the log context."""
        operation = None if get_log_context()["operation"] else method
        with LogContext(operation=operation, request_id=uuid.uuid4().hex[:16]):
            return await self._execute_request(
                method,
                path,
                modify_request=modify_request,
                process_response=process_response,
                is_error_response=is_error_response,
                error_mapping_overrides=error_mapping_overrides,
                cancel_event=cancel_event,
                operation_timeout=operation_timeout,
            )

    async def _execute_request(
        self,
        method: str,
        path: str,
        *,
        modify_request: Callable[[PreparedRequest], None] | None,
        process_response: Callable[[aiohttp.ClientResponse], Awaitable[Any]] | None,
        is_error_response: Callable[[aiohttp.ClientResponse], bool] = is_mapped_to_exception,
        error_mapping_overrides: ErrorMapping | None = None,
        cancel_event: asyncio.Event | None = None,
        operation_timeout: float | None = None,
    ) -> Any:
        error_mapping = merge_error_mapping(self._default_error_mapping, error_mapping_overrides)

        use_operation_timeout = (
            operation_timeout is not None
            and operation_timeout > 0
            and operation_timeout != self.timeout_seconds
        )
        session = self._get_session(per_request_timeout=use_operation_timeout)

        url = self._build_url(path)
        request = PreparedRequest(
            method=method,
            url=url,
            headers={
                AUTHORIZATION_HEADER: self._auth_header_provider.get_authorization_header(),
                USER_AGENT_HEADER: get_client_version(),
            },
        )

        logger.debug(
            "API request starting",
            extra={
                "api_endpoint": path,
                "http_method": method,
                "http_url": url,
                "timeout_seconds": operation_timeout if use_operation_timeout else self.timeout_seconds,
            },
        )

        start_time = time.monotonic()
        try:
            if modify_request is not None:
                modify_request(request)
            outcome = await self._run_linked(
                self._send(session, request, is_error_response, process_response, error_mapping),
                cancel_event,
                operation_timeout if use_operation_timeout else None,
            )

        except ProvisioningServiceClientError:
            raise

        except _CallerCancelled as e:
            logger.info(
                "API request cancelled by caller",
                extra={"api_endpoint": path, "http_method": method, "http_url": url},
            )
            raise ProvisioningServiceClientError(f"The {method} operation was cancelled.", cause=e) from e

        except TimeoutError as e:
            duration = time.monotonic() - start_time
            log_exception(
                logger,
                e,
                "API request timeout",
                api_endpoint=path,
                http_method=method,
                http_url=url,
                duration_seconds=round(duration, 3),
                error_category="transient",
            )
            raise ProvisioningServiceTransportError(f"The {method} operation timed out.", cause=e) from e

        except (aiohttp.ClientError, OSError) as e:
            log_exception(
                logger,
                e,
                "API connection error",
                api_endpoint=path,
                http_method=method,
                http_url=url,
                error_category="transient",
            )
            raise ProvisioningServiceTransportError(f"Connection error: {e}", cause=e) from e

        except (ValueError, TypeError) as e:
            logger.error(
                "API payload serialization error",
                exc_info=True,
                extra={"api_endpoint": path, "http_method": method, "http_url": url},
            )
            raise ProvisioningServiceTransportError(
                f"Failed to serialize or deserialize the {method} payload: {e}", cause=e
            ) from e

        except Exception as e:
            log_exception(
                logger,
                e,
                "API request failed unexpectedly",
                api_endpoint=path,
                http_method=method,
                http_url=url,
                error_category=classify_exception(e).value,
            )
            raise ProvisioningServiceClientError(
                str(e) or type(e).__name__, cause=e, is_transient=is_transient_error(e)
            ) from e

        duration = time.monotonic() - start_time

        if outcome.error is not None:
            logger.warning(
                "API request failed",
                extra={
                    "api_endpoint": path,
                    "http_method": method,
                    "http_url": url,
                    "http_status": outcome.status,
                    "error_type": type(outcome.error).__name__,
                    "error_category": getattr(getattr(outcome.error, "category", None), "value", None),
                    "duration_seconds": round(duration, 3),
                },
            )
            raise outcome.error

        slow = duration > self.slow_request_seconds
        logger.log(
            logging.INFO if slow else logging.DEBUG,
            "Slow API request" if slow else "API request succeeded",
            extra={
                "api_endpoint": path,
                "http_method": method,
                "http_status": outcome.status,
                "duration_seconds": round(duration, 3),
            },
        )
        return outcome.result

    async def _send(
        self,
        session: aiohttp.ClientSession,
        request: PreparedRequest,
        is_error_response: Callable[[aiohttp.ClientResponse], bool],
        process_response: Callable[[aiohttp.ClientResponse], Awaitable[Any]] | None,
        error_mapping: Mapping[int, Any],
    ) -> _Outcome:
        async with session.request(
            request.method,
            request.url,
            headers=request.headers,
            data=request.data,
        ) as response:
            if is_error_response(response):
                error = await self._map_to_exception(response, error_mapping)
                return _Outcome(status=response.status, error=error)

            result = await process_response(response) if process_response is not None else None
            return _Outcome(status=response.status, result=result)

    @staticmethod
    async def _map_to_exception(
        response: aiohttp.ClientResponse, error_mapping: Mapping[int, Any]
    ) -> Exception:
        factory = error_mapping.get(response.status)
        if factory is None:
            return ProvisioningServiceClientError(
                await get_exception_message(response),
                context={"status_code": response.status},
                is_transient=True,
            )
        return await factory(response)

    @staticmethod
    async def _run_linked(
        coro: Awaitable[_Outcome],
        cancel_event: asyncio.Event | None,
        timeout: float | None,
    ) -> _Outcome:
        """
        Await ``coro`` until it completes, ``cancel_event`` is set or
        ``timeout`` expires, whichever comes first.

        Raises:
            _CallerCancelled: cancel_event fired first
            TimeoutError: timeout expired first
        """
        if cancel_event is None:
            return await asyncio.wait_for(coro, timeout)

        send_task = asyncio.ensure_future(coro)
        if cancel_event.is_set():
            send_task.cancel()
            await asyncio.gather(send_task, return_exceptions=True)
            raise _CallerCancelled()

        cancel_task = asyncio.ensure_future(cancel_event.wait())
        try:
            done, _ = await asyncio.wait(
                {send_task, cancel_task},
                timeout=timeout,
                return_when=asyncio.FIRST_COMPLETED,
            )
        except asyncio.CancelledError:
            send_task.cancel()
            cancel_task.cancel()
            raise

        cancel_task.cancel()
        if send_task in done:
            return send_task.result()

        send_task.cancel()
        await asyncio.gather(send_task, return_exceptions=True)
        if cancel_event.is_set():
            raise _CallerCancelled()
        raise TimeoutError(f"Operation timed out after {timeout}s")


__all__ = [
    "ContractApiHttp",
    "RawResponse",
    "PreparedRequest",
    "is_mapped_to_exception",
    "is_success_status",
    "quote_etag",
    "DEFAULT_TIMEOUT_SECONDS",
]
