"""
Exceptions raised by the provisioning service client.

Validation of client-built entities raises ``pydantic.ValidationError``
synchronously; everything that happens once a request is on its way to the
service is reported through the classes below.
"""

from core.errors.exceptions import SdkError
from core.types import ErrorCategory


class ProvisioningServiceClientError(SdkError):
    """
    Service-level failure: unmapped error response, bad service payload,
    caller-requested cancellation or an unexpected failure while executing
    a request.

    Attributes:
        is_transient: Whether the failure may go away if attempted again
    """

    def __init__(
        self,
        message: str,
        cause: Exception | None = None,
        context: dict | None = None,
        is_transient: bool = False,
    ):
        super().__init__(message, cause, context)
        self.category = ErrorCategory.TRANSIENT if is_transient else ErrorCategory.PERMANENT


class ProvisioningServiceTransportError(ProvisioningServiceClientError):
    """Timeout, connectivity or (de)serialization failure (always transient)."""

    def __init__(
        self,
        message: str,
        cause: Exception | None = None,
        context: dict | None = None,
    ):
        super().__init__(message, cause, context, is_transient=True)


class ProvisioningServiceHttpError(ProvisioningServiceClientError):
    """
    Error response mapped from an HTTP status code.

    Attributes:
        status_code: HTTP status code of the response
        error_code: Service error code from the response body, if any
        tracking_id: Service tracking id from the response body, if any
    """

    def __init__(
        self,
        status_code: int,
        message: str,
        error_code: str | None = None,
        tracking_id: str | None = None,
        category: ErrorCategory = ErrorCategory.UNKNOWN,
    ):
        super().__init__(
            message,
            context={
                "status_code": status_code,
                "error_code": error_code,
                "tracking_id": tracking_id,
            },
        )
        self.status_code = status_code
        self.error_code = error_code
        self.tracking_id = tracking_id
        self.category = category

    def __str__(self) -> str:
        parts = [f"HTTP {self.status_code}"]
        if self.error_code:
            parts.append(self.error_code)
        parts.append(self.message)
        if self.tracking_id:
            parts.append(f"trackingId={self.tracking_id}")
        return " | ".join(parts)


__all__ = [
    "ProvisioningServiceClientError",
    "ProvisioningServiceTransportError",
    "ProvisioningServiceHttpError",
]
