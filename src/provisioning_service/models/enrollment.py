"""
Individual enrollment: the provisioning record of a single device.

Two construction paths:

    # Client side, before create/update calls
    enrollment = IndividualEnrollment(
        registration_id="valid-id-123",
        attestation=TpmAttestation(endorsement_key="AToAAQAL..."),
    )

    # From a service response; the ETag is mandatory here
    enrollment = IndividualEnrollment.from_service(payload)

Malformed input on the client path raises ``pydantic.ValidationError``.
Service payloads that are missing the ETag or fail validation raise
``ProvisioningServiceClientError``.
"""

import json
import re
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import Field, ValidationError, field_serializer, field_validator

from provisioning_service.exceptions import ProvisioningServiceClientError
from provisioning_service.models.attestation import (
    Attestation,
    attestation_from_wire,
    attestation_to_wire,
)
from provisioning_service.models.base import WireModel
from provisioning_service.models.registration_state import DeviceRegistrationState
from provisioning_service.models.twin import TwinState

MAX_ID_LENGTH = 128

# Lowercase alphanumerics and hyphens
REGISTRATION_ID_PATTERN = re.compile(r"^[a-z0-9-]{1,128}$")

# Alphanumerics plus - . % _ * ? ! ( ) , : = @ $ '
DEVICE_ID_PATTERN = re.compile(r"^[A-Za-z0-9\-.%_*?!(),:=@$']{1,128}$")


class ProvisioningStatus(str, Enum):
    ENABLED = "enabled"
    DISABLED = "disabled"


def ensure_registration_id(value: Any) -> str:
    """
    Validate a registration ID.

    Raises:
        ValueError: If the value is not a non-empty string of at most 128
            lowercase alphanumerics and hyphens
    """
    if not isinstance(value, str) or not value:
        raise ValueError("registration ID cannot be null or empty")
    if len(value) > MAX_ID_LENGTH:
        raise ValueError(f"registration ID cannot be longer than {MAX_ID_LENGTH} characters")
    if not REGISTRATION_ID_PATTERN.fullmatch(value):
        raise ValueError(
            f"registration ID {value!r} is invalid: only lowercase alphanumerics and '-' are allowed"
        )
    return value


def ensure_device_id(value: str) -> str:
    """Validate a device ID. Raises ValueError if empty, too long or malformed."""
    if not value:
        raise ValueError("device ID cannot be empty")
    if not DEVICE_ID_PATTERN.fullmatch(value):
        raise ValueError(
            f"device ID {value!r} is invalid: up to {MAX_ID_LENGTH} alphanumerics "
            "or - . % _ * ? ! ( ) , : = @ $ '"
        )
    return value


class IndividualEnrollment(WireModel):
    """
    Enrollment record for a single device.

    ``registration_id`` and ``attestation`` are mandatory. ``etag``,
    ``registration_state`` and the timestamps are filled in by the service.
    Satisfies the ETag holder protocol used for conditional writes.
    """

    registration_id: str = Field(..., alias="registrationId")
    attestation: Attestation
    device_id: str | None = Field(default=None, alias="deviceId")
    registration_state: DeviceRegistrationState | None = Field(
        default=None, alias="registrationState"
    )
    iot_hub_host_name: str | None = Field(default=None, alias="iotHubHostName")
    initial_twin_state: TwinState | None = Field(default=None, alias="initialTwinState")
    provisioning_status: ProvisioningStatus | None = Field(
        default=None, alias="provisioningStatus"
    )
    created_date_time_utc: datetime | None = Field(default=None, alias="createdDateTimeUtc")
    last_updated_date_time_utc: datetime | None = Field(
        default=None, alias="lastUpdatedDateTimeUtc"
    )
    etag: str | None = None

    @field_validator("registration_id", mode="before")
    @classmethod
    def _validate_registration_id(cls, value: Any) -> str:
        return ensure_registration_id(value)

    @field_validator("device_id")
    @classmethod
    def _validate_device_id(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return ensure_device_id(value)

    @field_validator("attestation", mode="before")
    @classmethod
    def _validate_attestation(cls, value: Any) -> Attestation:
        if value is None:
            raise ValueError("attestation cannot be null")
        return attestation_from_wire(value)

    @field_serializer("attestation")
    def _serialize_attestation(self, attestation: Attestation) -> dict[str, Any]:
        return attestation_to_wire(attestation)

    @classmethod
    def from_service(cls, payload: dict[str, Any] | str | bytes) -> "IndividualEnrollment":
        """
        Rebuild an enrollment from a service response body.

        Args:
            payload: Decoded JSON object, or the raw JSON text

        Raises:
            ProvisioningServiceClientError: If the ETag is missing or the
                payload is not a valid enrollment
        """
        if isinstance(payload, (str, bytes)):
            payload = json.loads(payload)
        if not isinstance(payload, dict):
            raise ProvisioningServiceClientError(
                "Service responded with an individual enrollment that is not a JSON object."
            )

        etag = payload.get("etag")
        if not isinstance(etag, str) or not etag.strip():
            raise ProvisioningServiceClientError(
                "Service responded with an individual enrollment without an ETag."
            )

        try:
            return cls.model_validate(payload)
        except ValidationError as e:
            raise ProvisioningServiceClientError(
                f"Service responded with an invalid individual enrollment: {e}",
                cause=e,
            ) from e

    def __str__(self) -> str:
        return self.to_json(indent=2)


__all__ = [
    "IndividualEnrollment",
    "ProvisioningStatus",
    "ensure_registration_id",
    "ensure_device_id",
    "REGISTRATION_ID_PATTERN",
    "DEVICE_ID_PATTERN",
]
