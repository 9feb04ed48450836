"""Registration state reported by the service for an enrollment (read-only)."""

from datetime import datetime

from pydantic import Field

from provisioning_service.models.base import WireModel


class DeviceRegistrationState(WireModel):
    registration_id: str | None = Field(default=None, alias="registrationId")
    created_date_time_utc: datetime | None = Field(default=None, alias="createdDateTimeUtc")
    assigned_hub: str | None = Field(default=None, alias="assignedHub")
    device_id: str | None = Field(default=None, alias="deviceId")
    status: str | None = None
    error_code: int | None = Field(default=None, alias="errorCode")
    error_message: str | None = Field(default=None, alias="errorMessage")
    last_updated_date_time_utc: datetime | None = Field(
        default=None, alias="lastUpdatedDateTimeUtc"
    )
    etag: str | None = None


__all__ = ["DeviceRegistrationState"]
