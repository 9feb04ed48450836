"""
Client SDK for the device provisioning service.

Usage:
    from provisioning_service import (
        ContractApiHttp,
        IndividualEnrollment,
        TpmAttestation,
        build_default_error_mapping,
    )

    enrollment = IndividualEnrollment(
        registration_id="my-device",
        attestation=TpmAttestation(endorsement_key=endorsement_key),
    )

    async with ContractApiHttp(
        "https://myinstance.azure-devices-provisioning.net",
        auth_provider,
        build_default_error_mapping(),
    ) as api:
        created = await api.put(
            f"enrollments/{enrollment.registration_id}?api-version=2019-03-31",
            enrollment,
        )
"""

from provisioning_service.contract import (
    ContractApiHttp,
    ErrorMapping,
    RawResponse,
    build_default_error_mapping,
)
from provisioning_service.exceptions import (
    ProvisioningServiceClientError,
    ProvisioningServiceHttpError,
    ProvisioningServiceTransportError,
)
from provisioning_service.models import (
    DeviceRegistrationState,
    IndividualEnrollment,
    ProvisioningStatus,
    TpmAttestation,
    TwinState,
    X509Attestation,
)
from provisioning_service.version import __version__

__all__ = [
    "__version__",
    # Transport
    "ContractApiHttp",
    "ErrorMapping",
    "RawResponse",
    "build_default_error_mapping",
    # Exceptions
    "ProvisioningServiceClientError",
    "ProvisioningServiceTransportError",
    "ProvisioningServiceHttpError",
    # Models
    "IndividualEnrollment",
    "ProvisioningStatus",
    "TpmAttestation",
    "X509Attestation",
    "TwinState",
    "DeviceRegistrationState",
]
