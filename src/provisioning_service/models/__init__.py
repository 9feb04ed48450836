"""
Data-transfer objects exchanged with the provisioning service.

All models are pydantic models whose aliases are the service's camelCase
field names; ``to_dict()`` / ``to_json()`` produce the wire form with absent
optional fields omitted.
"""

from provisioning_service.models.attestation import (
    Attestation,
    TpmAttestation,
    X509Attestation,
    X509CAReferences,
    X509CertificateInfo,
    X509Certificates,
    X509CertificateWithInfo,
    attestation_from_wire,
    attestation_to_wire,
)
from provisioning_service.models.base import WireModel
from provisioning_service.models.enrollment import (
    IndividualEnrollment,
    ProvisioningStatus,
    ensure_device_id,
    ensure_registration_id,
)
from provisioning_service.models.registration_state import DeviceRegistrationState
from provisioning_service.models.twin import TwinState

__all__ = [
    # Base
    "WireModel",
    # Enrollment
    "IndividualEnrollment",
    "ProvisioningStatus",
    "ensure_registration_id",
    "ensure_device_id",
    # Attestation
    "Attestation",
    "TpmAttestation",
    "X509Attestation",
    "X509Certificates",
    "X509CertificateWithInfo",
    "X509CertificateInfo",
    "X509CAReferences",
    "attestation_to_wire",
    "attestation_from_wire",
    # Twin and registration state
    "TwinState",
    "DeviceRegistrationState",
]
