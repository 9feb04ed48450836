"""
Attestation mechanisms: how a device proves its identity.

An attestation is a tagged union over :class:`TpmAttestation` and
:class:`X509Attestation`, discriminated by the ``kind`` field. On the wire
the service wraps it in an attestation mechanism object::

    {"type": "tpm", "tpm": {"endorsementKey": "..."}}
    {"type": "x509", "x509": {"clientCertificates": {...}}}

:func:`attestation_to_wire` and :func:`attestation_from_wire` convert between
the two and are the only places that branch on the variant.
"""

from datetime import datetime
from typing import Any, Literal, Union

from pydantic import Field, model_validator

from provisioning_service.models.base import WireModel


class TpmAttestation(WireModel):
    """TPM attestation: endorsement key and optional storage root key."""

    kind: Literal["tpm"] = Field(default="tpm", exclude=True)
    endorsement_key: str = Field(..., alias="endorsementKey", min_length=1)
    storage_root_key: str | None = Field(default=None, alias="storageRootKey")


class X509CertificateInfo(WireModel):
    """Certificate details reported by the service (read-only)."""

    subject_name: str | None = Field(default=None, alias="subjectName")
    sha1_thumbprint: str | None = Field(default=None, alias="sha1Thumbprint")
    sha256_thumbprint: str | None = Field(default=None, alias="sha256Thumbprint")
    issuer_name: str | None = Field(default=None, alias="issuerName")
    not_before_utc: datetime | None = Field(default=None, alias="notBeforeUtc")
    not_after_utc: datetime | None = Field(default=None, alias="notAfterUtc")
    serial_number: str | None = Field(default=None, alias="serialNumber")
    version: int | None = None


class X509CertificateWithInfo(WireModel):
    """A certificate (base64 PEM/DER) as sent, or its info as returned."""

    certificate: str | None = None
    info: X509CertificateInfo | None = None


class X509Certificates(WireModel):
    primary: X509CertificateWithInfo
    secondary: X509CertificateWithInfo | None = None


class X509CAReferences(WireModel):
    primary: str = Field(..., min_length=1)
    secondary: str | None = None


class X509Attestation(WireModel):
    """
    X509 attestation.

    Exactly one of ``client_certificates`` (leaf certificates),
    ``signing_certificates`` (root certificates) or ``ca_references``
    (references to CA certificates stored in the service) is set.
    """

    kind: Literal["x509"] = Field(default="x509", exclude=True)
    client_certificates: X509Certificates | None = Field(default=None, alias="clientCertificates")
    signing_certificates: X509Certificates | None = Field(default=None, alias="signingCertificates")
    ca_references: X509CAReferences | None = Field(default=None, alias="caReferences")

    @model_validator(mode="after")
    def _exactly_one_certificate_set(self) -> "X509Attestation":
        configured = [
            value
            for value in (self.client_certificates, self.signing_certificates, self.ca_references)
            if value is not None
        ]
        if len(configured) != 1:
            raise ValueError(
                "X509 attestation requires exactly one of client_certificates, "
                "signing_certificates or ca_references"
            )
        return self

    @classmethod
    def from_certificates(cls, primary: str, secondary: str | None = None) -> "X509Attestation":
        """Attestation from the device's own (leaf) certificates."""
        return cls(client_certificates=_certificates(primary, secondary))

    @classmethod
    def from_root_certificates(cls, primary: str, secondary: str | None = None) -> "X509Attestation":
        """Attestation from signing (root) certificates."""
        return cls(signing_certificates=_certificates(primary, secondary))

    @classmethod
    def from_ca_references(cls, primary: str, secondary: str | None = None) -> "X509Attestation":
        """Attestation from CA certificate references stored in the service."""
        return cls(ca_references=X509CAReferences(primary=primary, secondary=secondary))


def _certificates(primary: str, secondary: str | None) -> X509Certificates:
    return X509Certificates(
        primary=X509CertificateWithInfo(certificate=primary),
        secondary=X509CertificateWithInfo(certificate=secondary) if secondary else None,
    )


Attestation = Union[TpmAttestation, X509Attestation]


def attestation_to_wire(attestation: Attestation) -> dict[str, Any]:
    """Wrap an attestation in the service's attestation mechanism object."""
    if isinstance(attestation, TpmAttestation):
        return {"type": "tpm", "tpm": attestation.to_dict()}
    if isinstance(attestation, X509Attestation):
        return {"type": "x509", "x509": attestation.to_dict()}
    raise TypeError(f"Unsupported attestation type: {type(attestation).__name__}")


def attestation_from_wire(data: Any) -> Attestation:
    """
    Build an attestation from an attestation mechanism object.

    Attestation instances are returned unchanged.

    Raises:
        ValueError: Missing or unknown mechanism type, or missing payload
    """
    if isinstance(data, (TpmAttestation, X509Attestation)):
        return data
    if not isinstance(data, dict):
        raise ValueError("attestation must be an attestation mechanism object")

    mechanism = data.get("type")
    if mechanism == "tpm":
        payload = data.get("tpm")
        if payload is None:
            raise ValueError("attestation mechanism of type 'tpm' has no 'tpm' payload")
        return TpmAttestation.model_validate(payload)
    if mechanism == "x509":
        payload = data.get("x509")
        if payload is None:
            raise ValueError("attestation mechanism of type 'x509' has no 'x509' payload")
        return X509Attestation.model_validate(payload)
    raise ValueError(f"Unknown attestation mechanism type: {mechanism!r}")


__all__ = [
    "Attestation",
    "TpmAttestation",
    "X509Attestation",
    "X509Certificates",
    "X509CertificateWithInfo",
    "X509CertificateInfo",
    "X509CAReferences",
    "attestation_to_wire",
    "attestation_from_wire",
]
