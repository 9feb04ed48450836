"""Tests for the TPM/X509 attestation union and its wire form."""

import pytest
from pydantic import ValidationError

from provisioning_service.models import (
    TpmAttestation,
    X509Attestation,
    attestation_from_wire,
    attestation_to_wire,
)


class TestTpmAttestation:

    def test_endorsement_key_required(self):
        with pytest.raises(ValidationError):
            TpmAttestation()

    def test_empty_endorsement_key_rejected(self):
        with pytest.raises(ValidationError):
            TpmAttestation(endorsement_key="")

    def test_kind_is_tpm(self):
        assert TpmAttestation(endorsement_key="ek").kind == "tpm"

    def test_wire_form(self):
        tpm = TpmAttestation(endorsement_key="ek", storage_root_key="srk")
        assert attestation_to_wire(tpm) == {
            "type": "tpm",
            "tpm": {"endorsementKey": "ek", "storageRootKey": "srk"},
        }


class TestX509Attestation:

    def test_from_certificates(self):
        x509 = X509Attestation.from_certificates("primary-cert", "secondary-cert")

        assert x509.kind == "x509"
        assert x509.client_certificates.primary.certificate == "primary-cert"
        assert x509.client_certificates.secondary.certificate == "secondary-cert"
        assert x509.signing_certificates is None

    def test_from_root_certificates(self):
        x509 = X509Attestation.from_root_certificates("root-cert")

        assert x509.signing_certificates.primary.certificate == "root-cert"
        assert x509.signing_certificates.secondary is None

    def test_from_ca_references(self):
        x509 = X509Attestation.from_ca_references("my-ca")
        assert attestation_to_wire(x509) == {
            "type": "x509",
            "x509": {"caReferences": {"primary": "my-ca"}},
        }

    def test_requires_one_certificate_set(self):
        with pytest.raises(ValidationError, match="exactly one"):
            X509Attestation()

    def test_rejects_multiple_certificate_sets(self):
        certificates = X509Attestation.from_certificates("a").client_certificates
        with pytest.raises(ValidationError, match="exactly one"):
            X509Attestation(client_certificates=certificates, signing_certificates=certificates)


class TestAttestationFromWire:

    def test_tpm(self, tpm_attestation_payload):
        attestation = attestation_from_wire(tpm_attestation_payload)

        assert isinstance(attestation, TpmAttestation)
        assert attestation.endorsement_key == "AToAAQALAAMAsgAgg3GXZ0SEs"

    def test_x509_with_service_info(self):
        attestation = attestation_from_wire(
            {
                "type": "x509",
                "x509": {
                    "clientCertificates": {
                        "primary": {
                            "info": {
                                "subjectName": "CN=device",
                                "sha1Thumbprint": "AB12",
                                "notAfterUtc": "2027-01-01T00:00:00Z",
                                "version": 3,
                            }
                        }
                    }
                },
            }
        )

        assert isinstance(attestation, X509Attestation)
        info = attestation.client_certificates.primary.info
        assert info.subject_name == "CN=device"
        assert info.version == 3

    def test_instances_pass_through(self):
        tpm = TpmAttestation(endorsement_key="ek")
        assert attestation_from_wire(tpm) is tpm

    def test_unknown_type(self):
        with pytest.raises(ValueError, match="Unknown attestation mechanism"):
            attestation_from_wire({"type": "symmetricKey", "symmetricKey": {}})

    def test_missing_payload(self):
        with pytest.raises(ValueError, match="no 'tpm' payload"):
            attestation_from_wire({"type": "tpm"})

    def test_not_an_object(self):
        with pytest.raises(ValueError):
            attestation_from_wire("tpm")

    def test_to_wire_rejects_other_types(self):
        with pytest.raises(TypeError):
            attestation_to_wire({"type": "tpm"})
