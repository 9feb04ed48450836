"""
Tests for IndividualEnrollment.

Covers:
- Registration ID and device ID validation on the client construction path
- Service construction path (mandatory ETag)
- Wire serialization (camelCase names, absent optional fields omitted)
"""

import json
from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from core.types import ETagHolder
from provisioning_service.exceptions import ProvisioningServiceClientError
from provisioning_service.models import (
    IndividualEnrollment,
    ProvisioningStatus,
    TpmAttestation,
    TwinState,
    X509Attestation,
    ensure_registration_id,
)


@pytest.fixture
def tpm():
    return TpmAttestation(endorsement_key="AToAAQALAAMAsgAgg3GXZ0SEs")


# ============================================================================
# Client construction path
# ============================================================================


class TestClientConstruction:

    def test_valid_registration_id_and_attestation(self, tpm):
        enrollment = IndividualEnrollment(registration_id="valid-id-123", attestation=tpm)

        assert enrollment.registration_id == "valid-id-123"
        assert enrollment.attestation == tpm
        assert enrollment.etag is None
        assert enrollment.created_date_time_utc is None

    def test_accepts_wire_names(self, tpm):
        enrollment = IndividualEnrollment(registrationId="abc", attestation=tpm, deviceId="dev")
        assert enrollment.registration_id == "abc"
        assert enrollment.device_id == "dev"

    @pytest.mark.parametrize(
        "registration_id",
        ["a", "0", "-", "valid-id-123", "a" * 128, "0123456789-abcdefghijklmnopqrstuvwxyz"],
    )
    def test_valid_registration_ids(self, tpm, registration_id):
        enrollment = IndividualEnrollment(registration_id=registration_id, attestation=tpm)
        assert enrollment.registration_id == registration_id

    @pytest.mark.parametrize(
        "registration_id",
        ["", "Upper-Case", "with space", "under_score", "dot.ted", "a" * 129, "ümlaut", "id\n"],
    )
    def test_invalid_registration_ids(self, tpm, registration_id):
        with pytest.raises(ValidationError):
            IndividualEnrollment(registration_id=registration_id, attestation=tpm)

    def test_none_registration_id(self, tpm):
        with pytest.raises(ValidationError):
            IndividualEnrollment(registration_id=None, attestation=tpm)

    def test_missing_attestation(self):
        with pytest.raises(ValidationError):
            IndividualEnrollment(registration_id="valid-id-123")

    def test_none_attestation(self):
        with pytest.raises(ValidationError):
            IndividualEnrollment(registration_id="valid-id-123", attestation=None)

    def test_validation_error_is_value_error(self, tpm):
        with pytest.raises(ValueError):
            IndividualEnrollment(registration_id="", attestation=tpm)

    @pytest.mark.parametrize("device_id", ["device-1", "Dev.ice_1", "a:b=c@d$e'f(g)!*?%", "x" * 128])
    def test_valid_device_ids(self, tpm, device_id):
        enrollment = IndividualEnrollment(
            registration_id="valid-id-123", attestation=tpm, device_id=device_id
        )
        assert enrollment.device_id == device_id

    @pytest.mark.parametrize("device_id", ["", "has space", "slash/", "x" * 129, "hash#"])
    def test_invalid_device_ids(self, tpm, device_id):
        with pytest.raises(ValidationError):
            IndividualEnrollment(registration_id="valid-id-123", attestation=tpm, device_id=device_id)

    def test_assignment_is_validated(self, tpm):
        enrollment = IndividualEnrollment(registration_id="valid-id-123", attestation=tpm)
        with pytest.raises(ValidationError):
            enrollment.device_id = "not valid"

    def test_is_etag_holder(self, tpm):
        enrollment = IndividualEnrollment(registration_id="valid-id-123", attestation=tpm)
        assert isinstance(enrollment, ETagHolder)

        enrollment.etag = "abc"
        assert enrollment.etag == "abc"


class TestEnsureRegistrationId:

    def test_returns_value(self):
        assert ensure_registration_id("my-device") == "my-device"

    def test_rejects_non_string(self):
        with pytest.raises(ValueError, match="null or empty"):
            ensure_registration_id(123)

    def test_rejects_too_long(self):
        with pytest.raises(ValueError, match="longer than 128"):
            ensure_registration_id("a" * 129)


# ============================================================================
# Service construction path
# ============================================================================


class TestFromService:

    def test_parses_full_payload(self, enrollment_payload):
        enrollment = IndividualEnrollment.from_service(enrollment_payload)

        assert enrollment.registration_id == "valid-id-123"
        assert enrollment.device_id == "device-1"
        assert isinstance(enrollment.attestation, TpmAttestation)
        assert enrollment.attestation.endorsement_key == "AToAAQALAAMAsgAgg3GXZ0SEs"
        assert enrollment.iot_hub_host_name == "myhub.azure-devices.net"
        assert enrollment.initial_twin_state.tags == {"site": "plant-7"}
        assert enrollment.initial_twin_state.desired_properties == {"telemetryInterval": 30}
        assert enrollment.provisioning_status == ProvisioningStatus.ENABLED
        assert enrollment.created_date_time_utc == datetime(2026, 1, 5, 14, 30, tzinfo=timezone.utc)
        assert enrollment.etag == "AAAAAAFPmXk="

    def test_parses_json_text(self, enrollment_payload):
        enrollment = IndividualEnrollment.from_service(json.dumps(enrollment_payload))
        assert enrollment.etag == "AAAAAAFPmXk="

    def test_missing_etag_fails_with_client_error(self, enrollment_payload):
        del enrollment_payload["etag"]
        with pytest.raises(ProvisioningServiceClientError, match="without an ETag"):
            IndividualEnrollment.from_service(enrollment_payload)

    @pytest.mark.parametrize("etag", ["", "   ", None])
    def test_blank_etag_fails_with_client_error(self, enrollment_payload, etag):
        enrollment_payload["etag"] = etag
        with pytest.raises(ProvisioningServiceClientError):
            IndividualEnrollment.from_service(enrollment_payload)

    def test_invalid_registration_id_fails_with_client_error(self, enrollment_payload):
        enrollment_payload["registrationId"] = "NOT VALID"
        with pytest.raises(ProvisioningServiceClientError) as exc_info:
            IndividualEnrollment.from_service(enrollment_payload)
        assert isinstance(exc_info.value.cause, ValidationError)

    def test_non_object_payload_fails_with_client_error(self):
        with pytest.raises(ProvisioningServiceClientError):
            IndividualEnrollment.from_service([1, 2, 3])

    def test_parses_registration_state(self, enrollment_payload):
        enrollment_payload["registrationState"] = {
            "registrationId": "valid-id-123",
            "assignedHub": "myhub.azure-devices.net",
            "deviceId": "device-1",
            "status": "assigned",
            "etag": "IjAwMDAi",
        }
        enrollment = IndividualEnrollment.from_service(enrollment_payload)

        assert enrollment.registration_state.assigned_hub == "myhub.azure-devices.net"
        assert enrollment.registration_state.status == "assigned"

    def test_ignores_unknown_fields(self, enrollment_payload):
        enrollment_payload["capabilities"] = {"iotEdge": False}
        enrollment = IndividualEnrollment.from_service(enrollment_payload)
        assert enrollment.registration_id == "valid-id-123"


# ============================================================================
# Serialization
# ============================================================================


class TestSerialization:

    def test_minimal_enrollment_omits_absent_fields(self, tpm):
        enrollment = IndividualEnrollment(registration_id="valid-id-123", attestation=tpm)

        assert enrollment.to_dict() == {
            "registrationId": "valid-id-123",
            "attestation": {"type": "tpm", "tpm": {"endorsementKey": "AToAAQALAAMAsgAgg3GXZ0SEs"}},
        }

    def test_uses_fixed_wire_names(self, tpm):
        enrollment = IndividualEnrollment(
            registration_id="valid-id-123",
            attestation=tpm,
            device_id="device-1",
            iot_hub_host_name="myhub.azure-devices.net",
            initial_twin_state=TwinState(tags={"a": 1}),
            provisioning_status=ProvisioningStatus.DISABLED,
            etag="abc",
        )
        data = enrollment.to_dict()

        assert set(data) == {
            "registrationId",
            "attestation",
            "deviceId",
            "iotHubHostName",
            "initialTwinState",
            "provisioningStatus",
            "etag",
        }
        assert data["provisioningStatus"] == "disabled"
        assert data["initialTwinState"] == {"tags": {"a": 1}}

    def test_service_payload_survives_serialization(self, enrollment_payload):
        enrollment = IndividualEnrollment.from_service(enrollment_payload)
        data = enrollment.to_dict()

        assert data["attestation"] == enrollment_payload["attestation"]
        assert data["initialTwinState"] == enrollment_payload["initialTwinState"]
        assert data["etag"] == enrollment_payload["etag"]
        assert "null" not in enrollment.to_json()

    def test_x509_attestation_serialized_as_mechanism(self):
        enrollment = IndividualEnrollment(
            registration_id="x509-device",
            attestation=X509Attestation.from_certificates("MIIBszCCAVmgAwIBAgIJA"),
        )
        assert enrollment.to_dict()["attestation"] == {
            "type": "x509",
            "x509": {"clientCertificates": {"primary": {"certificate": "MIIBszCCAVmgAwIBAgIJA"}}},
        }

    def test_str_is_indented_json(self, tpm):
        enrollment = IndividualEnrollment(registration_id="valid-id-123", attestation=tpm)
        text = str(enrollment)

        assert json.loads(text)["registrationId"] == "valid-id-123"
        assert "\n  " in text
