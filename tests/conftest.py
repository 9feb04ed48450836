"""
pytest configuration for the provisioning service client tests.

Adds src directory to Python path for imports and provides shared fixtures.
"""

import sys
from pathlib import Path

import pytest

# Add src directory to Python path
src_dir = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_dir))


class StaticAuthorizationHeaderProvider:
    """Authorization header provider returning a fixed value."""

    def __init__(self, header: str = "SharedAccessSignature sr=test&sig=abc&se=1&skn=owner"):
        self.header = header
        self.calls = 0

    def get_authorization_header(self) -> str:
        self.calls += 1
        return self.header


@pytest.fixture
def auth_provider():
    return StaticAuthorizationHeaderProvider()


@pytest.fixture
def tpm_attestation_payload():
    return {
        "type": "tpm",
        "tpm": {"endorsementKey": "AToAAQALAAMAsgAgg3GXZ0SEs"},
    }


@pytest.fixture
def enrollment_payload(tpm_attestation_payload):
    """Individual enrollment as returned by the service."""
    return {
        "registrationId": "valid-id-123",
        "deviceId": "device-1",
        "attestation": tpm_attestation_payload,
        "iotHubHostName": "myhub.azure-devices.net",
        "initialTwinState": {
            "tags": {"site": "plant-7"},
            "properties": {"desired": {"telemetryInterval": 30}},
        },
        "provisioningStatus": "enabled",
        "createdDateTimeUtc": "2026-01-05T14:30:00Z",
        "lastUpdatedDateTimeUtc": "2026-01-06T09:00:00Z",
        "etag": "AAAAAAFPmXk=",
    }
