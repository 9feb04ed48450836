"""Wire-level constants of the provisioning service REST API."""

from provisioning_service.version import CLIENT_NAME, __version__

MEDIA_TYPE_FOR_DEVICE_MANAGEMENT_APIS = "application/json"
JSON_CONTENT_TYPE = "application/json; charset=utf-8"

# Content type for pre-serialized string payloads (batched messages)
BATCHED_MESSAGE_CONTENT_TYPE = "application/vnd.microsoft.iothub.json"

AUTHORIZATION_HEADER = "Authorization"
USER_AGENT_HEADER = "User-Agent"
IF_MATCH_HEADER = "If-Match"
ETAG_HEADER = "ETag"
CONTENT_TYPE_HEADER = "Content-Type"
CONTENT_ENCODING_HEADER = "Content-Encoding"

# Response header carrying the service error code
IOTHUB_ERROR_CODE_HEADER = "iothub-errorcode"

# Error code of a bulk operation where some items failed; the response body
# carries the per-item results, so it is not treated as an error
BULK_REGISTRY_OPERATION_FAILURE = "BulkRegistryOperationFailure"


def get_client_version() -> str:
    """User agent string sent with every request."""
    return f"{CLIENT_NAME}/{__version__}"
