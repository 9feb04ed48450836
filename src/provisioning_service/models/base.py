"""Base class for provisioning service data-transfer objects."""

import json
from typing import Any

from pydantic import BaseModel, ConfigDict

from core.utils.json_serializers import json_serializer


class WireModel(BaseModel):
    """
    Pydantic model with the service's camelCase wire names as aliases.

    Fields can be populated by either name. Optional fields that are unset
    are omitted from the wire form instead of being sent as null.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        validate_assignment=True,
        extra="ignore",
    )

    def to_dict(self) -> dict[str, Any]:
        """Wire representation as a JSON-compatible dict."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    def to_json(self, indent: int | None = None) -> str:
        """Wire representation as a JSON string."""
        return json.dumps(self.to_dict(), indent=indent, default=json_serializer)


__all__ = ["WireModel"]
