"""Initial twin state applied to a device when it is provisioned."""

from typing import Any

from pydantic import model_serializer, model_validator

from provisioning_service.models.base import WireModel


class TwinState(WireModel):
    """
    Initial tags and desired properties for the device twin.

    Wire form::

        {"tags": {...}, "properties": {"desired": {...}}}
    """

    tags: dict[str, Any] | None = None
    desired_properties: dict[str, Any] | None = None

    @model_validator(mode="before")
    @classmethod
    def _from_wire(cls, data: Any) -> Any:
        if isinstance(data, dict) and "properties" in data:
            data = dict(data)
            properties = data.pop("properties") or {}
            data["desired_properties"] = properties.get("desired")
        return data

    @model_serializer(mode="plain")
    def _to_wire(self) -> dict[str, Any]:
        wire: dict[str, Any] = {}
        if self.tags is not None:
            wire["tags"] = self.tags
        if self.desired_properties is not None:
            wire["properties"] = {"desired": self.desired_properties}
        return wire


__all__ = ["TwinState"]
