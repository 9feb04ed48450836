"""Core utility functions."""

from core.utils.json_serializers import json_serializer, strict_json_serializer

__all__ = ["json_serializer", "strict_json_serializer"]
