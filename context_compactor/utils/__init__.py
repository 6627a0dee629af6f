"""Utility functions for the compaction engine."""

from .serializer import json_serialize, safe_serialize

__all__ = [
    "json_serialize",
    "safe_serialize",
]
