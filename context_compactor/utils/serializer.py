"""JSON serialization utilities for tool inputs of arbitrary shape."""

import json
from typing import Any

from pydantic import BaseModel


def json_serialize(obj: Any) -> str:
    """Serialize an object to a JSON string.

    If the input is a Pydantic BaseModel, uses model_dump_json() to serialize it to a JSON string.
    Otherwise, uses compact json.dumps (no spaces after separators, like
    model_dump_json) and raises TypeError if not.

    Args:
        obj: Object to serialize

    Returns:
        JSON string

    Raises:
        TypeError: If the object is not a Pydantic model and not JSON serializable
    """
    if isinstance(obj, BaseModel):
        return obj.model_dump_json()

    try:
        return json.dumps(obj, ensure_ascii=False, separators=(",", ":"))
    except (TypeError, ValueError) as e:
        raise TypeError(
            f"Object of type {type(obj).__name__} is not JSON serializable. "
            f"If it's a Pydantic model, ensure it inherits from BaseModel."
        ) from e


def safe_serialize(obj: Any) -> str:
    """Serialize an object to a JSON string, returning "" when that is impossible.

    ``None`` serializes to "" rather than "null" so that an absent tool input
    contributes nothing to size estimates or prompts.
    """
    if obj is None:
        return ""
    try:
        return json_serialize(obj)
    except TypeError:
        return ""
