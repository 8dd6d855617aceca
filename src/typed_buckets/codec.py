"""Container codec: packs a mapping of attribute values into one column.

The on-disk format is fixed for the whole library: a JSON object with sorted
keys and compact separators, e.g. ``{"rating":6,"vegetarian":true}``. JSON
keeps strings, integers, booleans and null distinct, so every value produced
by the built-in coercions survives a round trip unchanged.
"""

from __future__ import annotations

import json
from typing import Any

FORMAT_NAME = "json"


class ContainerDecodeError(ValueError):
    """Raised when a raw container value cannot be deserialized."""


class ContainerEncodeError(ValueError):
    """Raised when a working copy holds a value the format cannot represent."""


def decode(raw: str | bytes | None) -> dict[str, Any]:
    """Deserialize a raw container value into a fresh dict.

    None and empty/blank values decode to an empty dict.

    Raises:
        ContainerDecodeError: If the value is not a JSON object.
    """
    if raw is None:
        return {}
    if isinstance(raw, (bytes, bytearray)):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ContainerDecodeError(f"Container is not valid UTF-8: {e}") from e
    if not isinstance(raw, str):
        raise ContainerDecodeError(
            f"Container must be text or bytes, got {type(raw).__name__}"
        )
    if not raw.strip():
        return {}

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ContainerDecodeError(f"Malformed container value: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ContainerDecodeError(
            f"Container must hold a JSON object, got {type(data).__name__}"
        )
    return data


def encode(mapping: dict[str, Any]) -> str:
    """Serialize a mapping into the raw container format.

    Raises:
        ContainerEncodeError: If a value is not JSON-serializable.
    """
    try:
        return json.dumps(mapping, sort_keys=True, separators=(",", ":"))
    except (TypeError, ValueError) as e:
        raise ContainerEncodeError(f"Cannot encode container: {e}") from e
