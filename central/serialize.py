"""Turn resolved handler values into response bytes."""

import json
from typing import Any

from fastapi.encoders import jsonable_encoder


def serialize(value: Any) -> bytes:
    """Serialize a value for the wire.

    Bytes pass through untouched and strings are UTF-8 encoded. Objects that
    define ``for_api()`` are serialized through it. Everything else is
    encoded as JSON.
    """
    if isinstance(value, bytes):
        return value
    if isinstance(value, str):
        return value.encode("utf-8")
    if hasattr(value, "for_api"):
        value = value.for_api()
    return json.dumps(jsonable_encoder(value), separators=(",", ":")).encode("utf-8")
