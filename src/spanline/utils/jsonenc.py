"""JSON encoding with a sanitising fallback for arbitrary payload values."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from datetime import date, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel

from spanline.utils.timefmt import format_timestamp

logger = logging.getLogger(__name__)


def encode(data: Any) -> str:
    """Encode ``data`` as compact JSON.

    Values the ``json`` module cannot handle directly (datetimes, pydantic
    models, enums, sets, arbitrary objects) are converted by ``sanitize``
    before encoding, so this never raises for ordinary Python values.

    Parameters:
        data: The value to encode.

    Returns:
        The JSON document as a string.
    """
    try:
        return json.dumps(data, ensure_ascii=False, separators=(",", ":"))
    except (TypeError, ValueError):
        logger.debug("Direct JSON encoding failed, sanitising payload")
        return json.dumps(sanitize(data), ensure_ascii=False, separators=(",", ":"))


def payload_size(data: Any) -> int:
    """Return the UTF-8 byte length of ``data`` once JSON-encoded."""
    return len(encode(data).encode("utf-8"))


def sanitize(data: Any) -> Any:
    """Recursively convert ``data`` into JSON-serialisable values.

    Parameters:
        data: The value to convert.

    Returns:
        A structure made only of dicts, lists, strings, numbers, booleans
        and ``None``.
    """
    if data is None or isinstance(data, (str, int, float, bool)):
        return data
    if isinstance(data, Mapping):
        return {str(k): sanitize(v) for k, v in data.items()}
    if isinstance(data, (list, tuple, set, frozenset)):
        return [sanitize(v) for v in data]
    if isinstance(data, datetime):
        return format_timestamp(data)
    if isinstance(data, date):
        return data.isoformat()
    if isinstance(data, Enum):
        return sanitize(data.value)
    if isinstance(data, BaseModel):
        return sanitize(data.model_dump(mode="json"))
    if isinstance(data, bytes):
        return data.decode("utf-8", errors="replace")
    if hasattr(data, "__dict__"):
        return sanitize({k: v for k, v in vars(data).items() if not k.startswith("_")})
    return str(data)
