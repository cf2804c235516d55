"""Identifier generation for traces, spans and feedback scores."""

from __future__ import annotations

import os
import time
import uuid


def uuid7() -> str:
    """Return a new time-ordered UUID (version 7) as a string.

    The first 48 bits carry the Unix timestamp in milliseconds, so ids
    generated later sort after ids generated earlier.
    """
    timestamp_ms = time.time_ns() // 1_000_000
    rand = int.from_bytes(os.urandom(10), "big")

    value = (timestamp_ms & 0xFFFF_FFFF_FFFF) << 80
    value |= 0x7 << 76
    value |= (rand >> 68) << 64
    value |= 0b10 << 62
    value |= rand & 0x3FFF_FFFF_FFFF_FFFF
    return str(uuid.UUID(int=value))
