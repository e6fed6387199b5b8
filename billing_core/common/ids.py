"""Identifier generation for aggregates and catalog entries."""
from __future__ import annotations

import secrets
import time
from typing import Annotated
from uuid import UUID

from pydantic import StringConstraints

Identifier = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


def new_id() -> str:
    """Return a time-ordered, lexicographically sortable identifier.

    The layout follows UUIDv7: a 48-bit millisecond timestamp followed by random
    bits, rendered as 32 lowercase hex characters so string order matches
    creation order.
    """

    timestamp_ms = time.time_ns() // 1_000_000
    value = (timestamp_ms & ((1 << 48) - 1)) << 80
    value |= secrets.randbits(80)
    # version 7 and RFC 4122 variant bits
    value = (value & ~(0xF << 76)) | (0x7 << 76)
    value = (value & ~(0x3 << 62)) | (0x2 << 62)
    return UUID(int=value).hex


__all__ = ["Identifier", "new_id"]
