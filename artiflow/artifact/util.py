"""Clock and id helpers for artifacts."""

from __future__ import annotations

import os
import time

# Crockford base32, as used by ULIDs
_ALPHABET = "0123456789ABCDEFGHJKMNPQRSTVWXYZ"
_ULID_LENGTH = 26
_MAX_TIMESTAMP_MS = (1 << 48) - 1


def now_ms() -> int:
    """Wall-clock time in integer milliseconds (the envelope timestamp unit)."""
    return int(time.time() * 1000)


def new_ulid(*, timestamp_ms: int | None = None) -> str:
    """48-bit millisecond time followed by 80 random bits, 26 base32 characters."""
    ts = now_ms() if timestamp_ms is None else timestamp_ms
    if ts < 0 or ts > _MAX_TIMESTAMP_MS:
        raise ValueError(f"timestamp_ms out of range for ULID: {ts}")

    value = (ts << 80) | int.from_bytes(os.urandom(10), "big")
    out = [""] * _ULID_LENGTH
    for i in range(_ULID_LENGTH - 1, -1, -1):
        value, digit = divmod(value, 32)
        out[i] = _ALPHABET[digit]
    return "".join(out)


def new_artifact_id(kind: str, *, timestamp_ms: int | None = None) -> str:
    """Artifact ids are `<kind>_<ulid>`: unique per stream, sortable by creation time."""
    return f"{kind}_{new_ulid(timestamp_ms=timestamp_ms)}"
