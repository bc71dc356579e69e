from __future__ import annotations

from urllib.parse import quote


def format_bytes(n: int | None) -> str:
    if n is None or n < 0:
        return "unknown size"

    units = ["B", "KiB", "MiB", "GiB", "TiB", "PiB"]
    f = float(n)
    i = 0
    while f >= 1024.0 and i < len(units) - 1:
        f /= 1024.0
        i += 1
    return f"{f:.2f} {units[i]}"


def encode_segment(value: str) -> str:
    """
    Encode an arbitrary string as exactly one path segment.

    Percent-encodes everything outside the unreserved set, plus a leading dot,
    so the result never contains "/", is never "." or "..", and never starts
    with "." (dot-prefixed names are reserved for cache bookkeeping).
    """
    encoded = quote(value, safe="")
    if encoded.startswith("."):
        encoded = "%2E" + encoded[1:]
    return encoded
