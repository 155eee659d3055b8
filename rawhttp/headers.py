"""Conversion between flat and paired raw header representations.

The wire and the HTTP parser deal in a flat ``[key, value, key, value, ...]``
sequence, while the public API uses ``[(key, value), ...]`` pairs. Neither
direction touches case, order or duplicates.
"""

from __future__ import annotations

from typing import Iterable, Sequence

from .models import RawHeaders


def pair_flat_headers(flat: Sequence[str]) -> RawHeaders:
    """Group a flat header sequence into ``(key, value)`` pairs.

    Args:
        flat: Alternating keys and values, e.g. ``["Host", "a", "X-A", "1"]``.

    Returns:
        Pairs in input order.

    Raises:
        ValueError: If ``flat`` has an odd length.
    """
    items = iter(flat)
    return list(zip(items, items, strict=True))


def flatten_paired_headers(headers: Iterable[Sequence[str]]) -> list[str]:
    """Flatten ``(key, value)`` pairs into ``[key, value, key, value, ...]``."""
    flat: list[str] = []
    for key, value in headers:
        flat.append(key)
        flat.append(value)
    return flat


def serialize_request_head(
    method: str,
    target: str,
    headers: Iterable[Sequence[str]],
) -> bytes:
    """Build the request line and header block exactly as given.

    Nothing is added, merged or validated: no Host, Content-Length,
    Transfer-Encoding or Connection header appears unless it is in
    ``headers``.

    Args:
        method: Request method, sent verbatim.
        target: Request target (path and query).
        headers: Raw header pairs in wire order.

    Returns:
        The head bytes, terminated by the blank line.

    Raises:
        ValueError: If any part cannot be encoded as latin-1.
    """
    flat = flatten_paired_headers(headers)
    lines = [f"{method} {target} HTTP/1.1\r\n"]
    for i in range(0, len(flat), 2):
        lines.append(f"{flat[i]}: {flat[i + 1]}\r\n")
    lines.append("\r\n")

    try:
        return "".join(lines).encode("latin-1")
    except UnicodeEncodeError as e:
        raise ValueError(f"Request head is not latin-1 encodable: {e}") from e
