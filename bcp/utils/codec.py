"""Structured-field codec.

Site lists and dependency lists are persisted as a single JSON text column.
Rows written before a field existed, or edited by hand, may hold NULL, an
empty string or garbage; ``decode`` turns all of those into an empty list
instead of raising.

Usage
-----
    from bcp.utils.codec import encode, decode

    process.sites = encode(["Site A", "Site B"])   # '["Site A", "Site B"]'
    decode(process.sites)                          # ['Site A', 'Site B']
    decode("{not json")                            # []
"""

from __future__ import annotations

import json
import logging

logger = logging.getLogger(__name__)


def encode(value) -> str:
    """Serialise a list/dict to JSON text. ``None`` encodes as an empty list."""
    if value is None:
        return "[]"
    return json.dumps(value, ensure_ascii=False)


def decode(text, *, field: str | None = None, row_id: str | None = None) -> list | dict:
    """Parse JSON text back into a list/dict.

    Absent, empty, malformed or scalar content decodes to ``[]``.  Non-empty
    content that had to be discarded is logged at WARNING so corrupted rows
    can be found, but the caller always gets a usable value.
    """
    if text is None:
        return []
    if isinstance(text, (list, dict)):
        return text
    if not isinstance(text, (str, bytes, bytearray)) or not text.strip():
        return []
    try:
        value = json.loads(text)
    except (json.JSONDecodeError, TypeError, ValueError) as exc:
        logger.warning(
            "Structured field decode fallback field=%s row=%s: %s",
            field, row_id, exc,
        )
        return []
    if not isinstance(value, (list, dict)):
        logger.warning(
            "Structured field decode fallback field=%s row=%s: unexpected %s",
            field, row_id, type(value).__name__,
        )
        return []
    return value
