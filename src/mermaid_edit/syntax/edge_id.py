"""Edge identifier generation.

Edge ids are derived from an edge's semantic content, so parsing the same
text twice yields the same ids. The hash is djb2 with xor mixing, truncated
to 32 bits; it is a stability device, not a security one.
"""

from __future__ import annotations

from collections.abc import Container

from mermaid_edit.types import ArrowType, Stroke

EDGE_ID_PREFIX = "edge-"
DUP_SUFFIX = "-dup"


def djb2(text: str) -> int:
    h = 5381
    for ch in text:
        h = ((h * 33) ^ ord(ch)) & 0xFFFFFFFF
    return h


def generate_edge_id(
    source: str,
    target: str,
    operator: str,
    text: str | None,
    stroke: Stroke,
    arrow_start: ArrowType,
    arrow_end: ArrowType,
) -> str:
    """Return ``edge-<hex>`` for the given edge content."""
    content = "|".join(
        [
            source,
            target,
            operator,
            text or "",
            stroke.value,
            arrow_start.value,
            arrow_end.value,
        ]
    )
    return f"{EDGE_ID_PREFIX}{djb2(content):x}"


def dedupe_edge_id(base: str, taken: Container[str]) -> str:
    """Return ``base`` or the first free ``base-dup<N>`` (N counting from 1)."""
    if base not in taken:
        return base
    n = 1
    while f"{base}{DUP_SUFFIX}{n}" in taken:
        n += 1
    return f"{base}{DUP_SUFFIX}{n}"
