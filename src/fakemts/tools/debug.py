"""Opt-in debug helpers: environment switch and packet hex dumps."""

from __future__ import annotations

import os
from typing import List

import numpy as np

DEBUG_FAKEMTS = os.getenv("FAKEMTS_DEBUG", "").lower() in {"1", "true", "yes", "on"}


def debug_enabled() -> bool:
    """Return True when ``FAKEMTS_DEBUG`` asks for verbose output."""
    return DEBUG_FAKEMTS


def _hex_row(values: np.ndarray) -> str:
    return " ".join(f"{int(v):02x}" for v in values)


def format_packet(buffer: np.ndarray, header_size: int, per_line: int = 24) -> str:
    """
    Render a packet buffer as hex text.

    The header (if any) prints as its three fields (address, type tag,
    blob size) on separate lines, followed by the blob in rows of
    ``per_line`` bytes.
    """
    lines: List[str] = []
    if header_size:
        lines.append(_hex_row(buffer[0:8]))
        lines.append(_hex_row(buffer[8:16]))
        lines.append(_hex_row(buffer[16:header_size]))
    blob = buffer[header_size:]
    for start in range(0, blob.size, per_line):
        lines.append(_hex_row(blob[start : start + per_line]))
    return "\n".join(lines)
