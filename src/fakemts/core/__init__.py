"""Packet layout, pacing, and the send loop.

- :mod:`packet` owns the single output buffer and its wire layout.
- :mod:`pacing` paces ticks to the configured send rate.
- :mod:`loop` drives generate/replay ticks through the transport.
"""

from .models import CalibrationEntry, KeyRecord
from .packet import (
    BLOB_SIZE,
    DEFAULT_HEADER_SIZE,
    DEFAULT_PORT,
    NUM_KEYS,
    PARAMS_PER_KEY,
    PacketEncoder,
)
from .pacing import MAX_RATE_HZ, Pacer, interval_ms_for_rate
from .loop import PacingLoop

__all__ = [
    "BLOB_SIZE",
    "CalibrationEntry",
    "DEFAULT_HEADER_SIZE",
    "DEFAULT_PORT",
    "KeyRecord",
    "MAX_RATE_HZ",
    "NUM_KEYS",
    "PARAMS_PER_KEY",
    "PacingLoop",
    "PacketEncoder",
    "Pacer",
    "interval_ms_for_rate",
]
