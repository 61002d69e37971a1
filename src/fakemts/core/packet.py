"""
Wire layout of the emulated keyboard packet.

With the default 20-byte header a packet looks like::

    bytes  0-7   "/mts" + 4 zero bytes          (address pattern)
    bytes  8-14  ",ib" + padding                (type tag string)
    byte  15     0x18                           (arbitrary tag constant)
    bytes 16-19  blob length, big-endian (528)
    bytes 20-547 88 x 6-byte key records {key, x, y, z, a, f}

In headerless mode the packet is just the 528-byte blob.
"""

from __future__ import annotations

import logging

import numpy as np

from .models import KeyRecord

logger = logging.getLogger(__name__)

NUM_KEYS = 88
PARAMS_PER_KEY = 6
BLOB_SIZE = NUM_KEYS * PARAMS_PER_KEY
DEFAULT_HEADER_SIZE = 20
DEFAULT_PORT = 57120

BLOB_SIZE_OFFSET = 16
HEADER_TAG = bytes(
    [
        ord("/"), ord("m"), ord("t"), ord("s"), 0, 0, 0, 0,
        ord(","), ord("i"), ord("b"), 0, 0, 0, 0, 24,
    ]
)


class PacketEncoder:
    """
    Owner of the single output buffer.

    The buffer is allocated once and mutated in place every tick; callers
    must not keep references to :meth:`to_bytes` results expecting them to
    track later writes.
    """

    def __init__(self, header_size: int = DEFAULT_HEADER_SIZE) -> None:
        if header_size not in (0, DEFAULT_HEADER_SIZE):
            raise ValueError(
                f"header_size must be 0 or {DEFAULT_HEADER_SIZE}, got {header_size}"
            )
        self._header_size = int(header_size)
        self._buffer = np.zeros(self._header_size + BLOB_SIZE, dtype=np.uint8)

    @property
    def header_size(self) -> int:
        return self._header_size

    @property
    def size(self) -> int:
        """Total packet length in bytes (header + blob)."""
        return int(self._buffer.size)

    @property
    def buffer(self) -> np.ndarray:
        return self._buffer

    @property
    def header(self) -> np.ndarray:
        return self._buffer[: self._header_size]

    @property
    def blob(self) -> np.ndarray:
        """Writable view of the 88-record blob region."""
        return self._buffer[self._header_size :]

    def initialize(self) -> int:
        """
        Write the header tag and the big-endian blob size.

        Returns the total packet length. Safe to call more than once; the
        header bytes come out identical every time.
        """
        if self._header_size:
            self._buffer[: len(HEADER_TAG)] = np.frombuffer(HEADER_TAG, dtype=np.uint8)
            blob_size = BLOB_SIZE
            self._buffer[BLOB_SIZE_OFFSET] = (blob_size & 0xFF000000) >> 24
            self._buffer[BLOB_SIZE_OFFSET + 1] = (blob_size & 0x00FF0000) >> 16
            self._buffer[BLOB_SIZE_OFFSET + 2] = (blob_size & 0x0000FF00) >> 8
            self._buffer[BLOB_SIZE_OFFSET + 3] = blob_size & 0x000000FF
        logger.debug(
            "Packet initialized: header=%d bytes, total=%d bytes",
            self._header_size,
            self.size,
        )
        return self.size

    def blob_size_from_header(self) -> int:
        """Decode bytes 16-19 as a big-endian length (0 when headerless)."""
        if not self._header_size:
            return 0
        raw = self._buffer[BLOB_SIZE_OFFSET : BLOB_SIZE_OFFSET + 4].tobytes()
        return int.from_bytes(raw, "big")

    def record_offset(self, key: int) -> int:
        return self._header_size + (key - 1) * PARAMS_PER_KEY

    def write_key_record(self, key: int, x: int, y: int, z: int, a: int, f: int) -> None:
        """Overwrite the 6-byte record of ``key`` (1..88); nothing else changes."""
        i = self.record_offset(key)
        self._buffer[i] = key & 0xFF
        self._buffer[i + 1] = x & 0xFF
        self._buffer[i + 2] = y & 0xFF
        self._buffer[i + 3] = z & 0xFF
        self._buffer[i + 4] = a & 0xFF
        self._buffer[i + 5] = f & 0xFF

    def read_key_record(self, key: int) -> KeyRecord:
        i = self.record_offset(key)
        values = [int(v) for v in self._buffer[i : i + PARAMS_PER_KEY]]
        return KeyRecord(*values)

    def to_bytes(self) -> bytes:
        """Return an immutable copy of the whole packet for ``sendto``."""
        return self._buffer.tobytes()
