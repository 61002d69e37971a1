"""Bounded-random raw X/Y values for each key."""

from __future__ import annotations

import logging
from typing import List, Optional, Tuple

import numpy as np

from ..core.packet import NUM_KEYS
from .calibration import CalibrationTable

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 10_000
DEFAULT_BATCH_SIZE = 256
_AXES = ("x", "y")


class RandomKeyGenerator:
    """
    Rejection sampler over uniform bytes.

    Each axis draws values in 0..255 until one lands inside that key's
    ``[min, max]`` bounds. Draws are taken ``batch_size`` at a time and the
    first in-range value of a batch wins, so a whole 88-key tick costs a
    handful of numpy calls. Inverted bounds raise ``ValueError`` up front and
    ``max_attempts`` caps the draws per axis, so malformed calibration data
    fails loudly instead of hanging the send loop.

    The bounds are read from ``table`` once, at construction.
    """

    def __init__(
        self,
        table: CalibrationTable,
        rng: Optional[np.random.Generator] = None,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        batch_size: int = DEFAULT_BATCH_SIZE,
    ) -> None:
        if max_attempts <= 0:
            raise ValueError("max_attempts must be positive")
        if batch_size <= 0:
            raise ValueError("batch_size must be positive")
        self.table = table
        self.rng = rng if rng is not None else np.random.default_rng()
        self.max_attempts = int(max_attempts)
        self.batch_size = int(batch_size)

        # Row 2*(key-1) is key's x axis, row 2*(key-1)+1 its y axis.
        self._lo = np.zeros(2 * NUM_KEYS, dtype=np.int16)
        self._hi = np.zeros(2 * NUM_KEYS, dtype=np.int16)
        for key in range(1, NUM_KEYS + 1):
            entry = table[key]
            row = 2 * (key - 1)
            self._lo[row], self._hi[row] = entry.xmin, entry.xmax
            self._lo[row + 1], self._hi[row + 1] = entry.ymin, entry.ymax

    @staticmethod
    def _describe(row: int) -> Tuple[int, str]:
        return row // 2 + 1, _AXES[row % 2]

    def _sample_rows(self, rows: np.ndarray) -> np.ndarray:
        lo = self._lo[rows]
        hi = self._hi[rows]
        inverted = np.flatnonzero(lo > hi)
        if inverted.size:
            i = int(inverted[0])
            key, axis = self._describe(int(rows[i]))
            raise ValueError(
                f"key {key}: calibration bounds for {axis} are inverted ({lo[i]} > {hi[i]})"
            )

        out = np.empty(rows.size, dtype=np.int16)
        pending = np.arange(rows.size)
        attempts = 0
        while pending.size:
            if attempts >= self.max_attempts:
                key, axis = self._describe(int(rows[pending[0]]))
                i = int(pending[0])
                raise RuntimeError(
                    f"key {key}: no {axis} value in [{lo[i]}, {hi[i]}] "
                    f"after {self.max_attempts} draws"
                )
            n = min(self.batch_size, self.max_attempts - attempts)
            draws = self.rng.integers(0, 256, size=(pending.size, n), dtype=np.uint8)
            ok = (draws >= lo[pending, None]) & (draws <= hi[pending, None])
            hit = ok.any(axis=1)
            first = ok.argmax(axis=1)
            out[pending[hit]] = draws[hit, first[hit]]
            pending = pending[~hit]
            attempts += n
        return out

    def generate(self, key: int) -> Tuple[int, int]:
        row = 2 * (key - 1)
        x, y = self._sample_rows(np.array([row, row + 1]))
        return int(x), int(y)

    def generate_all(self) -> List[Tuple[int, int]]:
        """Draw ``(x, y)`` for keys 1..88 in one pass; index 0 is key 1."""
        values = self._sample_rows(np.arange(2 * NUM_KEYS)).reshape(NUM_KEYS, 2)
        return [(int(x), int(y)) for x, y in values]
