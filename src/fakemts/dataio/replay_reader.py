"""
Scanner for captured packet logs.

A packet log is free-form text (e.g. a capture tool's "copy as C array"
export mixed with other log lines). Every captured packet appears as::

    static const unsigned char pkt12[590] = {
    0x00, 0x1b, 0x21, ...
    };

The 590 tokens are 42 bytes of Ethernet/IP/UDP framing followed by the
packet payload. The scanner alternates between two states:

``seeking``
    line-oriented; read lines until one carries both marker phrases.
``consuming``
    token-oriented; split lines on whitespace and commas, drop the framing
    tokens, then decode hex bytes into the blob region.

Non-hex tokens (``{``, ``};``, identifiers) are ignored while consuming.
"""

from __future__ import annotations

import logging
import re
from collections import deque
from typing import Deque, Iterable, Iterator, Literal, Optional

import numpy as np

from ..core.packet import PacketEncoder

logger = logging.getLogger(__name__)

MARKER_DECLARATION = "static const unsigned char"
MARKER_LENGTH = "[590]"
DEFAULT_FRAMING_TOKENS = 42

ScanState = Literal["seeking", "consuming"]

_TOKEN_SPLIT = re.compile(r"[\s,]+")


def is_marker_line(line: str) -> bool:
    return MARKER_DECLARATION in line and MARKER_LENGTH in line


def parse_hex_token(token: str) -> Optional[int]:
    """Return the byte value of a hex token (``0x`` prefix optional), else None."""
    try:
        return int(token, 16) & 0xFF
    except ValueError:
        return None


class _BlockInterrupted(Exception):
    """A new marker line showed up before the current block was complete."""


class ReplayReader:
    """Pulls successive captured packets out of a text stream."""

    def __init__(
        self,
        stream: Iterable[str],
        framing_tokens: int = DEFAULT_FRAMING_TOKENS,
    ) -> None:
        if framing_tokens < 0:
            raise ValueError("framing_tokens must be >= 0")
        self._lines: Iterator[str] = iter(stream)
        self._pending: Deque[str] = deque()
        self.framing_tokens = int(framing_tokens)
        self.state: ScanState = "seeking"
        self.line_number = 0
        self.packets_read = 0

    # ------------------------------------------------------------------ lines
    def _next_line(self) -> str:
        try:
            line = next(self._lines)
        except StopIteration:
            raise EOFError(
                f"packet log exhausted after {self.packets_read} packets "
                f"({self.line_number} lines)"
            ) from None
        self.line_number += 1
        return line

    def seek_next_block(self) -> None:
        """Advance to the line after the next packet declaration."""
        self._pending.clear()
        self.state = "seeking"
        while not is_marker_line(self._next_line()):
            pass
        self.state = "consuming"
        logger.debug("Packet block found at line %d", self.line_number)

    # ----------------------------------------------------------------- tokens
    def _next_byte(self) -> int:
        if self.state != "consuming":
            raise RuntimeError("no packet block open; call seek_next_block() first")
        while True:
            while self._pending:
                value = parse_hex_token(self._pending.popleft())
                if value is not None:
                    return value
            line = self._next_line()
            if is_marker_line(line):
                # The new declaration opens the next block; stay consuming.
                self._pending.clear()
                raise _BlockInterrupted()
            self._pending.extend(tok for tok in _TOKEN_SPLIT.split(line) if tok)

    def skip_framing(self, n: Optional[int] = None) -> None:
        """Discard ``n`` hex tokens (defaults to :attr:`framing_tokens`)."""
        count = self.framing_tokens if n is None else n
        skipped = [self._next_byte() for _ in range(count)]
        if skipped and logger.isEnabledFor(logging.DEBUG):
            logger.debug("skip: %s", " ".join(f"{b:02x}" for b in skipped))

    def fill_blob(self, blob: np.ndarray) -> None:
        """Decode hex tokens into ``blob`` until every byte has been written."""
        for i in range(blob.size):
            blob[i] = self._next_byte()
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("blob: %s", blob.tobytes().hex(" "))

    # ----------------------------------------------------------------- packet
    def read_next_packet(self, encoder: PacketEncoder) -> None:
        """
        Load the next captured packet into ``encoder``'s blob region.

        Raises ``EOFError`` when the log runs out, including part way
        through a block.
        """
        if self.state == "seeking":
            self.seek_next_block()
        while True:
            try:
                self.skip_framing()
                self.fill_blob(encoder.blob)
                break
            except _BlockInterrupted:
                logger.warning(
                    "Truncated packet block before line %d; using the next block",
                    self.line_number,
                )
        self.packets_read += 1
        self.state = "seeking"
