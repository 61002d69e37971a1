"""
The send loop: fill the packet, transmit it, wait for the next tick.

Two modes share the loop:

- generate: every key gets a bounded-random X/Y from the generator, with the
  Z/A/F channels set to the key number until those get calibration support;
- replay: the replay reader copies the next captured packet into the blob.
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Optional, Protocol

from ..tools.debug import format_packet
from .packet import NUM_KEYS, PacketEncoder
from .pacing import Pacer

if TYPE_CHECKING:
    from ..analysis.rate import SendRateMonitor
    from ..dataio.replay_reader import ReplayReader
    from ..sensors.generator import RandomKeyGenerator

logger = logging.getLogger(__name__)


class Transport(Protocol):
    def send(self, payload: bytes) -> int: ...


class PacingLoop:
    """Single-threaded driver; the encoder's buffer is only touched from here."""

    def __init__(
        self,
        encoder: PacketEncoder,
        transport: Transport,
        pacer: Pacer,
        *,
        generator: Optional["RandomKeyGenerator"] = None,
        replay: Optional["ReplayReader"] = None,
        rate_monitor: Optional["SendRateMonitor"] = None,
        dump_packets: bool = False,
    ) -> None:
        if (generator is None) == (replay is None):
            raise ValueError("PacingLoop needs exactly one of generator or replay")
        self.encoder = encoder
        self.transport = transport
        self.pacer = pacer
        self.generator = generator
        self.replay = replay
        self.rate_monitor = rate_monitor
        self.dump_packets = dump_packets
        self.ticks = 0
        self.send_failures = 0
        self._packet_len = encoder.initialize()

    @property
    def mode(self) -> str:
        return "replay" if self.replay is not None else "generate"

    def fill_generated(self) -> None:
        assert self.generator is not None
        debug = logger.isEnabledFor(logging.DEBUG)
        values = self.generator.generate_all()
        for key in range(1, NUM_KEYS + 1):
            x, y = values[key - 1]
            if debug:
                logger.debug("key %2d, xraw=%02x, yraw=%02x", key, x, y)
            self.encoder.write_key_record(key, x, y, key, key, key)

    def fill_replayed(self) -> None:
        assert self.replay is not None
        self.replay.read_next_packet(self.encoder)

    def transmit(self) -> int:
        payload = self.encoder.to_bytes()
        n = self.transport.send(payload)
        if n < 0:
            self.send_failures += 1
        elif n != self._packet_len:
            logger.warning("Short send: %d of %d bytes", n, self._packet_len)
        return n

    def tick(self) -> None:
        """Fill and send one packet (without waiting)."""
        if self.replay is not None:
            self.fill_replayed()
        else:
            self.fill_generated()

        if self.dump_packets and logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                "packet %d:\n%s",
                self.ticks,
                format_packet(self.encoder.buffer, self.encoder.header_size),
            )

        self.transmit()
        self.ticks += 1

        if self.rate_monitor is not None:
            self.rate_monitor.add_send_time(time.monotonic())
            report_every = max(1, int(round(self.pacer.rate_hz)))
            if self.ticks % report_every == 0:
                logger.debug(
                    "Sent %d packets, achieved %.1f pkt/s (target %.1f)",
                    self.ticks,
                    self.rate_monitor.estimated_hz,
                    self.pacer.rate_hz,
                )

    def run(self, max_ticks: Optional[int] = None) -> int:
        """
        Loop until ``max_ticks`` packets are sent, or forever when ``None``.

        In replay mode the loop also ends when the packet log runs out.
        Returns the number of packets sent during this call.
        """
        logger.info(
            "Sending %d-byte packets in %s mode at %.3g pkt/s (%d ms per tick)",
            self._packet_len,
            self.mode,
            self.pacer.rate_hz,
            self.pacer.interval_ms,
        )
        start = self.ticks
        while max_ticks is None or self.ticks - start < max_ticks:
            try:
                self.tick()
            except EOFError as exc:
                logger.info("Replay finished: %s", exc)
                break
            self.pacer.wait_until_next_tick()
        return self.ticks - start
