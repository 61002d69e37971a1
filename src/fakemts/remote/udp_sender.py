"""UDP transport to the downstream calibration program."""

from __future__ import annotations

import logging
import socket
from typing import Optional

from ..core.packet import DEFAULT_PORT

logger = logging.getLogger(__name__)

DEFAULT_HOST = "127.0.0.1"


class UdpTransport:
    """
    Fire-and-forget datagram sender.

    Resolving the host and creating the socket happen in the constructor and
    raise ``OSError`` (``socket.gaierror`` for lookups) on failure. A failed
    :meth:`send` is logged and reported as ``-1``; it never raises.
    """

    def __init__(self, host: str = DEFAULT_HOST, port: int = DEFAULT_PORT) -> None:
        self.host = host
        self.port = int(port)
        address = socket.gethostbyname(host)
        self.address = (address, self.port)
        self._sock: Optional[socket.socket] = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        self.sent = 0
        self.failures = 0
        logger.debug("Will send packets to %s (%s:%d)", host, address, self.port)

    def send(self, payload: bytes) -> int:
        if self._sock is None:
            raise RuntimeError("transport is closed")
        try:
            n = self._sock.sendto(payload, self.address)
        except OSError as exc:
            self.failures += 1
            logger.error("sendto %s:%d failed (errno %s): %s", *self.address, exc.errno, exc)
            return -1
        self.sent += 1
        return n

    def close(self) -> None:
        if self._sock is not None:
            self._sock.close()
            self._sock = None

    def __enter__(self) -> "UdpTransport":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
