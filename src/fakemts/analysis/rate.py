from __future__ import annotations

from collections import deque
from typing import Deque


class SendRateMonitor:
    """
    Estimate the achieved packet rate from send timestamps.

    Notes
    -----
    - Timestamps are in seconds and must increase monotonically.
    - The estimate covers only the most recent ``window_size`` sends, so it
      follows changes in pacing quickly.
    """

    def __init__(self, window_size: int = 100, default_hz: float = 0.0) -> None:
        if window_size <= 1:
            raise ValueError("window_size must be > 1")
        self._times: Deque[float] = deque(maxlen=window_size)
        self.default_hz = float(default_hz)
        self.total_sends = 0

    def add_send_time(self, t: float) -> None:
        """
        Record one transmission.

        Parameters
        ----------
        t:
            Send timestamp in seconds (monotonic increasing).
        """
        self._times.append(float(t))
        self.total_sends += 1

    @property
    def estimated_hz(self) -> float:
        """Packets per second over the current window."""
        if len(self._times) < 2:
            return self.default_hz
        span = self._times[-1] - self._times[0]
        if span <= 0:
            return self.default_hz
        return (len(self._times) - 1) / span

    @property
    def window_span_s(self) -> float:
        if len(self._times) < 2:
            return 0.0
        return self._times[-1] - self._times[0]

    def reset(self) -> None:
        self._times.clear()
        self.total_sends = 0
