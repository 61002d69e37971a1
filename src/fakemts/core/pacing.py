"""Tick pacing for the send loop."""

from __future__ import annotations

import logging
import math
import time
from typing import Callable, Iterator

logger = logging.getLogger(__name__)

MAX_RATE_HZ = 500.0
PACING_MODES = ("spin", "sleep")


def clamp_rate(rate_hz: float) -> float:
    """Validate ``rate_hz`` and cap it at :data:`MAX_RATE_HZ`."""
    hz = float(rate_hz)
    if hz <= 0.0 or math.isnan(hz) or math.isinf(hz):
        raise ValueError(f"send rate must be a positive number, got {rate_hz!r}")
    return min(hz, MAX_RATE_HZ)


def interval_ms_for_rate(rate_hz: float) -> int:
    """Convert a send rate in Hz into the per-tick delay in whole milliseconds."""
    interval = int(round(1000.0 / clamp_rate(rate_hz)))
    return max(1, interval)


def tick_schedule(interval_ns: int, start_ns: int) -> Iterator[int]:
    """Yield target clock readings spaced ``interval_ns`` apart.

    Each target is the previous target plus one interval, so small wake-up
    errors do not accumulate into drift.
    """
    next_t = start_ns
    while True:
        next_t += interval_ns
        yield next_t


class Pacer:
    """
    Waits out the remainder of each tick.

    ``spin`` busy-waits on the monotonic clock for the tightest timing;
    ``sleep`` hands the wait to the OS scheduler and burns no CPU.
    """

    def __init__(
        self,
        rate_hz: float,
        mode: str = "spin",
        *,
        clock: Callable[[], int] = time.monotonic_ns,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if mode not in PACING_MODES:
            raise ValueError(f"pacing mode must be one of {PACING_MODES}, got {mode!r}")
        self.rate_hz = clamp_rate(rate_hz)
        self.mode = mode
        self.interval_ms = interval_ms_for_rate(self.rate_hz)
        self._interval_ns = self.interval_ms * 1_000_000
        self._clock = clock
        self._sleep = sleep
        self._schedule: Iterator[int] | None = None
        self.overruns = 0

    def reset(self) -> None:
        """Restart the schedule from the current clock reading."""
        self._schedule = tick_schedule(self._interval_ns, self._clock())

    def wait_until_next_tick(self) -> None:
        if self._schedule is None:
            self.reset()
        assert self._schedule is not None
        target = next(self._schedule)

        now = self._clock()
        if now >= target:
            # Late: count it and rebase so we don't fire a burst to catch up.
            self.overruns += 1
            if self.overruns % 50 == 1:
                logger.debug(
                    "Tick overrun by %.3f ms (count=%d)",
                    (now - target) / 1e6,
                    self.overruns,
                )
            self._schedule = tick_schedule(self._interval_ns, now)
            return

        if self.mode == "sleep":
            self._sleep((target - now) / 1e9)
            return

        while now < target:
            now = self._clock()
