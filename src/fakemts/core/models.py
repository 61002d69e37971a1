"""Shared dataclasses for calibration bounds and key records."""

from dataclasses import dataclass


@dataclass(frozen=True)
class CalibrationEntry:
    key: int
    xmin: int = 0
    xmax: int = 0
    ymin: int = 0
    ymax: int = 0

    def is_valid(self) -> bool:
        """Return True when both axes have ``min <= max``."""
        return self.xmin <= self.xmax and self.ymin <= self.ymax


@dataclass(frozen=True)
class KeyRecord:
    """One key's six byte-sized fields, in wire order."""

    key: int
    x: int
    y: int
    z: int
    a: int
    f: int

    def as_tuple(self) -> tuple[int, int, int, int, int, int]:
        return (self.key, self.x, self.y, self.z, self.a, self.f)
