"""
Per-key calibration bounds loaded from ``MTSKeyboard.dat``.

File layout (whitespace separated, tokens may wrap across lines)::

    <timestamp line>
    <key>                       decimal, 1..88
    <x_nw> <x_ne>               hex: X back-left, back-right
    <y_nw> <y_ne>               hex: Y back-left, back-right
    <x_sw> <x_se>               hex: X front-left, front-right
    <y_sw> <y_se>               hex: Y front-left, front-right
    ... repeated for all 88 keys

Bounds are derived from the four corner readings as::

    xmax = max(x_ne, x_se)    xmin = min(x_nw, x_sw)
    ymax = max(y_nw, y_ne)    ymin = min(y_sw, y_se)

The y rule pairs the back corners for ``ymax`` and the front corners for
``ymin``, mirroring how the captured data was laid out.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterator, List, Optional

from ..core.models import CalibrationEntry
from ..core.packet import NUM_KEYS

logger = logging.getLogger(__name__)

DEFAULT_CALIBRATION_FILE = Path("MTSKeyboard.dat")
_TOKENS_PER_KEY = 9


@dataclass
class CalibrationTable:
    """Read-only mapping of key index (1..88) to :class:`CalibrationEntry`."""

    entries: Dict[int, CalibrationEntry] = field(default_factory=dict)
    timestamp: Optional[str] = None
    source: Optional[Path] = None

    @classmethod
    def zeros(cls) -> "CalibrationTable":
        """All-zero bounds for every key (fallback when no file is usable)."""
        return cls({key: CalibrationEntry(key) for key in range(1, NUM_KEYS + 1)})

    def __getitem__(self, key: int) -> CalibrationEntry:
        entry = self.entries.get(key)
        if entry is None:
            return CalibrationEntry(key)
        return entry

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[CalibrationEntry]:
        for key in sorted(self.entries):
            yield self.entries[key]

    def invalid_keys(self) -> List[int]:
        """Keys whose bounds are inverted (``min > max`` on either axis)."""
        return [entry.key for entry in self if not entry.is_valid()]


def derive_entry(
    key: int,
    x_nw: int,
    x_ne: int,
    y_nw: int,
    y_ne: int,
    x_sw: int,
    x_se: int,
    y_sw: int,
    y_se: int,
) -> CalibrationEntry:
    """Collapse four corner readings into per-axis bounds."""
    return CalibrationEntry(
        key=key,
        xmin=min(x_nw, x_sw),
        xmax=max(x_ne, x_se),
        ymin=min(y_sw, y_se),
        ymax=max(y_nw, y_ne),
    )


def parse_calibration(text: str, source: Path | None = None) -> CalibrationTable:
    """Parse calibration file contents into a :class:`CalibrationTable`."""
    label = str(source) if source is not None else "<calibration>"
    timestamp, _, body = text.partition("\n")
    tokens = body.split()

    needed = NUM_KEYS * _TOKENS_PER_KEY
    if len(tokens) < needed:
        raise ValueError(
            f"{label}: expected {NUM_KEYS} calibration entries "
            f"({needed} values), found {len(tokens)} values"
        )

    entries: Dict[int, CalibrationEntry] = {}
    for n in range(NUM_KEYS):
        chunk = tokens[n * _TOKENS_PER_KEY : (n + 1) * _TOKENS_PER_KEY]
        try:
            key = int(chunk[0], 10)
            corners = [int(tok, 16) for tok in chunk[1:]]
        except ValueError as exc:
            raise ValueError(f"{label}: bad value in entry {n + 1}: {exc}") from exc
        if not 1 <= key <= NUM_KEYS:
            raise ValueError(f"{label}: key index {key} in entry {n + 1} is outside 1..{NUM_KEYS}")
        entries[key] = derive_entry(key, *corners)

    return CalibrationTable(entries=entries, timestamp=timestamp.strip() or None, source=source)


def load_calibration(path: str | Path = DEFAULT_CALIBRATION_FILE) -> CalibrationTable:
    """
    Load ``path`` into a :class:`CalibrationTable`.

    An unreadable file is reported and replaced by :meth:`CalibrationTable.zeros`
    so the emulator can still run; malformed contents raise ``ValueError``.
    """
    cal_path = Path(path)
    try:
        with cal_path.open("r", encoding="utf-8") as fh:
            text = fh.read()
    except OSError as exc:
        logger.error(
            "Could not open %s for reading (%s); using all-zero calibration bounds",
            cal_path,
            exc,
        )
        return CalibrationTable.zeros()

    table = parse_calibration(text, source=cal_path)
    logger.info(
        "Loaded calibration for %d keys from %s (timestamp: %s)",
        len(table),
        cal_path,
        table.timestamp or "none",
    )
    return table
