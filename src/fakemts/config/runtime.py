"""Runtime configuration for the emulator."""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml

from ..core.packet import DEFAULT_PORT
from ..core.pacing import MAX_RATE_HZ, PACING_MODES
from ..dataio.replay_reader import DEFAULT_FRAMING_TOKENS
from ..sensors.calibration import DEFAULT_CALIBRATION_FILE
from ..sensors.generator import DEFAULT_MAX_ATTEMPTS

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class EmulatorConfig:
    """
    Settings for one emulator run.

    The defaults send one packet per second with the full header to
    ``127.0.0.1``, which is the easiest rate to debug against.
    """

    rate_hz: float = 1.0
    host: str = "127.0.0.1"
    port: int = DEFAULT_PORT
    headerless: bool = False
    packet_file: Optional[str] = None
    calibration_file: str = str(DEFAULT_CALIBRATION_FILE)
    pacing: str = "spin"
    debug: bool = False

    framing_tokens: int = DEFAULT_FRAMING_TOKENS
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    seed: Optional[int] = None
    count: Optional[int] = None

    @property
    def replay(self) -> bool:
        return bool(self.packet_file)

    def sanitized(self) -> EmulatorConfig:
        """Return a copy with limits applied and types coerced."""
        rate = float(self.rate_hz)
        if not rate > 0.0:
            raise ValueError(f"rate_hz must be positive, got {self.rate_hz!r}")
        pacing = str(self.pacing or "spin").strip().lower()
        if pacing not in PACING_MODES:
            raise ValueError(f"pacing must be one of {PACING_MODES}, got {self.pacing!r}")
        count = None if self.count is None else max(0, int(self.count))
        return EmulatorConfig(
            rate_hz=min(rate, MAX_RATE_HZ),
            host=str(self.host),
            port=int(self.port),
            headerless=bool(self.headerless),
            packet_file=str(self.packet_file) if self.packet_file else None,
            calibration_file=str(self.calibration_file),
            pacing=pacing,
            debug=bool(self.debug),
            framing_tokens=max(0, int(self.framing_tokens)),
            max_attempts=max(1, int(self.max_attempts)),
            seed=None if self.seed is None else int(self.seed),
            count=count,
        )

    def with_overrides(self, **overrides: Any) -> EmulatorConfig:
        """Apply non-``None`` overrides (e.g. from the command line)."""
        changes = {key: value for key, value in overrides.items() if value is not None}
        return replace(self, **changes).sanitized()


FIELD_NAMES = frozenset(f.name for f in fields(EmulatorConfig))
SECTION = "emulator"


def config_from_mapping(data: Mapping[str, Any] | None, source: str = "<mapping>") -> EmulatorConfig:
    """
    Build :class:`EmulatorConfig` from ``data``.

    Keys may sit at the top level or under an ``emulator:`` section; the
    section wins on conflicts. Unrecognized keys are reported and skipped.
    """
    if not data:
        return EmulatorConfig()
    section = data.get(SECTION) or {}
    if not isinstance(section, Mapping):
        raise ValueError(f"{source}: '{SECTION}' must be a mapping")
    settings = {k: v for k, v in data.items() if k != SECTION}
    settings.update(section)

    unknown = sorted(str(k) for k in settings if k not in FIELD_NAMES)
    if unknown:
        logger.warning("%s: ignoring unknown config keys: %s", source, ", ".join(unknown))
    return EmulatorConfig(
        **{k: v for k, v in settings.items() if k in FIELD_NAMES}
    ).sanitized()


def load_config(path: str | Path | None) -> EmulatorConfig:
    """
    Load configuration from a YAML file, or the defaults when ``path`` is None.

    A path that was asked for but cannot be read, or does not hold a YAML
    mapping, raises ``ValueError``.
    """
    if path is None:
        return EmulatorConfig()
    cfg_path = Path(path)
    try:
        text = cfg_path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise ValueError(f"config file not found: {cfg_path}") from None
    except OSError as exc:
        raise ValueError(f"cannot read config file {cfg_path}: {exc}") from exc
    try:
        raw = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ValueError(f"invalid YAML in {cfg_path}: {exc}") from exc
    if raw is None:
        return EmulatorConfig()
    if not isinstance(raw, Mapping):
        raise ValueError(f"Expected mapping in {cfg_path}, got {type(raw).__name__}")
    logger.debug("Loaded config from %s", cfg_path)
    return config_from_mapping(raw, source=str(cfg_path))


__all__ = ["EmulatorConfig", "config_from_mapping", "load_config"]
