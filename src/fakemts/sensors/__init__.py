"""Keyboard sensor models: calibration bounds and synthetic readings.

:mod:`calibration` parses ``MTSKeyboard.dat`` into per-key X/Y bounds and
:mod:`generator` draws raw values that stay inside those bounds.
"""

from .calibration import CalibrationTable, load_calibration
from .generator import RandomKeyGenerator

__all__ = ["CalibrationTable", "RandomKeyGenerator", "load_calibration"]
