"""fakemts: an emulator for the MTS 88-key sensor keyboard.

The emulator sends one fixed-layout UDP packet per tick describing every key,
either generated within per-key calibration bounds or replayed from a
captured packet log.
"""

__version__ = "0.1.0"
