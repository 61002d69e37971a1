"""Configuration objects and helpers for fakemts.

Settings come from three layers, later ones winning: the
:class:`~fakemts.config.runtime.EmulatorConfig` defaults, an optional YAML
file (flat, or nested under an ``emulator:`` key), and command-line flags.
"""

from .runtime import EmulatorConfig, config_from_mapping, load_config

__all__ = ["EmulatorConfig", "config_from_mapping", "load_config"]
