"""Outbound transport to the downstream calibration program."""
