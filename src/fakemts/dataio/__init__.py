"""Data input helpers.

:mod:`replay_reader` pulls captured packets out of text packet logs so they
can be re-sent verbatim.
"""
