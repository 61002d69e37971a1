"""Development helpers.

:mod:`debug` holds the ``FAKEMTS_DEBUG`` switch and the packet hex dump used
by the send loop's debug output.
"""
