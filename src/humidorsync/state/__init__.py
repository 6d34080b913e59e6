"""State layer.

This package is the single place where delivered snapshots become
in-memory collection contents, and where the rules deciding whether a
delivery is still current live.
"""
