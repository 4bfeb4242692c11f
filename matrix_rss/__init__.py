"""
Matrix RSS - Watch RSS/Atom feeds and post updates to a Matrix room.

A Python application that polls RSS/Atom feeds on a fixed interval and
sends a notification to a Matrix room whenever the newest entry changes.
"""

__version__ = "1.0.0"
