"""
Availability and booking backend for a rage room, on top of Google Calendar.
"""

__version__ = "1.0.0"
