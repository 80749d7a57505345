"""Notification fan-out and playlist access backend."""

__version__ = "1.0.0"
