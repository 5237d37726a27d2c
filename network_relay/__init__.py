"""Bidirectional UDP relay between a host application and a networked device."""

__version__ = "0.1.0"
