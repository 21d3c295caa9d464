"""Nagios-compatible monitoring plugins for Linux systems."""

__version__ = "1.0.0"