"""Availability, slot generation and waitlist engine for multi-worker booking."""

__version__ = "1.0.0"
