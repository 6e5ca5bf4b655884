"""
Exception types for AI Observer.

Capture and storage code recovers from I/O and malformed-input failures locally,
so these are only raised for programming and configuration mistakes.
"""


class ObserverError(Exception):
    """Base class for AI Observer errors."""


class ConfigError(ObserverError):
    """Raised when an environment setting cannot be parsed."""
