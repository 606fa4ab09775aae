from __future__ import annotations


class ConfigError(RuntimeError):
    """Raised when configuration is missing or invalid."""


class CaptureError(RuntimeError):
    """Raised when a capture file (HAR or JSON) cannot be read or parsed."""
