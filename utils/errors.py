"""
Exception hierarchy for the relay service.
"""
from typing import Optional


class RelayError(Exception):
    """Base class for all relay errors."""


class ConfigurationError(RelayError):
    """Required configuration is missing or invalid. Fatal at startup."""


class LoadError(RelayError):
    """A reference document could not be read or parsed."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to load {path}: {reason}")


class UpstreamError(RelayError):
    """The model API returned a non-success status or a malformed body."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        self.message = message
        if status_code is not None:
            super().__init__(f"Gemini API error: {status_code} - {message}")
        else:
            super().__init__(f"Gemini API error: {message}")


class RequestError(RelayError):
    """The caller sent a request the relay cannot serve."""

    def __init__(self, message: str, status_code: int = 400):
        self.status_code = status_code
        super().__init__(message)
