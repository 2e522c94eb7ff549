"""Exceptions raised by the conference demo service."""

from typing import Optional


class AuthenticationError(Exception):
    """Raised when a webhook delivery fails signature or timestamp checks."""


class CallControlError(Exception):
    """Raised when the call-control API rejects a command or is unreachable."""

    def __init__(self, message: str, status_code: Optional[int] = None, body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class ConfigurationError(Exception):
    """Raised at startup when a setting cannot be used."""
