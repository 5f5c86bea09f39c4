"""Exception hierarchy for the FRITZ!Box client.

Every error raised by this package derives from :class:`FritzError`, so
callers can catch a single base class when they do not care about the
specific failure.
"""

from __future__ import annotations

from typing import Any, Optional


class FritzError(Exception):
    """Base exception for FRITZ!Box errors."""

    pass


class MalformedChallengeError(FritzError):
    """Raised when a login challenge cannot be parsed."""

    pass


class AuthenticationError(FritzError):
    """Raised when the router rejects the supplied credentials."""

    def __init__(self, message: str, block_time: int = 0) -> None:
        super().__init__(message)
        self.block_time = block_time


class RequestFailedError(FritzError):
    """Raised when the router answers with a non-success HTTP status.

    Attributes:
        status: HTTP status code.
        status_text: HTTP reason phrase.
        data: Best-effort decoded response body.
    """

    def __init__(
        self,
        message: str,
        *,
        status: int,
        status_text: str = "",
        data: Any = None,
    ) -> None:
        super().__init__(message)
        self.status = status
        self.status_text = status_text
        self.data = data


class SchemaValidationError(FritzError):
    """Raised when a payload or decoded body does not match its shape."""

    def __init__(self, message: str, path: str = "$") -> None:
        super().__init__(f"{path}: {message}")
        self.path = path


class ResponseDecodeError(FritzError):
    """Raised when a JSON or XML body cannot be parsed."""

    def __init__(self, message: str, content_type: Optional[str] = None) -> None:
        super().__init__(message)
        self.content_type = content_type


class DeviceNotFoundError(RequestFailedError):
    """Raised when a smart home device lookup fails."""

    pass


class UnsupportedFeatureError(FritzError):
    """Raised when a device is asked to do something it cannot."""

    pass


class ClientClosedError(FritzError):
    """Raised when a request is made through a client that was closed."""

    pass
