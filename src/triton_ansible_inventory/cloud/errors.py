"""Exceptions raised by the CloudAPI client."""

from __future__ import annotations


class CloudAPIError(Exception):
    """A CloudAPI request failed."""

    def __init__(self, message: str, *, status_code: int | None = None, code: str | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.code = code


class ResourceNotFoundError(CloudAPIError):
    """The requested instance or image does not exist."""


class AuthenticationError(CloudAPIError):
    """CloudAPI rejected the request signature or account."""


class SigningKeyError(AuthenticationError):
    """No usable SSH key matches the profile's key id."""
