"""
core/errors.py
---------------

Error taxonomy for the storefront client.

Every API Client operation either returns its value or raises exactly
one :class:`APIError` subclass. Each error carries a short,
human-readable ``message`` that the session layer publishes to the UI
as-is, so messages are phrased for end users rather than developers.
"""

from __future__ import annotations

from typing import Optional


class APIError(Exception):
    """Base class for failures raised by the API Client."""

    default_message = "Something went wrong"

    def __init__(self, message: Optional[str] = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidURL(APIError):
    """The configured base URL and the request path do not form a URL."""

    default_message = "Invalid URL"


class InvalidResponse(APIError):
    """The transport failed or returned something that is not a response."""

    default_message = "Invalid server response"


class Unauthorized(APIError):
    """No session, a failed token mint, or a 401/403 from the backend."""

    default_message = "Unauthorized, please sign in again"


class ServerError(APIError):
    """The backend answered with a status other than 200, 401 or 403."""

    def __init__(self, status: int, body: str = "") -> None:
        self.status = status
        self.body = body
        super().__init__(f"Server error (status {status})")


class DecodeError(APIError):
    """A response body did not match the expected shape."""

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"Unable to read server data: {detail}")


class ImageEncodingError(APIError):
    """A review image could not be converted to JPEG."""

    def __init__(self, index: int) -> None:
        self.index = index
        super().__init__(f"Image {index + 1} could not be encoded")


class IdentityProviderError(Exception):
    """Failure reported by the identity provider, surfaced verbatim."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)
