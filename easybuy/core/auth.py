"""
core/auth.py
-------------

Utility functions for building authenticated requests to the EasyBuy
backend.

These helpers centralise construction of endpoint URLs and HTTP
headers. They encapsulate knowledge about the bearer scheme and make
sure a token is derived fresh from the credential source for every
call, so that the identity provider can refresh it transparently. Use
:class:`RequestBuilder` in clients when making requests.
"""

from __future__ import annotations

import json
from typing import Dict, Optional

import httpx

from easybuy.core.config import Settings, get_settings
from easybuy.core.credentials import CredentialSource
from easybuy.core.errors import IdentityProviderError, InvalidURL, Unauthorized
from easybuy.logging_config import logger

JSON_CONTENT_TYPE = "application/json"


def get_endpoint_url(base_url: str, path: str) -> str:
    """Return the absolute URL for ``path`` on the backend origin.

    The path is appended to the origin verbatim. Paths are static in
    this client so a failure here points at a broken configuration.

    :param base_url: backend origin (without trailing slash)
    :param path: request path starting with ``/``
    :raises InvalidURL: if the result is not an absolute http(s) URL
    :return: the full endpoint URL
    """
    url = base_url.rstrip("/") + path
    try:
        parsed = httpx.URL(url)
    except (httpx.InvalidURL, TypeError, ValueError) as exc:
        raise InvalidURL() from exc
    if parsed.scheme not in ("http", "https") or not parsed.host:
        raise InvalidURL()
    return url


def build_auth_headers(token: str, content_type: str = JSON_CONTENT_TYPE) -> Dict[str, str]:
    """Create the headers required for an authenticated call.

    :param token: the ID token minted by the credential source
    :param content_type: value of the ``Content-Type`` header
    :return: a dictionary of headers suitable for use with httpx
    """
    return {
        "Authorization": f"Bearer {token}",
        "Content-Type": content_type,
        "Accept": "application/json",
    }


class RequestBuilder:
    """Builds outbound requests, attaching a bearer token when required."""

    def __init__(self, credentials: CredentialSource, settings: Optional[Settings] = None) -> None:
        self.credentials = credentials
        self.settings = settings or get_settings()

    async def build(
        self,
        path: str,
        method: str = "GET",
        body: Optional[bytes] = None,
        *,
        requires_auth: bool = False,
        content_type: str = JSON_CONTENT_TYPE,
        idempotency_key: Optional[str] = None,
    ) -> httpx.Request:
        """Construct a request for ``path``.

        When ``requires_auth`` is set the current session is read first;
        without one :class:`Unauthorized` is raised before any network
        I/O. A failed token mint is also reported as
        :class:`Unauthorized`, chained from the provider error.
        """
        url = get_endpoint_url(self.settings.base_url, path)
        headers: Dict[str, str] = {"Content-Type": content_type}
        if idempotency_key:
            headers["Idempotency-Key"] = idempotency_key

        if requires_auth:
            session = self.credentials.current_session()
            if session is None:
                logger.warning(json.dumps({
                    "event": "request_unauthorized",
                    "path": path,
                    "detail": "No active session",
                }))
                raise Unauthorized()
            try:
                token = await self.credentials.mint_token(session, force_refresh=False)
            except IdentityProviderError as exc:
                logger.warning(json.dumps({
                    "event": "token_mint_failed",
                    "path": path,
                    "detail": exc.message,
                }))
                raise Unauthorized() from exc
            if not token:
                raise Unauthorized()
            headers.update(build_auth_headers(token, content_type))

        return httpx.Request(method.upper(), url, headers=headers, content=body)
