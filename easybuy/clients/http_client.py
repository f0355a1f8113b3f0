"""
clients/http_client.py
----------------------

Async HTTP client wrapper with connection pooling and timeouts. This
client should only be instantiated once per process and shared across
the API and identity clients via dependency injection or the FastAPI
lifespan event. It uses the ``httpx`` library under the hood and
honours the global settings defined in :mod:`easybuy.core.config`.

Requests are sent exactly once. Retrying is left to the caller: the
backend does not deduplicate every mutation, so a blind retry of a
POST could create the same order twice.
"""

from __future__ import annotations

import json
import time
from typing import Any, Optional

import httpx

from easybuy.core.config import Settings, get_settings
from easybuy.core.errors import InvalidResponse
from easybuy.logging_config import log_http_request, logger


class HTTPClient:
    """Shared async HTTP client.

    Use this class for all outbound HTTP interactions within the
    application. A custom ``transport`` can be supplied, which is how
    tests plug in :class:`httpx.MockTransport`.
    """

    def __init__(self, settings: Optional[Settings] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None) -> None:
        settings = settings or get_settings()
        self.timeout = settings.http_timeout
        # HTTPX AsyncClient uses connection pooling
        self._client = httpx.AsyncClient(timeout=self.timeout, transport=transport)

    async def aclose(self) -> None:
        """Close the underlying HTTPX client and release resources."""
        await self._client.aclose()

    async def send(self, request: httpx.Request) -> httpx.Response:
        """Send a prepared request once and read the full body.

        Network failures and timeouts are reported as
        :class:`InvalidResponse`.
        """
        # requests built outside this client carry no timeout extension
        request.extensions.setdefault("timeout", self._client.timeout.as_dict())
        start_time = time.time()
        body_size = len(request.content) if request.content else None
        log_http_request(request.method, str(request.url), headers=dict(request.headers), body_size=body_size)
        try:
            response = await self._client.send(request)
        except httpx.HTTPError as exc:
            logger.error(json.dumps({
                "event": "http_error",
                "method": request.method,
                "url": str(request.url),
                "detail": str(exc),
            }))
            raise InvalidResponse() from exc
        duration_ms = (time.time() - start_time) * 1000
        log_http_request(request.method, str(request.url), status=response.status_code, duration_ms=duration_ms)
        return response

    async def request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """Build and send a request in one step; see :meth:`send`."""
        return await self.send(self._client.build_request(method, url, **kwargs))
