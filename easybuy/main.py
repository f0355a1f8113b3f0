# main.py
from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.responses import ORJSONResponse

# Import logging utilities early so that the logger configuration is
# applied before any other modules emit log messages.  The logger is
# used throughout the application for structured JSON logging.
from easybuy.logging_config import logger
import json
import time

from easybuy.clients.http_client import HTTPClient
from easybuy.clients.identity_client import FirebaseCredentialSource
from easybuy.clients.storefront_client import StorefrontClient
from easybuy.core.config import Settings, get_settings
from easybuy.core.credentials import CredentialSource
from easybuy.routes.cart import router as cart_router
from easybuy.routes.orders import router as orders_router
from easybuy.routes.session import router as session_router
from easybuy.services.session_service import SessionSynchronizer


def create_app(
    settings: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    credentials: Optional[CredentialSource] = None,
) -> FastAPI:
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # one HTTP client and one synchronizer per process
        http_client = HTTPClient(settings, transport=transport)
        source = credentials or FirebaseCredentialSource(http_client, settings)
        api = StorefrontClient(http_client, source, settings)
        app.state.http_client = http_client
        app.state.session = SessionSynchronizer(api, source)
        await app.state.session.start()
        try:
            yield
        finally:
            await app.state.session.stop()
            await http_client.aclose()

    app = FastAPI(default_response_class=ORJSONResponse, lifespan=lifespan)

    # register routers
    app.include_router(session_router)
    app.include_router(cart_router)
    app.include_router(orders_router)

    # -----------------------------------------------------------------
    # Request logging middleware
    # -----------------------------------------------------------------
    @app.middleware("http")  # type: ignore[misc]
    async def log_requests(request: Request, call_next):
        start_time = time.time()
        response = await call_next(request)
        duration_ms = (time.time() - start_time) * 1000
        logger.info(json.dumps({
            "event": "bridge_request",
            "path": request.url.path,
            "method": request.method,
            "status": response.status_code,
            "duration_ms": round(duration_ms, 2),
        }))
        return response

    return app


app = create_app()
