"""Shared pytest fixtures and test helpers for easybuy tests."""

from __future__ import annotations

import json
from typing import Any, Callable, Dict, List, Optional, Tuple

import httpx
import pytest

from easybuy.clients.http_client import HTTPClient
from easybuy.clients.storefront_client import StorefrontClient
from easybuy.core.config import Settings
from easybuy.core.errors import IdentityProviderError

BASE_URL = "https://api.easybuy.test"

USER_PAYLOAD: Dict[str, Any] = {
    "_id": "u1",
    "email": "ada@example.com",
    "name": "Ada",
    "createdAt": "2024-01-02T03:04:05.678Z",
    "cart": [
        {"productId": "p1", "quantity": 1, "product": {"_id": "p1", "name": "Scarf", "price": 20}},
        {"productId": "p2", "quantity": 2, "product": {"_id": "p2", "name": "Hat", "price": 15}},
        {"productId": "p3", "quantity": 1},
    ],
    "orders": [
        {
            "_id": "o1",
            "items": [{"productId": "p9", "quantity": 1, "price": 99.5}],
            "status": "pending",
            "shippingAddress": "1 Main St",
            "paymentMethod": "card",
            "createdAt": "2024-03-01T12:34:56.789Z",
            "review": {"comment": "Great", "rating": 5, "images": ["https://cdn.test/r1.jpg"]},
        },
        {
            "_id": "o2",
            "items": [{"productId": "p8", "quantity": 3}],
            "status": "shipped",
            "shippingAddress": "2 Side St",
            "createdAt": "2024-03-02T08:00:00.000+08:00",
        },
    ],
}


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class FakeSession:
    def __init__(self, uid: str = "u1") -> None:
        self.uid = uid


class FakeCredentialSource:
    """In-memory credential source that records token mints."""

    def __init__(self, session: Optional[FakeSession] = None) -> None:
        self.session = session
        self.listeners: List[Callable[[Any], None]] = []
        self.subscribe_calls = 0
        self.mint_calls: List[bool] = []
        self.mint_error: Optional[str] = None
        self.sign_in_error: Optional[str] = None
        self.sign_up_error: Optional[str] = None
        self.sign_out_error: Optional[str] = None
        self.delete_error: Optional[str] = None
        self.token = "token-1"

    def subscribe(self, listener: Callable[[Any], None]) -> Callable[[], None]:
        self.subscribe_calls += 1
        self.listeners.append(listener)
        listener(self.session)
        return lambda: self.listeners.remove(listener)

    def current_session(self) -> Optional[FakeSession]:
        return self.session

    async def mint_token(self, session: Any, force_refresh: bool = False) -> str:
        self.mint_calls.append(force_refresh)
        if self.mint_error:
            raise IdentityProviderError(self.mint_error)
        return self.token

    def emit(self, session: Optional[FakeSession]) -> None:
        self.session = session
        for listener in list(self.listeners):
            listener(session)

    async def sign_in(self, email: str, password: str) -> FakeSession:
        if self.sign_in_error:
            raise IdentityProviderError(self.sign_in_error)
        self.emit(FakeSession())
        return self.session

    async def sign_up(self, email: str, password: str) -> FakeSession:
        if self.sign_up_error:
            raise IdentityProviderError(self.sign_up_error)
        self.emit(FakeSession())
        return self.session

    async def sign_in_with_idp(self, id_token: str, access_token: Optional[str] = None,
                               provider_id: str = "google.com") -> FakeSession:
        if self.sign_in_error:
            raise IdentityProviderError(self.sign_in_error)
        self.emit(FakeSession())
        return self.session

    async def sign_out(self) -> None:
        if self.sign_out_error:
            raise IdentityProviderError(self.sign_out_error)
        self.emit(None)

    async def delete_account(self) -> None:
        if self.delete_error:
            raise IdentityProviderError(self.delete_error)
        self.emit(None)


Handler = Callable[[httpx.Request], httpx.Response]


class FakeBackend:
    """Routes ``(method, path)`` to canned responses and records every request."""

    def __init__(self) -> None:
        self.routes: Dict[Tuple[str, str], Handler] = {}
        self.requests: List[httpx.Request] = []

    def on(self, method: str, path: str, status: int = 200, json_body: Any = None,
           content: bytes = b"") -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            if json_body is not None:
                return httpx.Response(status, json=json_body)
            return httpx.Response(status, content=content)

        self.routes[(method, path)] = handler

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handler = self.routes.get((request.method, request.url.path))
        if handler is None:
            return httpx.Response(404, json={"message": "not found"})
        return handler(request)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def last_json(self) -> Any:
        return json.loads(self.requests[-1].content)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def settings() -> Settings:
    return Settings(
        base_url=BASE_URL,
        firebase_api_key="test-key",
        identity_toolkit_url="https://identity.test/v1",
        secure_token_url="https://securetoken.test/v1",
    )


@pytest.fixture
def credentials() -> FakeCredentialSource:
    return FakeCredentialSource(FakeSession())


@pytest.fixture
def backend() -> FakeBackend:
    backend = FakeBackend()
    backend.on("GET", "/me", json_body=USER_PAYLOAD)
    return backend


@pytest.fixture
def api(settings: Settings, backend: FakeBackend, credentials: FakeCredentialSource) -> StorefrontClient:
    http_client = HTTPClient(settings, transport=backend.transport)
    return StorefrontClient(http_client, credentials, settings)
