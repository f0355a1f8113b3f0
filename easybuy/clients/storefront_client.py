"""
clients/storefront_client.py
-----------------------------

Client for the EasyBuy commerce backend. Exposes one coroutine per
resource action. Each call builds an authenticated request through
:class:`easybuy.core.auth.RequestBuilder`, sends it once through the
shared :class:`HTTPClient`, checks the status and, when the endpoint
returns data, decodes it with :func:`easybuy.core.decoding.decode`.

Status handling: 200 is success, 401/403 raise :class:`Unauthorized`
and anything else raises :class:`ServerError` carrying the status and
body text.
"""

from __future__ import annotations

import json
import uuid
from typing import List, Optional

import httpx

from easybuy.clients.http_client import HTTPClient
from easybuy.core.auth import JSON_CONTENT_TYPE, RequestBuilder
from easybuy.core.config import Settings, get_settings
from easybuy.core.credentials import CredentialSource
from easybuy.core.decoding import decode
from easybuy.core.errors import ServerError, Unauthorized
from easybuy.logging_config import log_call, logger
from easybuy.schemas.cart import CartLine, CartRequest, CartResponse, DeleteCartRequest, UpdateCartRequest
from easybuy.schemas.orders import AddReviewRequest, OrderRequest
from easybuy.schemas.user import User
from easybuy.utils.multipart import content_type_for, encode_review_form, new_boundary


class StorefrontClient:
    def __init__(self, http_client: HTTPClient, credentials: CredentialSource,
                 settings: Optional[Settings] = None) -> None:
        self.http_client = http_client
        self.settings = settings or get_settings()
        self.builder = RequestBuilder(credentials, self.settings)

    async def _call(
        self,
        path: str,
        method: str = "GET",
        body: Optional[bytes] = None,
        content_type: str = JSON_CONTENT_TYPE,
    ) -> httpx.Response:
        idempotency_key = None
        if method == "POST" and self.settings.send_idempotency_key:
            idempotency_key = str(uuid.uuid4())
        request = await self.builder.build(
            path,
            method,
            body,
            requires_auth=True,
            content_type=content_type,
            idempotency_key=idempotency_key,
        )
        response = await self.http_client.send(request)
        if response.status_code == 200:
            return response
        logger.warning(json.dumps({
            "event": "api_error",
            "method": method,
            "path": path,
            "status_code": response.status_code,
        }))
        if response.status_code in (401, 403):
            raise Unauthorized()
        raise ServerError(response.status_code, response.text)

    # ------------------------------------------------------------------
    # User
    # ------------------------------------------------------------------

    @log_call
    async def fetch_user(self) -> User:
        """``GET /me``: the signed-in user's account, cart and orders."""
        response = await self._call("/me")
        return decode(User, response.content)

    # ------------------------------------------------------------------
    # Orders
    # ------------------------------------------------------------------

    @log_call
    async def submit_order(self, order: OrderRequest) -> None:
        await self._call("/order", "POST", order.to_json_bytes())

    @log_call
    async def update_order(self, order_id: str, order: OrderRequest) -> None:
        await self._call(f"/order/{order_id}", "PUT", order.to_json_bytes())

    @log_call
    async def delete_order(self, order_id: str) -> None:
        await self._call(f"/order/{order_id}", "DELETE")

    # ------------------------------------------------------------------
    # Cart
    # ------------------------------------------------------------------

    @log_call
    async def submit_cart(self, add: CartRequest) -> List[CartLine]:
        """``POST /cart``: add a product and return the updated cart lines."""
        response = await self._call("/cart", "POST", add.to_json_bytes())
        return decode(CartResponse, response.content).cart.products

    @log_call
    async def update_cart(self, product_id: str, quantity: int) -> None:
        body = UpdateCartRequest(quantity=quantity).to_json_bytes()
        await self._call(f"/cart/{product_id}", "PUT", body)

    @log_call
    async def delete_cart(self, product_ids: DeleteCartRequest) -> None:
        await self._call("/cart", "DELETE", product_ids.to_json_bytes())

    # ------------------------------------------------------------------
    # Reviews
    # ------------------------------------------------------------------

    @log_call
    async def submit_review(self, add: AddReviewRequest) -> None:
        """``POST /order/{id}/review`` as ``multipart/form-data``.

        Raises :class:`ImageEncodingError` before any request is built
        if one of the images cannot be encoded.
        """
        boundary = new_boundary()
        body = encode_review_form(
            add.comment,
            add.rating,
            add.images,
            boundary,
            max_images=self.settings.max_review_images,
            quality=self.settings.jpeg_quality,
        )
        await self._call(f"/order/{add.order_id}/review", "POST", body, content_type_for(boundary))

    @log_call
    async def delete_review(self, order_id: str) -> None:
        await self._call(f"/order/{order_id}/review", "DELETE")
