"""
services/session_service.py
----------------------------

Business logic that keeps the local "current user" in step with the
identity provider and with the outcome of every backend call.

:class:`SessionSynchronizer` owns the published state the UI observes:
authentication state, the user record, the draft order and review,
a transient message and two loading flags. It is the only writer of
that state.

Login and logout notifications from the credential source are pushed
onto an ``asyncio.Queue`` and applied in order by a single consumer
task. Each login starts a user fetch; a generation counter makes sure a
fetch that settles after a newer event (typically a logout) is thrown
away, so a logout always ends in ``unauthenticated`` with no user.

Cart, order and review helpers run one at a time under an
``asyncio.Lock``: the remote call and the local patch of one helper
never interleave with another helper's. Failures never escape these
helpers; they become a published message and leave the local state
as it was.
"""

from __future__ import annotations

import asyncio
import json
from enum import Enum
from typing import Any, Awaitable, Callable, List, Optional

from pydantic import ValidationError

from easybuy.clients.storefront_client import StorefrontClient
from easybuy.core.credentials import CredentialSource
from easybuy.core.errors import APIError, IdentityProviderError
from easybuy.logging_config import logger
from easybuy.schemas.cart import CartLine, CartRequest, DeleteCartRequest
from easybuy.schemas.common import WireModel
from easybuy.schemas.orders import AddReviewRequest, Order, OrderRequest, Review
from easybuy.schemas.user import User

SIGN_UP_SUCCESS_MESSAGE = "User created successfully! Please log in."
EMPTY_ORDER_MESSAGE = "Please check the required fields."
RATING_REQUIRED_MESSAGE = "Please rate the order from 1 to 5 stars."
INVALID_QUANTITY_MESSAGE = "Quantity cannot be negative."
NO_SELECTION_MESSAGE = "Please select at least one product."
INVALID_INPUT_MESSAGE = EMPTY_ORDER_MESSAGE


class AuthenticationState(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATING = "authenticating"
    AUTHENTICATED = "authenticated"


class SessionState(WireModel):
    """Immutable snapshot of everything the UI may render."""
    authentication_state: AuthenticationState
    user: Optional[User] = None
    draft_order: OrderRequest
    comment: str = ""
    rating: int = 0
    selected_image_count: int = 0
    message: Optional[str] = None
    is_auto_loading: bool = False
    is_loading: bool = False
    is_logged_in: bool = False

    model_config = {"frozen": True}


Observer = Callable[[SessionState], None]


class SessionSynchronizer:
    def __init__(self, api: StorefrontClient, credentials: CredentialSource) -> None:
        self.api = api
        self.credentials = credentials

        # published state
        self.authentication_state = AuthenticationState.UNAUTHENTICATED
        self.user: Optional[User] = None
        self.draft_order = OrderRequest.empty()
        self.comment = ""
        self.rating = 0
        self.selected_images: List[Any] = []
        self.message: Optional[str] = None
        self.is_auto_loading = False
        self.is_loading = False

        self._observers: List[Observer] = []
        self._events: Optional[asyncio.Queue] = None
        self._consumer: Optional[asyncio.Task] = None
        self._fetch_task: Optional[asyncio.Task] = None
        self._unsubscribe: Optional[Callable[[], None]] = None
        self._generation = 0
        self._lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # Published state
    # ------------------------------------------------------------------

    @property
    def is_logged_in(self) -> bool:
        return self.user is not None

    def snapshot(self) -> SessionState:
        return SessionState(
            authentication_state=self.authentication_state,
            user=self.user,
            draft_order=self.draft_order,
            comment=self.comment,
            rating=self.rating,
            selected_image_count=len(self.selected_images),
            message=self.message,
            is_auto_loading=self.is_auto_loading,
            is_loading=self.is_loading,
            is_logged_in=self.is_logged_in,
        )

    def add_observer(self, observer: Observer) -> Callable[[], None]:
        """Call ``observer`` with a fresh snapshot after every state change."""
        self._observers.append(observer)

        def remove() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return remove

    def _publish(self) -> None:
        snapshot = self.snapshot()
        for observer in list(self._observers):
            observer(snapshot)

    def clear_message(self) -> None:
        self.message = None
        self._publish()

    def set_draft_order(self, draft: OrderRequest) -> None:
        self.draft_order = draft
        self._publish()

    def set_review_draft(self, comment: str, rating: int, images: Optional[List[Any]] = None) -> None:
        self.comment = comment
        self.rating = rating
        self.selected_images = list(images or [])
        self._publish()

    # ------------------------------------------------------------------
    # Credential source events
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Subscribe to the credential source. Calling it again does nothing."""
        if self._unsubscribe is not None:
            return
        self.is_auto_loading = True
        self._events = asyncio.Queue()
        self._consumer = asyncio.create_task(self._consume_events())
        self._unsubscribe = self.credentials.subscribe(self._events.put_nowait)
        logger.info(json.dumps({"event": "session_listener_registered"}))

    async def stop(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        for task in (self._fetch_task, self._consumer):
            if task is not None and not task.done():
                task.cancel()
                await asyncio.gather(task, return_exceptions=True)
        self._fetch_task = None
        self._consumer = None

    async def settle(self) -> None:
        """Wait until every queued event and the login fetch it started are done."""
        if self._events is None:
            return
        while True:
            await self._events.join()
            task = self._fetch_task
            if task is None or task.done():
                return
            await asyncio.gather(task, return_exceptions=True)

    async def _consume_events(self) -> None:
        assert self._events is not None
        while True:
            session = await self._events.get()
            try:
                if session is None:
                    self._on_logout()
                else:
                    self._on_login()
            finally:
                self._events.task_done()

    def _on_login(self) -> None:
        self._generation += 1
        if self._fetch_task is not None and not self._fetch_task.done():
            self._fetch_task.cancel()
        self.authentication_state = AuthenticationState.AUTHENTICATING
        self.is_auto_loading = True
        self._publish()
        self._fetch_task = asyncio.create_task(self._complete_login(self._generation))

    def _on_logout(self) -> None:
        self._generation += 1
        if self._fetch_task is not None and not self._fetch_task.done():
            self._fetch_task.cancel()
        self.authentication_state = AuthenticationState.UNAUTHENTICATED
        self.user = None
        self.is_auto_loading = False
        logger.info(json.dumps({"event": "session_logged_out"}))
        self._publish()

    async def _complete_login(self, generation: int) -> None:
        user: Optional[User] = None
        try:
            user = await self.api.fetch_user()
        except APIError as exc:
            logger.warning(json.dumps({
                "event": "login_fetch_failed",
                "detail": exc.message,
            }))
            if generation == self._generation:
                self.message = exc.message
        finally:
            # a superseded fetch leaves the newer event's state alone
            if generation == self._generation:
                self.user = user
                if user is not None:
                    self.authentication_state = AuthenticationState.AUTHENTICATED
                    logger.info(json.dumps({"event": "session_authenticated", "user_id": user.id}))
                else:
                    self.authentication_state = AuthenticationState.UNAUTHENTICATED
                self.is_auto_loading = False
                self._publish()

    # ------------------------------------------------------------------
    # Provider operations
    # ------------------------------------------------------------------

    def _revert_attempt(self) -> None:
        # a user who is already signed in stays signed in
        if self.user is not None:
            self.authentication_state = AuthenticationState.AUTHENTICATED
        else:
            self.authentication_state = AuthenticationState.UNAUTHENTICATED

    async def sign_in(self, email: str, password: str) -> bool:
        self.authentication_state = AuthenticationState.AUTHENTICATING
        self.is_loading = True
        self._publish()
        try:
            await self.credentials.sign_in(email, password)
            return True
        except IdentityProviderError as exc:
            logger.warning(json.dumps({"event": "sign_in_failed", "detail": exc.message}))
            self.message = exc.message
            self._revert_attempt()
            return False
        finally:
            self.is_loading = False
            self._publish()

    async def sign_up(self, email: str, password: str) -> bool:
        self.authentication_state = AuthenticationState.AUTHENTICATING
        self.is_loading = True
        self._publish()
        try:
            await self.credentials.sign_up(email, password)
            self.message = SIGN_UP_SUCCESS_MESSAGE
            return True
        except IdentityProviderError as exc:
            logger.warning(json.dumps({"event": "sign_up_failed", "detail": exc.message}))
            self.message = exc.message
            self._revert_attempt()
            return False
        finally:
            self.is_loading = False
            self._publish()

    async def sign_in_with_google(self, id_token: str, access_token: Optional[str] = None) -> bool:
        try:
            await self.credentials.sign_in_with_idp(id_token, access_token, "google.com")
            return True
        except IdentityProviderError as exc:
            logger.warning(json.dumps({"event": "google_sign_in_failed", "detail": exc.message}))
            self.message = exc.message
            self._publish()
            return False

    async def sign_out(self) -> None:
        try:
            await self.credentials.sign_out()
        except IdentityProviderError as exc:
            self.message = exc.message
            self._publish()

    async def delete_account(self) -> bool:
        try:
            await self.credentials.delete_account()
            return True
        except IdentityProviderError as exc:
            logger.warning(json.dumps({"event": "delete_account_failed", "detail": exc.message}))
            self.message = exc.message
            self._publish()
            return False

    # ------------------------------------------------------------------
    # Backend reads and mutations
    # ------------------------------------------------------------------

    async def fetch_user(self) -> None:
        """Refetch the user record. Failures are logged, not published."""
        async with self._lock:
            await self._refresh_user(self._generation)

    async def _refresh_user(self, generation: int) -> None:
        try:
            user = await self.api.fetch_user()
        except APIError as exc:
            logger.warning(json.dumps({"event": "fetch_user_failed", "detail": exc.message}))
            return
        if generation == self._generation and self.user is not None:
            self.user = user
            self._publish()

    def _reject(self, message: str) -> bool:
        self.message = message
        self._publish()
        return False

    async def _mutate(
        self,
        event: str,
        call: Callable[[], Awaitable[Any]],
        patch: Optional[Callable[[User, Any], User]] = None,
        *,
        refresh: bool = False,
    ) -> bool:
        """Run ``call`` and, on success, apply ``patch`` to the local user.

        The patch is skipped when a login or logout happened while the
        call was in flight. With ``refresh`` the user is refetched before
        the lock is released.
        """
        async with self._lock:
            generation = self._generation
            self.is_loading = True
            self._publish()
            try:
                result = await call()
                if patch is not None and generation == self._generation and self.user is not None:
                    self.user = patch(self.user, result)
                if refresh:
                    await self._refresh_user(generation)
                self.message = None
                return True
            except APIError as exc:
                logger.warning(json.dumps({"event": f"{event}_failed", "detail": exc.message}))
                self.message = exc.message
                return False
            except ValidationError as exc:
                logger.warning(json.dumps({"event": f"{event}_invalid", "detail": str(exc)}))
                self.message = INVALID_INPUT_MESSAGE
                return False
            finally:
                self.is_loading = False
                self._publish()

    async def add_cart(self, products: CartRequest) -> bool:
        return await self._mutate(
            "add_cart",
            lambda: self.api.submit_cart(products),
            lambda user, lines: user.model_copy(update={"cart": list(lines)}),
        )

    async def update_cart_item(self, product_id: str, quantity: int) -> bool:
        if quantity < 0:
            return self._reject(INVALID_QUANTITY_MESSAGE)

        def patch(user: User, _: Any) -> User:
            cart = [
                line.model_copy(update={"quantity": quantity}) if line.product_id == product_id else line
                for line in user.cart
            ]
            return user.model_copy(update={"cart": cart})

        return await self._mutate(
            "update_cart_item",
            lambda: self.api.update_cart(product_id, quantity),
            patch,
        )

    async def delete_cart_items(self, product_ids: List[str]) -> bool:
        if not product_ids:
            return self._reject(NO_SELECTION_MESSAGE)
        doomed = set(product_ids)

        def patch(user: User, _: Any) -> User:
            cart: List[CartLine] = [line for line in user.cart if line.product_id not in doomed]
            return user.model_copy(update={"cart": cart})

        return await self._mutate(
            "delete_cart_items",
            lambda: self.api.delete_cart(DeleteCartRequest(product_ids=list(product_ids))),
            patch,
        )

    async def add_order(self) -> bool:
        """Submit the draft order, then refetch the user for the server-assigned order."""
        draft = self.draft_order
        if draft.is_empty:
            return self._reject(EMPTY_ORDER_MESSAGE)
        ok = await self._mutate("add_order", lambda: self.api.submit_order(draft), refresh=True)
        if ok:
            self.draft_order = OrderRequest.empty()
            self._publish()
        return ok

    async def update_order(self, order_id: str) -> bool:
        draft = self.draft_order
        if draft.is_empty:
            return self._reject(EMPTY_ORDER_MESSAGE)

        def patch(user: User, _: Any) -> User:
            changes = {
                "items": list(draft.items),
                "shipping_address": draft.shipping_address,
                "payment_method": draft.payment_method,
                "note": draft.note,
            }
            orders = [o.model_copy(update=changes) if o.id == order_id else o for o in user.orders]
            return user.model_copy(update={"orders": orders})

        ok = await self._mutate("update_order", lambda: self.api.update_order(order_id, draft), patch)
        if ok:
            self.draft_order = OrderRequest.empty()
            self._publish()
        return ok

    async def delete_order(self, order_id: str) -> bool:
        def patch(user: User, _: Any) -> User:
            orders: List[Order] = [o for o in user.orders if o.id != order_id]
            return user.model_copy(update={"orders": orders})

        return await self._mutate("delete_order", lambda: self.api.delete_order(order_id), patch)

    async def add_review(self, order_id: str) -> bool:
        """Submit the draft review (comment, rating, selected images) for ``order_id``."""
        if not 1 <= self.rating <= 5:
            return self._reject(RATING_REQUIRED_MESSAGE)
        request = AddReviewRequest(
            order_id=order_id,
            comment=self.comment,
            rating=self.rating,
            images=list(self.selected_images),
        )

        def patch(user: User, _: Any) -> User:
            review = Review(comment=request.comment, rating=request.rating)
            orders = [o.model_copy(update={"review": review}) if o.id == order_id else o for o in user.orders]
            return user.model_copy(update={"orders": orders})

        ok = await self._mutate("add_review", lambda: self.api.submit_review(request), patch)
        if ok:
            self.comment = ""
            self.rating = 0
            self.selected_images = []
            self._publish()
        return ok

    async def delete_review(self, order_id: str) -> bool:
        def patch(user: User, _: Any) -> User:
            orders = [o.model_copy(update={"review": None}) if o.id == order_id else o for o in user.orders]
            return user.model_copy(update={"orders": orders})

        return await self._mutate("delete_review", lambda: self.api.delete_review(order_id), patch)
