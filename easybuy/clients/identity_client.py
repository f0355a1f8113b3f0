"""
clients/identity_client.py
---------------------------

Credential source backed by the Firebase Authentication REST API.

It implements :class:`easybuy.core.credentials.CredentialSource`:
email/password sign-in and sign-up, federated sign-in with a Google ID
token, account deletion and sign-out, plus ID token minting with
refresh through the Secure Token endpoint. Listeners are told about
every login and logout; a token refresh is not a session change and is
not broadcast.

The session lives in process memory only. Error payloads of the form
``{"error": {"message": "EMAIL_NOT_FOUND"}}`` are raised verbatim as
:class:`IdentityProviderError`.
"""

from __future__ import annotations

import json
import time
from typing import Any, Callable, Dict, List, Optional

from pydantic import BaseModel

from easybuy.clients.http_client import HTTPClient
from easybuy.core.config import Settings, get_settings
from easybuy.core.credentials import SessionListener
from easybuy.core.errors import IdentityProviderError, InvalidResponse
from easybuy.logging_config import log_call, logger


class IdentitySession(BaseModel):
    """A signed-in Firebase user and its current token pair."""
    uid: str
    email: Optional[str] = None
    id_token: str
    refresh_token: str
    expires_at: float

    model_config = {"frozen": True}


class FirebaseCredentialSource:
    def __init__(self, http_client: HTTPClient, settings: Optional[Settings] = None,
                 clock: Callable[[], float] = time.time) -> None:
        self.http_client = http_client
        self.settings = settings or get_settings()
        self._clock = clock
        self._session: Optional[IdentitySession] = None
        self._listeners: List[SessionListener] = []

    # ------------------------------------------------------------------
    # Session observation
    # ------------------------------------------------------------------

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Register ``listener``; it is called at once with the current session."""
        self._listeners.append(listener)
        listener(self._session)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def current_session(self) -> Optional[IdentitySession]:
        return self._session

    def _set_session(self, session: Optional[IdentitySession]) -> None:
        self._session = session
        logger.info(json.dumps({
            "event": "identity_session_changed",
            "uid": session.uid if session else None,
        }))
        for listener in list(self._listeners):
            listener(session)

    # ------------------------------------------------------------------
    # HTTP helpers
    # ------------------------------------------------------------------

    async def _post(self, url: str, *, json_body: Optional[Dict[str, Any]] = None,
                    form: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
        params = {"key": self.settings.firebase_api_key}
        try:
            if form is not None:
                res = await self.http_client.request("POST", url, params=params, data=form)
            else:
                res = await self.http_client.request("POST", url, params=params, json=json_body)
        except InvalidResponse as exc:
            raise IdentityProviderError("Network error, please try again") from exc
        try:
            payload = res.json()
        except ValueError:
            payload = {}
        if res.status_code != 200:
            error = payload.get("error") if isinstance(payload, dict) else None
            # Identity Toolkit nests the message; the token endpoint sends a bare OAuth code
            if isinstance(error, dict):
                message = error.get("message")
            elif isinstance(error, str):
                message = error
            else:
                message = None
            logger.warning(json.dumps({
                "event": "identity_error",
                "status_code": res.status_code,
                "detail": message,
            }))
            raise IdentityProviderError(message or f"Identity provider error (status {res.status_code})")
        if not isinstance(payload, dict):
            raise IdentityProviderError("Malformed identity provider response")
        return payload

    def _account_url(self, action: str) -> str:
        return f"{self.settings.identity_toolkit_url}/accounts:{action}"

    def _session_from(self, payload: Dict[str, Any]) -> IdentitySession:
        try:
            return IdentitySession(
                uid=payload["localId"],
                email=payload.get("email"),
                id_token=payload["idToken"],
                refresh_token=payload["refreshToken"],
                expires_at=self._clock() + float(payload.get("expiresIn", 3600)),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise IdentityProviderError("Malformed identity provider response") from exc

    # ------------------------------------------------------------------
    # Provider operations
    # ------------------------------------------------------------------

    async def sign_in(self, email: str, password: str) -> IdentitySession:
        # no log_call: positional args include the password
        logger.info(json.dumps({"event": "sign_in_start", "email": email}))
        payload = await self._post(self._account_url("signInWithPassword"), json_body={
            "email": email,
            "password": password,
            "returnSecureToken": True,
        })
        session = self._session_from(payload)
        self._set_session(session)
        return session

    async def sign_up(self, email: str, password: str) -> IdentitySession:
        """Create an account. Firebase signs the new user in right away."""
        logger.info(json.dumps({"event": "sign_up_start", "email": email}))
        payload = await self._post(self._account_url("signUp"), json_body={
            "email": email,
            "password": password,
            "returnSecureToken": True,
        })
        session = self._session_from(payload)
        self._set_session(session)
        return session

    async def sign_in_with_idp(self, id_token: str, access_token: Optional[str] = None,
                               provider_id: str = "google.com") -> IdentitySession:
        """Exchange a federated (e.g. Google) credential for a Firebase session."""
        logger.info(json.dumps({"event": "idp_sign_in_start", "provider": provider_id}))
        post_body = f"id_token={id_token}&providerId={provider_id}"
        if access_token:
            post_body += f"&access_token={access_token}"
        payload = await self._post(self._account_url("signInWithIdp"), json_body={
            "postBody": post_body,
            "requestUri": self.settings.idp_request_uri,
            "returnSecureToken": True,
            "returnIdpCredential": True,
        })
        session = self._session_from(payload)
        self._set_session(session)
        return session

    async def sign_out(self) -> None:
        self._set_session(None)

    @log_call
    async def delete_account(self) -> None:
        session = self._session
        if session is None:
            return
        token = await self.mint_token(session)
        await self._post(self._account_url("delete"), json_body={"idToken": token})
        self._set_session(None)

    async def mint_token(self, session: Any, force_refresh: bool = False) -> str:
        """Return a valid ID token for ``session``.

        The cached token is reused until it is within
        ``token_refresh_skew`` seconds of expiring, unless
        ``force_refresh`` is set.
        """
        if not isinstance(session, IdentitySession):
            raise IdentityProviderError("Unknown session")
        if not force_refresh and self._clock() < session.expires_at - self.settings.token_refresh_skew:
            return session.id_token
        payload = await self._post(f"{self.settings.secure_token_url}/token", form={
            "grant_type": "refresh_token",
            "refresh_token": session.refresh_token,
        })
        try:
            refreshed = session.model_copy(update={
                "id_token": payload["id_token"],
                "refresh_token": payload.get("refresh_token", session.refresh_token),
                "expires_at": self._clock() + float(payload.get("expires_in", 3600)),
            })
        except (KeyError, TypeError, ValueError) as exc:
            raise IdentityProviderError("Malformed token refresh response") from exc
        if self._session is not None and self._session.uid == session.uid:
            # same user: keep the fresh pair without broadcasting a change
            self._session = refreshed
        logger.info(json.dumps({"event": "identity_token_refreshed", "uid": session.uid}))
        return refreshed.id_token
