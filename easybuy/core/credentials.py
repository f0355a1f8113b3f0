"""
core/credentials.py
--------------------

The contract the core expects from an identity provider.

A credential source owns the user's login session. It pushes session
changes to subscribers (the current session on login, ``None`` on
logout) and mints short‑lived bearer tokens on demand. The core never
looks inside a session; it only checks whether one exists and hands it
back to :meth:`CredentialSource.mint_token`.
"""

from __future__ import annotations

from typing import Any, Callable, Optional, Protocol, runtime_checkable

SessionListener = Callable[[Optional[Any]], None]


@runtime_checkable
class CredentialSource(Protocol):
    """Identity provider session manager consumed by the core."""

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Register ``listener`` and return a callable that unregisters it.

        Implementations deliver the current session to the listener
        right away, then once per login or logout.
        """
        ...

    def current_session(self) -> Optional[Any]:
        ...

    async def mint_token(self, session: Any, force_refresh: bool = False) -> str:
        ...

    async def sign_in(self, email: str, password: str) -> Any:
        ...

    async def sign_up(self, email: str, password: str) -> Any:
        ...

    async def sign_in_with_idp(self, id_token: str, access_token: Optional[str] = None,
                               provider_id: str = "google.com") -> Any:
        ...

    async def sign_out(self) -> None:
        ...

    async def delete_account(self) -> None:
        ...
