"""
routes/session.py
------------------

Bridge routes for authentication and the published session state.
These routes delegate to :class:`SessionSynchronizer` and return its
snapshot, so the UI never talks to the backend or the identity
provider directly.
"""

from __future__ import annotations

import json
from typing import Any, Dict

from fastapi import APIRouter, Depends, Request

from easybuy.logging_config import logger
from easybuy.schemas.auth import Credentials, GoogleSignIn
from easybuy.services.session_service import SessionSynchronizer

router = APIRouter()


def get_session(request: Request) -> SessionSynchronizer:
    """Dependency to retrieve the shared synchronizer from the application state."""
    return request.app.state.session


def render(session: SessionSynchronizer) -> Dict[str, Any]:
    return session.snapshot().model_dump(mode="json", by_alias=True)


@router.get("/state")
async def get_state(session: SessionSynchronizer = Depends(get_session)):
    return render(session)


@router.post("/auth/sign-in")
async def sign_in(data: Credentials, session: SessionSynchronizer = Depends(get_session)):
    logger.info(json.dumps({"event": "sign_in_request", "email": data.email}))
    await session.sign_in(data.email, data.password)
    await session.settle()
    return render(session)


@router.post("/auth/sign-up")
async def sign_up(data: Credentials, session: SessionSynchronizer = Depends(get_session)):
    logger.info(json.dumps({"event": "sign_up_request", "email": data.email}))
    await session.sign_up(data.email, data.password)
    await session.settle()
    return render(session)


@router.post("/auth/google")
async def sign_in_with_google(data: GoogleSignIn, session: SessionSynchronizer = Depends(get_session)):
    await session.sign_in_with_google(data.id_token, data.access_token)
    await session.settle()
    return render(session)


@router.post("/auth/sign-out")
async def sign_out(session: SessionSynchronizer = Depends(get_session)):
    await session.sign_out()
    await session.settle()
    return render(session)


@router.delete("/auth/account")
async def delete_account(session: SessionSynchronizer = Depends(get_session)):
    await session.delete_account()
    await session.settle()
    return render(session)


@router.post("/me/refresh")
async def refresh_user(session: SessionSynchronizer = Depends(get_session)):
    await session.fetch_user()
    return render(session)


@router.delete("/message")
async def clear_message(session: SessionSynchronizer = Depends(get_session)):
    session.clear_message()
    return render(session)
