"""
routes/orders.py
-----------------

Bridge routes for the draft order, order mutations and reviews.

The review route accepts a regular multipart upload from the UI; the
uploaded files become the draft review images and are re-encoded as
JPEG when the synchronizer submits them to the backend.
"""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, File, Form, UploadFile

from easybuy.routes.session import get_session, render
from easybuy.schemas.orders import OrderRequest
from easybuy.services.session_service import SessionSynchronizer

router = APIRouter()


@router.put("/draft/order")
async def set_draft_order(data: OrderRequest, session: SessionSynchronizer = Depends(get_session)):
    session.set_draft_order(data)
    return render(session)


@router.post("/orders")
async def add_order(session: SessionSynchronizer = Depends(get_session)):
    await session.add_order()
    return render(session)


@router.put("/orders/{order_id}")
async def update_order(order_id: str, session: SessionSynchronizer = Depends(get_session)):
    await session.update_order(order_id)
    return render(session)


@router.delete("/orders/{order_id}")
async def delete_order(order_id: str, session: SessionSynchronizer = Depends(get_session)):
    await session.delete_order(order_id)
    return render(session)


@router.post("/orders/{order_id}/review")
async def add_review(
    order_id: str,
    rating: int = Form(...),
    comment: str = Form(""),
    images: List[UploadFile] = File(default=[]),
    session: SessionSynchronizer = Depends(get_session),
):
    payloads = [await upload.read() for upload in images]
    session.set_review_draft(comment, rating, payloads)
    await session.add_review(order_id)
    return render(session)


@router.delete("/orders/{order_id}/review")
async def delete_review(order_id: str, session: SessionSynchronizer = Depends(get_session)):
    await session.delete_review(order_id)
    return render(session)
