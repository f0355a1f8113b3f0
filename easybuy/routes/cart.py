"""
routes/cart.py
---------------

Bridge routes for cart mutations. Each route runs the matching
synchronizer helper and returns the resulting session snapshot; a
failed backend call shows up as ``message`` in that snapshot.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from easybuy.routes.session import get_session, render
from easybuy.schemas.auth import CartQuantity, CartSelection
from easybuy.schemas.cart import CartRequest
from easybuy.services.session_service import SessionSynchronizer

router = APIRouter(prefix="/cart")


@router.post("")
async def add_to_cart(data: CartRequest, session: SessionSynchronizer = Depends(get_session)):
    await session.add_cart(data)
    return render(session)


@router.put("/{product_id}")
async def update_cart_item(product_id: str, data: CartQuantity,
                           session: SessionSynchronizer = Depends(get_session)):
    await session.update_cart_item(product_id, data.quantity)
    return render(session)


@router.delete("")
async def delete_cart_items(data: CartSelection, session: SessionSynchronizer = Depends(get_session)):
    await session.delete_cart_items(data.product_ids)
    return render(session)
