"""
schemas/user.py
----------------

The account record returned by ``GET /me``. The server owns it; the
client replaces it wholesale on fetch and patches the cart and order
collections after individual mutations.
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import AliasChoices, Field

from easybuy.schemas.cart import CartLine
from easybuy.schemas.common import Timestamp, WireModel
from easybuy.schemas.orders import Order


class User(WireModel):
    id: str = Field("", validation_alias=AliasChoices("id", "_id", "uid"))
    email: Optional[str] = None
    name: Optional[str] = None
    cart: List[CartLine] = Field(default_factory=list)
    orders: List[Order] = Field(default_factory=list)
    created_at: Optional[Timestamp] = None
