"""
schemas/cart.py
----------------

Pydantic models for products, cart lines and the cart request/response
payloads exchanged with ``/cart``.
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import AliasChoices, Field

from easybuy.schemas.common import WireModel


class Product(WireModel):
    id: str = Field(validation_alias=AliasChoices("id", "_id"))
    name: str = ""
    price: float = 0
    image_url: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None


class CartLine(WireModel):
    """One product in the user's cart. Unique per ``product_id``."""
    product_id: str
    quantity: int = Field(1, ge=0)
    product: Optional[Product] = None


class CartRequest(WireModel):
    """Body of ``POST /cart``."""
    product_id: str
    quantity: int = Field(1, ge=1)


class UpdateCartRequest(WireModel):
    """Body of ``PUT /cart/{productId}``."""
    quantity: int = Field(ge=0)


class DeleteCartRequest(WireModel):
    """Body of ``DELETE /cart``."""
    product_ids: List[str]


class CartContents(WireModel):
    products: List[CartLine] = Field(default_factory=list)


class CartResponse(WireModel):
    """Envelope returned by ``POST /cart``."""
    cart: CartContents
