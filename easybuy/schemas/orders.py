"""
schemas/orders.py
------------------

Order, order item and review models, plus the client-built request
shapes for ``/order`` and ``/order/{id}/review``.

``OrderRequest`` carries the same editable fields as ``Order`` so that
the JSON we send and the order the server echoes back can be compared
field by field.
"""

from __future__ import annotations

from typing import Any, List, Optional

from pydantic import AliasChoices, Field

from easybuy.schemas.common import Timestamp, WireModel


class OrderItem(WireModel):
    product_id: str
    quantity: int = Field(1, ge=1)
    name: Optional[str] = None
    price: Optional[float] = None


class Review(WireModel):
    comment: str = ""
    rating: int = Field(0, ge=0, le=5)
    images: List[str] = Field(default_factory=list)
    created_at: Optional[Timestamp] = None


class Order(WireModel):
    id: str = Field(validation_alias=AliasChoices("id", "_id"))
    items: List[OrderItem] = Field(default_factory=list)
    status: str = "pending"
    shipping_address: str = ""
    payment_method: str = ""
    note: str = ""
    total_price: Optional[float] = None
    created_at: Optional[Timestamp] = None
    updated_at: Optional[Timestamp] = None
    review: Optional[Review] = None


class OrderRequest(WireModel):
    """Draft order composed by the user and sent to ``/order``.

    ``OrderRequest.empty()`` is the unfilled draft; a draft counts as
    empty while it has no items or no shipping address.
    """
    items: List[OrderItem] = Field(default_factory=list)
    shipping_address: str = ""
    payment_method: str = ""
    note: str = ""

    @classmethod
    def empty(cls) -> "OrderRequest":
        return cls()

    @property
    def is_empty(self) -> bool:
        return not self.items or not self.shipping_address.strip()


class AddReviewRequest(WireModel):
    """Review submission; sent as multipart, never as JSON."""
    order_id: str
    comment: str = ""
    rating: int = Field(0, ge=0, le=5)
    # PIL images or raw encoded image bytes
    images: List[Any] = Field(default_factory=list)
