"""
schemas/auth.py
----------------

Pydantic models for the request bodies accepted by the local UI
bridge. These schemas are used by the ``session`` and ``cart`` routes;
backend wire payloads live in the sibling modules.
"""

from __future__ import annotations

from typing import List, Optional
from pydantic import BaseModel, Field


class Credentials(BaseModel):
    email: str
    password: str


class GoogleSignIn(BaseModel):
    id_token: str
    access_token: Optional[str] = None


class CartQuantity(BaseModel):
    quantity: int = Field(ge=0)


class CartSelection(BaseModel):
    product_ids: List[str] = Field(alias="productIds")

    model_config = {
        "populate_by_name": True  # allow population by field name or alias
    }
