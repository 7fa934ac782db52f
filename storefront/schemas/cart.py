"""
schemas/cart.py — Pydantic models for cart endpoints

Validates the server-shaped cart payload returned by GET /carts and the
bodies sent to POST /carts and PUT /cart-items/{id}.

Business Rules:
- A persisted cart line always has quantity >= 1 (defaults to 1)
- unit_price and variant price are never negative (default to 0)
- Quantity <= 0 is a removal request and never reaches UpdateCartItemRequest

Called by: services/cart_service.py, services/cart_totals.py
Depends on: pydantic
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class ProductImage(BaseModel):
    url: str
    alt: str = ""
    is_featured: bool = False


class CartProduct(BaseModel):
    id: int
    title: str
    slug: str
    product_images: list[ProductImage] = Field(default_factory=list)


class VariantOption(BaseModel):
    name: str
    value: str


class CartItemVariant(BaseModel):
    id: int
    sku: str
    price: float = Field(default=0, ge=0)
    product: CartProduct
    variant_options: list[VariantOption] = Field(default_factory=list)


class CartItem(BaseModel):
    """One cart line as the server reports it."""
    id: int
    quantity: int = Field(default=1, ge=1)
    unit_price: float = Field(default=0, ge=0)
    variants: CartItemVariant


class CartResponse(BaseModel):
    id: int
    items: list[CartItem] = Field(default_factory=list)


class AddToCartRequest(BaseModel):
    variant_id: int
    quantity: int = Field(default=1, ge=1)


class UpdateCartItemRequest(BaseModel):
    quantity: int = Field(ge=1)
