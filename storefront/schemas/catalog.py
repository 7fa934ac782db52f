"""
schemas/catalog.py — Pydantic models for products, categories and reviews

Business Rules:
- Product and category ids are strings (UUIDs on the backend); numeric ids
  are accepted and stringified
- Review rating is 1..5; a new review comment is 10..500 characters after trim
- Paginated listings wrap items as {data: [...], pagination: {...}}

Called by: services/catalog_service.py
Depends on: pydantic, schemas/common.py
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

from storefront.schemas.cart import ProductImage
from storefront.schemas.common import Pagination


# ── Products ────────────────────────────────────────────────────────────


class ProductVariant(BaseModel, extra="allow"):
    id: int | None = None
    sku: str | None = None
    price: float = Field(default=0, ge=0)
    stock: int | None = None


class ProductSummary(BaseModel, extra="allow"):
    id: str
    title: str
    slug: str
    product_images: list[ProductImage] = Field(default_factory=list)
    product_variants: list[ProductVariant] = Field(default_factory=list)

    @field_validator("id", mode="before")
    @classmethod
    def id_as_str(cls, v) -> str:
        return str(v)

    @property
    def featured_image(self) -> ProductImage | None:
        for image in self.product_images:
            if image.is_featured:
                return image
        return self.product_images[0] if self.product_images else None

    @property
    def min_price(self) -> float | None:
        prices = [v.price for v in self.product_variants]
        return min(prices) if prices else None


class DetailedProduct(ProductSummary):
    description: str = ""
    category: str | None = None
    features: list[str] = Field(default_factory=list)


class PaginatedProducts(BaseModel):
    data: list[ProductSummary] = Field(default_factory=list)
    pagination: Pagination = Field(default_factory=Pagination)


# ── Categories ──────────────────────────────────────────────────────────


class Category(BaseModel):
    id: str
    name: str = Field(min_length=1, max_length=100)
    slug: str = Field(min_length=1, max_length=100)


# ── Reviews ─────────────────────────────────────────────────────────────


class Review(BaseModel, extra="allow"):
    id: int
    rating: int = Field(ge=1, le=5)
    comment: str
    created_at: str
    user_id: int
    product_id: int


class PaginatedReviews(BaseModel):
    data: list[Review] = Field(default_factory=list)
    pagination: Pagination = Field(default_factory=Pagination)


class ReviewCreate(BaseModel):
    """Review form body — messages shown next to the inputs."""
    rating: int
    comment: str

    @field_validator("rating")
    @classmethod
    def rating_range(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Lütfen bir puan verin")
        if v > 5:
            raise ValueError("Maksimum 5 puan verilebilir")
        return v

    @field_validator("comment")
    @classmethod
    def comment_length(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 10:
            raise ValueError("Yorum en az 10 karakter olmalıdır")
        if len(v) > 500:
            raise ValueError("Yorum maksimum 500 karakter olabilir")
        return v
