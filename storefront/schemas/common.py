"""
schemas/common.py — Shared envelopes for storefront API payloads

Pagination blocks and the {"data": ...} wrapper used by the reviews and
users routes.

Called by: schemas/catalog.py, services/catalog_service.py, services/user_service.py
Depends on: pydantic
"""

from __future__ import annotations

from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")


# ── Base Wrappers ───────────────────────────────────────────────────────


class Pagination(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    page: int = 0
    limit: int = 10
    total: int = 0
    total_pages: int = Field(default=0, alias="totalPages")
    has_next_page: bool = Field(default=False, alias="hasNextPage")
    has_previous_page: bool = Field(default=False, alias="hasPreviousPage")


class DataEnvelope(BaseModel, Generic[T]):
    """Bodies shaped {"data": ...} (reviews, users)."""
    data: T
